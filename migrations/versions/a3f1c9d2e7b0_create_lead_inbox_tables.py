"""create lead inbox, staff and source tables

Revision ID: a3f1c9d2e7b0
Revises:
Create Date: 2026-09-28

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a3f1c9d2e7b0"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _source_columns(*extra: sa.Column, assignable: bool = True) -> list:
    columns = [
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        *extra,
        sa.Column("status", sa.String(length=50), nullable=True, server_default="new"),
    ]
    if assignable:
        columns.append(sa.Column("assigned_to", sa.String(length=36), nullable=True))
    columns += [
        sa.Column("source_page", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    ]
    return columns


def upgrade() -> None:
    op.create_table(
        "lead_statuses",
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("label", sa.String(length=100), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_terminal", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("code"),
    )

    op.create_table(
        "leads",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("kind", sa.String(length=50), nullable=False),
        sa.Column("source_table", sa.String(length=64), nullable=False),
        sa.Column("source_row_id", sa.String(length=36), nullable=False),
        sa.Column("source_page", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="new"),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="normal"),
        sa.Column("assigned_to", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("source_table", "source_row_id", name="uq_leads_source_table_source_row_id"),
    )
    op.create_index(op.f("ix_leads_kind"), "leads", ["kind"], unique=False)
    op.create_index(op.f("ix_leads_status"), "leads", ["status"], unique=False)
    op.create_index(op.f("ix_leads_assigned_to"), "leads", ["assigned_to"], unique=False)

    op.create_table(
        "lead_events",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("lead_id", sa.String(length=36), nullable=False),
        sa.Column("event_kind", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=True),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("from_status", sa.String(length=50), nullable=True),
        sa.Column("to_status", sa.String(length=50), nullable=True),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_lead_events_lead_id"), "lead_events", ["lead_id"], unique=False)
    op.create_index(op.f("ix_lead_events_created_at"), "lead_events", ["created_at"], unique=False)

    op.create_table(
        "staff",
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("auth0_sub", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="admin"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("user_id"),
        sa.UniqueConstraint("auth0_sub"),
    )
    op.create_index(op.f("ix_staff_email"), "staff", ["email"], unique=True)

    # Website funnel tables. Only applications, inquiries and the partner
    # tables carry assigned_to.
    op.create_table(
        "applications",
        *_source_columns(
            sa.Column("full_name", sa.String(length=255), nullable=True),
            sa.Column("phone", sa.String(length=50), nullable=True),
            sa.Column("city", sa.String(length=120), nullable=True),
            sa.Column("program_interest", sa.Text(), nullable=True),
        ),
    )
    op.create_table(
        "course_preregistrations",
        *_source_columns(
            sa.Column("full_name", sa.String(length=255), nullable=True),
            sa.Column("course_name", sa.String(length=255), nullable=True),
            assignable=False,
        ),
    )
    op.create_table(
        "inquiries",
        *_source_columns(
            sa.Column("full_name", sa.String(length=255), nullable=True),
            sa.Column("message", sa.Text(), nullable=True),
        ),
    )
    op.create_table(
        "school_leads",
        *_source_columns(
            sa.Column("contact_name", sa.String(length=255), nullable=True),
            sa.Column("school_name", sa.String(length=255), nullable=True),
            sa.Column("city", sa.String(length=120), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
        ),
    )
    op.create_table(
        "university_leads",
        *_source_columns(
            sa.Column("contact_name", sa.String(length=255), nullable=True),
            sa.Column("university_name", sa.String(length=255), nullable=True),
            sa.Column("city", sa.String(length=120), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
        ),
    )
    op.create_table(
        "workshop_reservations",
        *_source_columns(
            sa.Column("full_name", sa.String(length=255), nullable=True),
            sa.Column("workshop_name", sa.String(length=255), nullable=True),
            sa.Column("city", sa.String(length=120), nullable=True),
            assignable=False,
        ),
    )


def downgrade() -> None:
    for table in (
        "workshop_reservations",
        "university_leads",
        "school_leads",
        "inquiries",
        "course_preregistrations",
        "applications",
    ):
        op.drop_table(table)
    op.drop_index(op.f("ix_staff_email"), table_name="staff")
    op.drop_table("staff")
    op.drop_index(op.f("ix_lead_events_created_at"), table_name="lead_events")
    op.drop_index(op.f("ix_lead_events_lead_id"), table_name="lead_events")
    op.drop_table("lead_events")
    op.drop_index(op.f("ix_leads_assigned_to"), table_name="leads")
    op.drop_index(op.f("ix_leads_status"), table_name="leads")
    op.drop_index(op.f("ix_leads_kind"), table_name="leads")
    op.drop_table("leads")
    op.drop_table("lead_statuses")
