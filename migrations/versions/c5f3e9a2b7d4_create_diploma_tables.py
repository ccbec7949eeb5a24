"""create diploma portal tables

Revision ID: c5f3e9a2b7d4
Revises: b4e2d8f1a6c3
Create Date: 2026-10-05

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "c5f3e9a2b7d4"
down_revision: Union[str, None] = "b4e2d8f1a6c3"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "diploma_students",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("cohort", sa.String(length=50), nullable=True),
        sa.Column("auth0_sub", sa.String(length=255), nullable=True),
        sa.Column("drive_binder_url", sa.Text(), nullable=True),
        sa.Column("drive_folder_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("auth0_sub"),
    )
    op.create_index(op.f("ix_diploma_students_email"), "diploma_students", ["email"], unique=False)
    op.create_index(op.f("ix_diploma_students_cohort"), "diploma_students", ["cohort"], unique=False)

    op.create_table(
        "diploma_student_items",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("item_type", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("drive_link_url", sa.Text(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("visible_to_student", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["student_id"], ["diploma_students.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_diploma_student_items_student_id"), "diploma_student_items", ["student_id"], unique=False
    )

    op.create_table(
        "diploma_announcements",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column("drive_link_url", sa.Text(), nullable=True),
        sa.Column("audience", sa.String(length=64), nullable=False, server_default="all_diploma"),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("diploma_announcements")
    op.drop_index(op.f("ix_diploma_student_items_student_id"), table_name="diploma_student_items")
    op.drop_table("diploma_student_items")
    op.drop_index(op.f("ix_diploma_students_cohort"), table_name="diploma_students")
    op.drop_index(op.f("ix_diploma_students_email"), table_name="diploma_students")
    op.drop_table("diploma_students")
