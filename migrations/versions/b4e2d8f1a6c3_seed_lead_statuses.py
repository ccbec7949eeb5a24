"""seed lead statuses

Revision ID: b4e2d8f1a6c3
Revises: a3f1c9d2e7b0
Create Date: 2026-09-28

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "b4e2d8f1a6c3"
down_revision: Union[str, None] = "a3f1c9d2e7b0"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Kept inline so the migration does not change when the model module does.
STATUSES = [
    {"code": "new", "label": "New", "sort_order": 10, "is_terminal": False},
    {"code": "in_review", "label": "In review", "sort_order": 20, "is_terminal": False},
    {"code": "contacted", "label": "Contacted", "sort_order": 30, "is_terminal": False},
    {"code": "qualified", "label": "Qualified", "sort_order": 40, "is_terminal": False},
    {"code": "converted", "label": "Converted", "sort_order": 50, "is_terminal": False},
    {"code": "archived", "label": "Archived", "sort_order": 90, "is_terminal": True},
]


def upgrade() -> None:
    """Seed the default status registry."""
    lead_statuses = sa.table(
        "lead_statuses",
        sa.column("code", sa.String),
        sa.column("label", sa.String),
        sa.column("sort_order", sa.Integer),
        sa.column("is_terminal", sa.Boolean),
    )
    op.bulk_insert(lead_statuses, STATUSES)


def downgrade() -> None:
    codes = ", ".join(f"'{s['code']}'" for s in STATUSES)
    op.execute(f"DELETE FROM lead_statuses WHERE code IN ({codes})")
