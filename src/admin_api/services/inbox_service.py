"""Unified inbox over all source tables.

Each source table is projected onto the same row shape and the projections
are combined with UNION ALL; filtering, counting and paging run over that
union.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import String, cast, func, literal, null, or_, select, union_all
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.config import InboxSettings, get_settings
from admin_api.exceptions import BadRequestError, DatabaseError
from admin_api.repositories.base import escape_like
from admin_api.services.sources import (
    SourceTable,
    inbox_kind_for_source,
    parse_source_table,
    source_model_for,
)

logger = logging.getLogger(__name__)

INBOX_COLUMNS = (
    "source_table",
    "source_id",
    "kind",
    "full_name",
    "email",
    "organization_name",
    "city",
    "interest_summary",
    "status",
    "assigned_to",
    "source_page",
    "created_at",
)

SEARCH_COLUMNS = ("full_name", "email", "organization_name", "city", "interest_summary")

# Which source column feeds each projected column; missing entries project NULL
_PROJECTIONS: Dict[SourceTable, Dict[str, str]] = {
    SourceTable.APPLICATIONS: {
        "full_name": "full_name",
        "city": "city",
        "interest_summary": "program_interest",
        "assigned_to": "assigned_to",
    },
    SourceTable.COURSE_PREREGISTRATIONS: {
        "full_name": "full_name",
        "interest_summary": "course_name",
    },
    SourceTable.INQUIRIES: {
        "full_name": "full_name",
        "interest_summary": "message",
        "assigned_to": "assigned_to",
    },
    SourceTable.SCHOOL_LEADS: {
        "full_name": "contact_name",
        "organization_name": "school_name",
        "city": "city",
        "interest_summary": "notes",
        "assigned_to": "assigned_to",
    },
    SourceTable.UNIVERSITY_LEADS: {
        "full_name": "contact_name",
        "organization_name": "university_name",
        "city": "city",
        "interest_summary": "notes",
        "assigned_to": "assigned_to",
    },
    SourceTable.WORKSHOP_RESERVATIONS: {
        "full_name": "full_name",
        "city": "city",
        "interest_summary": "workshop_name",
    },
}


def _branch(source_table: SourceTable):
    model = source_model_for(source_table)
    mapping = _PROJECTIONS[source_table]

    def text_column(name: str):
        source_column = mapping.get(name)
        if source_column is None:
            return cast(null(), String).label(name)
        return cast(getattr(model, source_column), String).label(name)

    return select(
        literal(source_table.value, String).label("source_table"),
        cast(model.id, String).label("source_id"),
        literal(inbox_kind_for_source(source_table), String).label("kind"),
        text_column("full_name"),
        cast(model.email, String).label("email"),
        text_column("organization_name"),
        text_column("city"),
        text_column("interest_summary"),
        cast(model.status, String).label("status"),
        text_column("assigned_to"),
        cast(model.source_page, String).label("source_page"),
        model.created_at.label("created_at"),
    )


def inbox_union():
    """UNION ALL of every source table projected onto the inbox row shape."""
    return union_all(*(_branch(table) for table in SourceTable)).subquery("inbox")


def clamp_page(page: Optional[int], page_size: Optional[int], settings: InboxSettings) -> tuple[int, int]:
    """Normalize 1-indexed page and page size."""
    page = max(1, int(page or 1))
    size = settings.default_page_size if page_size is None else int(page_size)
    size = min(settings.max_page_size, max(1, size))
    return page, size


class InboxService:
    """Read-only listing and lookup over the unified inbox."""

    def __init__(self, session: AsyncSession, settings: Optional[InboxSettings] = None) -> None:
        self.session = session
        self.settings = settings or get_settings().inbox

    async def list_inbox(
        self,
        scope: str = "open",
        page: Optional[int] = 1,
        page_size: Optional[int] = None,
        q: Optional[str] = None,
        kind: Optional[str] = None,
        source_table: Optional[str] = None,
        assigned_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Page through the inbox, newest first.

        Args:
            scope: "open" (only open statuses) or "all"
            page: 1-indexed page number
            page_size: Rows per page, clamped to [1, max_page_size]
            q: Case-insensitive substring over name/email/organization/city/interest
            kind: Exact inbox kind tag (university leads are "university_lead")
            source_table: Exact source table (must be allowed)
            assigned_to: Exact assignee

        Returns:
            {"rows", "total", "page", "pageSize"}
        """
        if scope not in ("open", "all"):
            raise BadRequestError("scope must be one of: open | all", detail={"field": "scope", "value": scope})

        page, page_size = clamp_page(page, page_size, self.settings)
        inbox = inbox_union()
        query = select(inbox)

        if scope == "open":
            query = query.where(inbox.c.status.in_(self.settings.open_statuses))
        if kind:
            query = query.where(inbox.c.kind == kind)
        if source_table:
            query = query.where(inbox.c.source_table == parse_source_table(source_table).value)
        if assigned_to:
            query = query.where(inbox.c.assigned_to == assigned_to)

        term = (q or "").strip()
        if term:
            like = f"%{escape_like(term)}%"
            query = query.where(or_(*(inbox.c[name].ilike(like, escape="\\") for name in SEARCH_COLUMNS)))

        try:
            total = (
                await self.session.execute(select(func.count()).select_from(query.subquery()))
            ).scalar() or 0
            result = await self.session.execute(
                query.order_by(
                    inbox.c.created_at.desc(),
                    inbox.c.source_table.asc(),
                    inbox.c.source_id.asc(),
                )
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            rows = [dict(row._mapping) for row in result.all()]
        except SQLAlchemyError as e:
            logger.error(f"Error fetching inbox: {e}")
            raise DatabaseError("Failed to fetch inbox", detail=str(e)) from e

        return {"rows": rows, "total": total, "page": page, "pageSize": page_size}

    async def get_inbox_row(self, source_table: SourceTable, source_id: str) -> Optional[Dict[str, Any]]:
        """The single inbox row for a source row, or None."""
        source_table = SourceTable(source_table)
        inbox = _branch(source_table).subquery("inbox_row")
        try:
            result = await self.session.execute(select(inbox).where(inbox.c.source_id == str(source_id)))
            row = result.first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching inbox row {source_table.value}:{source_id}: {e}")
            raise DatabaseError("Failed to fetch inbox row", detail=str(e)) from e
        return dict(row._mapping) if row is not None else None
