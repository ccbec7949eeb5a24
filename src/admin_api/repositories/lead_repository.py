"""Lead and lead event repositories."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.database.models import Lead, LeadEvent, new_uuid
from admin_api.exceptions import DatabaseError
from admin_api.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class LeadRepository(BaseRepository[Lead]):
    """Repository for lead data access operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Lead, session)

    async def get_by_source(self, source_table: str, source_row_id: str) -> Optional[Lead]:
        """Return the lead for a source row (if exists)."""
        try:
            result = await self.session.execute(
                select(Lead).where(
                    Lead.source_table == source_table,
                    Lead.source_row_id == source_row_id,
                )
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting lead for {source_table}:{source_row_id}: {e}")
            raise DatabaseError("Failed to retrieve lead", detail=str(e)) from e

    async def insert_if_absent(self, **values: Any) -> None:
        """
        Insert a lead, doing nothing if one already exists for the source row.

        Uses INSERT ... ON CONFLICT (source_table, source_row_id) DO NOTHING so
        that concurrent first accesses converge on a single row. The caller
        re-reads the row afterwards.
        """
        values.setdefault("id", new_uuid())
        dialect = self.session.get_bind().dialect.name
        insert = sqlite_insert if dialect == "sqlite" else pg_insert
        stmt = (
            insert(Lead)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["source_table", "source_row_id"])
        )
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error upserting lead for {values.get('source_table')}:{values.get('source_row_id')}: {e}")
            await self.session.rollback()
            raise DatabaseError("Failed to create lead", detail=str(e)) from e

    async def apply_changes(self, lead: Lead, changes: dict) -> Lead:
        """Write the given field changes and commit them."""
        try:
            for field, value in changes.items():
                setattr(lead, field, value)
            await self.session.commit()
            await self.session.refresh(lead)
            return lead
        except SQLAlchemyError as e:
            logger.error(f"Error updating lead {lead.id}: {e}")
            await self.session.rollback()
            raise DatabaseError("Failed to update lead", detail=str(e)) from e


class LeadEventRepository(BaseRepository[LeadEvent]):
    """Repository for the append-only lead audit trail."""

    def __init__(self, session: AsyncSession):
        super().__init__(LeadEvent, session)

    async def has_any(self, lead_id: str) -> bool:
        """Check whether a lead already has at least one event."""
        try:
            result = await self.session.execute(
                select(LeadEvent.id).where(LeadEvent.lead_id == lead_id).limit(1)
            )
            return result.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking events for lead {lead_id}: {e}")
            raise DatabaseError("Failed to read lead events", detail=str(e)) from e

    async def append(self, **values: Any) -> LeadEvent:
        """Insert one event and commit it."""
        event = await self.create(**values)
        await self.commit()
        return event

    async def list_for_lead(self, lead_id: str) -> List[LeadEvent]:
        """List a lead's events, newest first."""
        try:
            result = await self.session.execute(
                select(LeadEvent)
                .where(LeadEvent.lead_id == lead_id)
                .order_by(LeadEvent.created_at.desc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing events for lead {lead_id}: {e}")
            raise DatabaseError("Failed to fetch lead events", detail=str(e)) from e
