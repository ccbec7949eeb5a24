"""Lead status lookup table repository."""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.database.models import LeadStatus
from admin_api.exceptions import DatabaseError
from admin_api.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class LeadStatusRepository(BaseRepository[LeadStatus]):
    """Repository for the lead status registry table."""

    pk_field = "code"

    def __init__(self, session: AsyncSession):
        super().__init__(LeadStatus, session)

    async def list_ordered(self) -> List[LeadStatus]:
        """Return all statuses ordered by sort order, then code."""
        try:
            result = await self.session.execute(
                select(LeadStatus).order_by(LeadStatus.sort_order.asc(), LeadStatus.code.asc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error loading lead statuses: {e}")
            raise DatabaseError("Failed to load lead statuses", detail=str(e)) from e
