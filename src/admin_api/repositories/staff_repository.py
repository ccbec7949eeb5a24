"""Staff repository for data access operations."""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.database.models import Staff
from admin_api.exceptions import DatabaseError
from admin_api.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Trim and lower-case an email; empty values become None."""
    if not value or not isinstance(value, str):
        return None
    cleaned = value.strip().lower()
    return cleaned or None


class StaffRepository(BaseRepository[Staff]):
    """Repository for staff data access operations."""

    pk_field = "user_id"

    def __init__(self, session: AsyncSession):
        """Initialize staff repository."""
        super().__init__(Staff, session)

    async def get_by_auth0_sub(self, auth0_sub: str) -> Optional[Staff]:
        """
        Get staff member by identity-provider subject.

        Args:
            auth0_sub: Token subject

        Returns:
            Staff instance or None if not found
        """
        try:
            result = await self.session.execute(select(Staff).where(Staff.auth0_sub == auth0_sub))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting staff by auth0_sub {auth0_sub}: {e}")
            raise DatabaseError("Failed to read staff", detail=str(e)) from e

    async def get_by_email(self, email: str) -> Optional[Staff]:
        """
        Get staff member by normalized email address.

        Args:
            email: Email address

        Returns:
            Staff instance or None if not found
        """
        try:
            result = await self.session.execute(
                select(Staff).where(Staff.email == normalize_email(email))
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting staff by email {email}: {e}")
            raise DatabaseError("Failed to read staff by email", detail=str(e)) from e

    async def list_newest_first(self) -> List[Staff]:
        """List all staff, most recently created first."""
        try:
            result = await self.session.execute(select(Staff).order_by(Staff.created_at.desc()))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing staff: {e}")
            raise DatabaseError("Failed to list staff", detail=str(e)) from e

    async def count_active(self) -> int:
        """Count active staff members."""
        try:
            result = await self.session.execute(
                select(func.count()).select_from(Staff).where(Staff.active.is_(True))
            )
            return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error counting active staff: {e}")
            raise DatabaseError("Failed to validate active admin count", detail=str(e)) from e
