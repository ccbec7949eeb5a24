"""Repository over the heterogeneous source tables."""

import logging
from typing import Any, Dict, Optional, Type

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.database.models import Base
from admin_api.exceptions import DatabaseError

logger = logging.getLogger(__name__)


def row_to_dict(instance: Base) -> Dict[str, Any]:
    """Render an ORM row as a plain column dict."""
    return {column.key: getattr(instance, column.key) for column in sa_inspect(instance).mapper.column_attrs}


class SourceRowRepository:
    """Reads source rows and writes back status/assigned_to.

    Source rows are created by the public funnels; this repository never
    inserts them.
    """

    def __init__(self, model: Type[Base], session: AsyncSession):
        self.model = model
        self.session = session

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    @property
    def has_assigned_to(self) -> bool:
        """Whether the table carries an assigned_to column."""
        return "assigned_to" in self.model.__table__.columns

    async def get(self, source_id: str) -> Optional[Dict[str, Any]]:
        """Return the raw source row as a dict, or None."""
        try:
            result = await self.session.execute(select(self.model).where(self.model.id == source_id))
            instance = result.scalar_one_or_none()
            return row_to_dict(instance) if instance is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error reading {self.table_name}:{source_id}: {e}")
            raise DatabaseError("Failed to read source row", detail=str(e)) from e

    async def update_fields(self, source_id: str, **values: Any) -> None:
        """Update columns on a source row and commit."""
        if not values:
            return
        try:
            await self.session.execute(
                update(self.model).where(self.model.id == source_id).values(**values)
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.table_name}:{source_id}: {e}")
            await self.session.rollback()
            raise DatabaseError("Failed to update source row", detail=str(e)) from e
