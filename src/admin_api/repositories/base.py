"""Shared repository plumbing: primary-key CRUD and SQL error translation."""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.database.models import Base
from admin_api.exceptions import DatabaseError

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    CRUD by primary key for one model.

    Writes are flushed, not committed; services decide when a unit of work
    ends by calling :meth:`commit`. Any ``SQLAlchemyError`` surfaces as
    ``DatabaseError`` so routes answer with the 500 envelope.
    """

    # Overridden by staff (user_id) and lead_statuses (code)
    pk_field: str = "id"

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    @property
    def _name(self) -> str:
        return self.model.__name__

    async def _fail(self, action: str, e: SQLAlchemyError, rollback: bool = True) -> None:
        logger.error(f"Failed to {action} {self._name}: {e}")
        if rollback:
            await self.session.rollback()
        raise DatabaseError(f"Failed to {action} {self._name}", detail=str(e)) from e

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        try:
            result = await self.session.execute(
                select(self.model).where(getattr(self.model, self.pk_field) == id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await self._fail("load", e, rollback=False)

    async def create(self, **values: Any) -> ModelType:
        instance = self.model(**values)
        try:
            self.session.add(instance)
            await self.session.flush()
            await self.session.refresh(instance)
        except SQLAlchemyError as e:
            await self._fail("create", e)
        logger.debug(f"Created {self._name} {getattr(instance, self.pk_field)}")
        return instance

    async def update(self, id: str, **changes: Any) -> Optional[ModelType]:
        """Set the given columns; unknown keys are ignored. None if the row is gone."""
        instance = await self.get_by_id(id)
        if instance is None:
            return None
        for field, value in changes.items():
            if hasattr(instance, field):
                setattr(instance, field, value)
        try:
            await self.session.flush()
            await self.session.refresh(instance)
        except SQLAlchemyError as e:
            await self._fail("update", e)
        return instance

    async def delete(self, id: str) -> bool:
        instance = await self.get_by_id(id)
        if instance is None:
            return False
        try:
            await self.session.delete(instance)
            await self.session.flush()
        except SQLAlchemyError as e:
            await self._fail("delete", e)
        return True

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self._fail("save", e)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally (escape char is backslash)."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
