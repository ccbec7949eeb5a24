"""Status registry.

Loads the valid status codes from ``lead_statuses`` and keeps them in memory
for a short time-to-live. One instance lives on ``app.state`` for the life of
the process; it reads through a session factory so tests can substitute one.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from admin_api.exceptions import DatabaseError, InvalidStatusError
from admin_api.repositories.status_repository import LeadStatusRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusDefinition:
    """One entry of the status registry."""

    code: str
    label: str
    sort_order: int
    is_terminal: bool


class StatusRegistry:
    """Cached lookup of valid lead/source status codes."""

    def __init__(
        self,
        session_factory: Callable[[], Any],
        ttl_seconds: float = 30.0,
        initial_code: str = "new",
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            session_factory: Callable returning an async session context manager
            ttl_seconds: How long a loaded list is served without a query
            initial_code: Preferred status for newly created leads
            clock: Monotonic time source
        """
        self._session_factory = session_factory
        self._ttl = ttl_seconds
        self._initial_code = initial_code
        self._clock = clock
        self._lock = asyncio.Lock()
        self._cache: Optional[Tuple[StatusDefinition, ...]] = None
        self._loaded_at: float = 0.0

    def _is_fresh(self) -> bool:
        return self._cache is not None and (self._clock() - self._loaded_at) < self._ttl

    async def _reload(self) -> Tuple[StatusDefinition, ...]:
        try:
            async with self._session_factory() as session:
                rows = await LeadStatusRepository(session).list_ordered()
        except DatabaseError:
            logger.error("Status registry reload failed; keeping previous cache")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Status registry reload failed: {e}")
            raise DatabaseError("Failed to load lead statuses", detail=str(e)) from e

        statuses = tuple(
            StatusDefinition(
                code=row.code,
                label=row.label,
                sort_order=row.sort_order,
                is_terminal=bool(row.is_terminal),
            )
            for row in rows
        )
        self._cache = statuses
        self._loaded_at = self._clock()
        logger.debug(f"Status registry loaded {len(statuses)} statuses")
        return statuses

    async def load_statuses(self) -> List[StatusDefinition]:
        """Return the ordered status list, reloading it when stale."""
        if self._is_fresh():
            return list(self._cache)
        async with self._lock:
            # Another waiter may have reloaded while we queued on the lock
            if self._is_fresh():
                return list(self._cache)
            return list(await self._reload())

    async def is_valid_status(self, code: Optional[str]) -> bool:
        """Membership test against the registry."""
        if not code:
            return False
        statuses = await self.load_statuses()
        return any(status.code == code for status in statuses)

    async def validate_status(self, code: Optional[str], field: str = "status") -> str:
        """
        Return ``code`` if it is a registered status.

        Raises:
            InvalidStatusError: for unknown codes
            DatabaseError: if the registry cannot be loaded
        """
        if not await self.is_valid_status(code):
            raise InvalidStatusError(code, field=field)
        return code

    async def initial_status(self) -> str:
        """Status given to new leads."""
        statuses = await self.load_statuses()
        if not statuses or any(status.code == self._initial_code for status in statuses):
            return self._initial_code
        return statuses[0].code

    async def refresh(self) -> List[StatusDefinition]:
        """Force a reload regardless of cache age."""
        async with self._lock:
            return list(await self._reload())

    def invalidate(self) -> None:
        """Drop the cache; the next read reloads."""
        self._cache = None
        self._loaded_at = 0.0
