"""Async session lifecycle.

Services commit their own units of work. Whatever is still pending when a
request (or a background read such as the status registry reload) finishes
is committed here; any error rolls the session back.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from admin_api.database.connection import check_connection, close_engine, get_engine

logger = logging.getLogger(__name__)

_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # Rows handed to response models must stay readable after commit
        _session_factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False, autoflush=False)
    return _session_factory


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """One session as a unit of work: commit on success, roll back on error."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Rolled back database session: {e}")
            raise
        except BaseException:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency wrapping :func:`get_session_context`."""
    async with get_session_context() as session:
        yield session


async def init_db() -> None:
    """Verify connectivity at startup; the app still starts without a database."""
    if await check_connection():
        logger.info("Database reachable")
    else:
        logger.warning("Database unreachable at startup; /api/ready will report 503")


async def close_db() -> None:
    global _session_factory
    _session_factory = None
    await close_engine()
