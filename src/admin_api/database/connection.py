"""Process-wide async engine."""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from admin_api.config import DatabaseSettings, get_settings

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None


def create_engine(settings: Optional[DatabaseSettings] = None) -> AsyncEngine:
    """Build an engine for the configured database; SQLite gets the default pool."""
    settings = settings or get_settings().database
    kwargs: Dict[str, Any] = {"echo": settings.echo}
    if not settings.is_sqlite:
        kwargs.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            pool_recycle=settings.pool_recycle,
            pool_pre_ping=True,
        )
    engine = create_async_engine(settings.async_url, **kwargs)
    logger.info(f"Database engine created ({engine.dialect.name})")
    return engine


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


async def close_engine() -> None:
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("Database engine disposed")


async def check_connection() -> bool:
    """``SELECT 1`` against the engine; False instead of raising."""
    try:
        async with get_engine().connect() as conn:
            return (await conn.execute(text("SELECT 1"))).scalar() == 1
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database connection check failed: {e}")
        return False
