"""
Async SQLAlchemy engine and session factory.

The engine is built once at application startup (``connect``) and disposed
on shutdown (``disconnect``).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from database.models import Base

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None


def _engine_kwargs(url: str) -> Dict[str, Any]:
    # SQLite uses a single-connection pool that rejects sizing options
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 10, "max_overflow": 20, "pool_recycle": 3600}


def build_engine(url: str) -> AsyncEngine:
    return create_async_engine(url, echo=False, **_engine_kwargs(url))


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def connect(url: str) -> async_sessionmaker[AsyncSession]:
    """Build the process-wide engine, create tables, return the session factory."""
    global _engine
    if _engine is not None:
        await disconnect()
    _engine = build_engine(url)
    try:
        await init_db(_engine)
    except Exception:
        logger.exception("Database connection failed (%s)", _engine.url.render_as_string())
        await _engine.dispose()
        _engine = None
        raise
    logger.info("Connected to database %s", _engine.url.render_as_string())
    return build_session_factory(_engine)


async def disconnect() -> None:
    global _engine
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database connection closed")
    _engine = None

