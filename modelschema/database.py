"""
ModelSchema: Database Engine Management
========================================

What:  Async SQLAlchemy engine factory and lifecycle helpers for the
       SQLAlchemy collaborators.
How:   build_engine() creates an engine from a URL (default: settings);
       get_engine() lazily creates and caches the shared engine;
       dispose_engine() closes its pooled connections.
Who:   Used by SqlAlchemyDDLExecutor / SqlAlchemyQueryExecutor and ModelService.
When:  The shared engine is created on first use, not at import.

Connection pooling:
    Server databases use a queue pool sized by db_pool_size / db_max_overflow
    with pre-ping and hourly recycling. SQLite URLs use the dialect's default
    pool; in-memory SQLite uses a StaticPool so every connection sees the
    same database.
"""

import logging
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from modelschema.config import settings

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None


def build_engine(database_url: Optional[str] = None, **kwargs) -> AsyncEngine:
    """
    Create a new async engine.

    Args:
        database_url: Async SQLAlchemy URL; defaults to settings.database_url
        **kwargs: Extra create_async_engine() arguments (override the defaults)
    """
    url = make_url(database_url or settings.database_url)
    options = {"echo": settings.log_level == "DEBUG"}

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )

    options.update(kwargs)
    logger.debug("Creating engine for %s", url.render_as_string(hide_password=True))
    return create_async_engine(url, **options)


def get_engine() -> AsyncEngine:
    """The shared engine, created on first call."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


async def dispose_engine() -> None:
    """Close all pooled connections of the shared engine, if it was created."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
