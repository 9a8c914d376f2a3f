"""
NoteKeeper Backend: Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   The engine (and its connection pool) is a process-scoped resource:
       `init_engine()` builds it once during application startup,
       `get_db_session()` hands out one session per request, and
       `dispose_engine()` closes the pool at shutdown.
Who:   The lifespan in `main.py`, route dependencies, Alembic and tests.

Connection Pooling:
    pool_size=10:      Persistent connections (hard cap with max_overflow=0)
    pool_recycle=60:   Connections older than 60s are replaced (idle timeout)
    pool_pre_ping:     Connections are pinged on checkout (keep-alive)

    SQLite URLs (local development and tests) use SQLAlchemy's default
    pool for the driver and ignore these settings.
"""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from notekeeper.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Its metadata is what Alembic compares against for --autogenerate and
    what `create_tables()` materializes.
    """
    pass


# ── Process-scoped state ──────────────────────────────────────────────────
# Populated by init_engine(), cleared by dispose_engine()
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def init_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create the async engine and session factory.

    Args:
        database_url: Overrides settings.database_url (tests pass a
                      temporary SQLite URL here).

    Returns:
        The newly created engine. Calling this again replaces the previous
        engine without disposing it; call dispose_engine() first.
    """
    global _engine, _session_factory

    url = database_url or settings.database_url
    if not url:
        raise RuntimeError("init_engine() called without a database URL")

    engine_kwargs = {"echo": settings.log_level == "DEBUG"}
    if make_url(url).get_backend_name() != "sqlite":
        engine_kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=settings.db_pool_pre_ping,
        )

    _engine = create_async_engine(url, **engine_kwargs)

    # expire_on_commit=False: ORM rows stay readable after the request commits
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    logger.info("Database engine initialized (backend=%s)", make_url(url).get_backend_name())
    return _engine


def get_engine() -> AsyncEngine:
    """Return the active engine. Raises RuntimeError before init_engine()."""
    if _engine is None:
        raise RuntimeError("Database engine is not initialized")
    return _engine


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On error: rolls back and re-raises for the exception handlers
        4. Always: closes the session (returns the connection to the pool)

    It never commits. Exit code of a yield dependency may run after the
    response has been sent, so write handlers commit explicitly through
    NoteRepository.commit() and anything left uncommitted is discarded.
    """
    if _session_factory is None:
        raise RuntimeError("Database engine is not initialized")

    async with _session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables() -> None:
    """
    Create all tables known to Base.metadata if they do not exist.

    Used by the test suite and for throwaway SQLite databases; real
    deployments run `alembic upgrade head` instead.
    """
    # Registers the models with Base.metadata
    from notekeeper.models import note  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close every pooled connection. Called at application shutdown."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None
