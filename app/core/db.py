"""
Database connection and session management.

Provides the async SQLAlchemy engine and session factory used by FastAPI
endpoints, the seeding command and the readiness probe.

Postgres (asyncpg) is the production target. SQLite (aiosqlite) is accepted
for local development and tests.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)

_async_engine: AsyncEngine | None = None
_async_sessionmaker: async_sessionmaker | None = None
_telemetry_instrumented: bool = False


def _engine_kwargs(url: str) -> dict[str, object]:
    """
    Build engine keyword arguments for the configured backend.

    SQLite does not take pool sizing arguments; an in-memory SQLite database
    must share one connection or every session would see an empty database.
    """
    if url.startswith("sqlite"):
        kwargs: dict[str, object] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
        "connect_args": {
            "server_settings": {"timezone": "UTC"},
            "timeout": 30,
        },
    }


def create_fresh_async_engine(url: str | None = None) -> AsyncEngine:
    """Create a fresh async engine without caching.

    Used for tests and one-off commands so each gets its own engine bound to
    its event loop.
    """
    url = url or settings.async_url
    if not url:
        raise RuntimeError("DATABASE_URL_APP is required")

    return create_async_engine(url, echo=False, **_engine_kwargs(url))


def get_async_engine() -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    Uses asyncpg for Postgres URLs and aiosqlite for SQLite URLs (see
    `Settings.async_url`).

    Returns:
        Configured async SQLAlchemy engine
    """
    global _async_engine

    if _async_engine is not None:
        return _async_engine

    _async_engine = create_fresh_async_engine()

    # Instrument SQLAlchemy with OpenTelemetry (only once)
    _instrument_sqlalchemy(_async_engine)

    return _async_engine


def _instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """
    Instrument the engine with OpenTelemetry.

    The instrumentor hooks the sync engine that backs the async one.

    Args:
        engine: Async SQLAlchemy engine instance
    """
    global _telemetry_instrumented

    if _telemetry_instrumented:
        return

    try:
        from app.core.telemetry import instrument_sqlalchemy

        instrument_sqlalchemy(engine.sync_engine)
        _telemetry_instrumented = True
    except ImportError:
        # OpenTelemetry not available
        logger.debug("OpenTelemetry not available - skipping SQLAlchemy instrumentation")
    except Exception as e:
        logger.warning(f"Failed to instrument SQLAlchemy with OpenTelemetry: {e}")


def get_async_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """
    Get or create the async sessionmaker.

    Returns:
        Async sessionmaker factory
    """
    global _async_sessionmaker
    if _async_sessionmaker is not None:
        return _async_sessionmaker

    engine = get_async_engine()
    _async_sessionmaker = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    return _async_sessionmaker


async def reset_async_engine() -> None:
    """Reset the async database engine and sessionmaker.

    Useful for tests to ensure fresh connections on new event loops.
    """
    global _async_engine, _async_sessionmaker

    if _async_engine is not None:
        await _async_engine.dispose()
    _async_engine = None
    _async_sessionmaker = None


async def create_schema(engine: AsyncEngine | None = None) -> None:
    """
    Create the member/team tables if they do not exist.

    Intended for local development and the seeding command. Production
    schemas are managed outside the application.
    """
    from app.db.models import Base

    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured")


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Transactional session scope for code running outside a request.

    Usage:
        async with session_scope() as db:
            await seed_sample_members(db)

    Yields:
        Async database session

    Ensures:
        Commit on success, rollback on error, session closed either way
    """
    session_maker = get_async_sessionmaker()
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
