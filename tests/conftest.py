"""
Pytest configuration and shared fixtures for the Member Search API tests.

Provides:
- In-memory SQLite database (aiosqlite, one shared connection per test)
- Async SQLAlchemy session fixture
- Statement recorder for asserting which queries were issued
- httpx AsyncClient bound to the app with the test session injected
- Test data factories for teams and members

Async SQLAlchemy Fixtures:
- async_engine: Function-scoped async engine with tables created
- async_db_session: Function-scoped async session
- statements: Records SQL statements issued through async_engine
- sample_members: The four-member teamA/teamB data set

Async Helper Functions:
- create_team_in_db(): Create a Team using AsyncSession
- create_member_in_db(): Create a Member using AsyncSession
"""

from __future__ import annotations

import os
import sys
from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

# Add app to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before importing app
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("DATABASE_URL_APP", TEST_DATABASE_URL)
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("OTEL_ENABLED", "false")

import httpx  # noqa: E402 (import after env setup)
import pytest  # noqa: E402 (import after env setup)
from sqlalchemy import event  # noqa: E402 (import after env setup)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

from app.db.models import Member, Team  # noqa: E402 (import after env setup)
from app.main import create_app  # noqa: E402 (import after env setup)

# ============================================================================
# AnyIO
# ============================================================================


# This fixture ensures async fixtures work with AnyIO's pytest plugin.
@pytest.fixture
def anyio_backend():
    return "asyncio"


# ============================================================================
# Async SQLAlchemy Fixtures
# ============================================================================


@pytest.fixture
async def reset_async_engine_before_test():
    """Reset the cached app engine so no connection outlives its event loop."""
    from app.core.db import reset_async_engine

    await reset_async_engine()
    yield
    await reset_async_engine()


@pytest.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Create a fresh in-memory database with all tables.

    Each engine owns a single connection (StaticPool), so every test starts
    from an empty database.
    """
    from app.core.db import create_fresh_async_engine, create_schema

    engine = create_fresh_async_engine(TEST_DATABASE_URL)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def async_db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Provide an async session bound to the test database."""
    session_maker = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    async with session_maker() as session:
        yield session


class StatementRecorder:
    """Collects SQL text for every statement sent to the database."""

    def __init__(self) -> None:
        self.statements: list[str] = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany) -> None:
        self.statements.append(statement)

    def clear(self) -> None:
        self.statements.clear()

    @property
    def selects(self) -> list[str]:
        return [s for s in self.statements if s.lstrip().upper().startswith("SELECT")]

    @property
    def count_queries(self) -> list[str]:
        return [s for s in self.selects if "count(" in s.lower()]

    @property
    def content_queries(self) -> list[str]:
        return [s for s in self.selects if "count(" not in s.lower()]


@pytest.fixture
def statements(async_engine: AsyncEngine) -> Generator[StatementRecorder]:
    """
    Record statements issued through the test engine.

    Call `statements.clear()` after arranging data so only the statements
    of the code under test remain.
    """
    recorder = StatementRecorder()
    event.listen(async_engine.sync_engine, "before_cursor_execute", recorder)
    yield recorder
    event.remove(async_engine.sync_engine, "before_cursor_execute", recorder)


# ============================================================================
# Test Data Factories
# ============================================================================


async def create_team_in_db(session: AsyncSession, name: str = "teamA") -> Team:
    """Create a team and flush it so its id is assigned."""
    team = Team(name=name)
    session.add(team)
    await session.flush()
    return team


async def create_member_in_db(
    session: AsyncSession,
    username: str = "member1",
    age: int = 10,
    team: Team | None = None,
) -> Member:
    """Create a member, optionally in `team`, and flush it."""
    member = Member(username=username, age=age, team_id=team.team_id if team else None)
    session.add(member)
    await session.flush()
    return member


@pytest.fixture
async def sample_members(async_db_session: AsyncSession) -> dict[str, Any]:
    """
    Four members across two teams.

    member1 (10) and member2 (20) are in teamA; member3 (30) and
    member4 (40) are in teamB.
    """
    team_a = await create_team_in_db(async_db_session, "teamA")
    team_b = await create_team_in_db(async_db_session, "teamB")
    members = [
        await create_member_in_db(async_db_session, "member1", 10, team_a),
        await create_member_in_db(async_db_session, "member2", 20, team_a),
        await create_member_in_db(async_db_session, "member3", 30, team_b),
        await create_member_in_db(async_db_session, "member4", 40, team_b),
    ]
    await async_db_session.commit()
    return {"teams": {"teamA": team_a, "teamB": team_b}, "members": members}


# ============================================================================
# HTTP Client Fixtures
# ============================================================================


@pytest.fixture
async def client(
    async_db_session: AsyncSession, reset_async_engine_before_test: None
) -> AsyncGenerator[httpx.AsyncClient]:
    """
    httpx client for the app with the test session injected.

    Startup events do not run under ASGITransport, so tracing and sample
    data seeding stay off.
    """
    from app.core.dependencies import get_async_db_session

    app = create_app()

    async def override_get_async_db_session() -> AsyncGenerator[AsyncSession]:
        yield async_db_session

    app.dependency_overrides[get_async_db_session] = override_get_async_db_session

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
