"""Shared pytest fixtures for the CRM test suite.

Provides:
- db_engine: in-memory SQLite async engine with all tables
- db_session: SAVEPOINT-isolated async session (app commits don't leak)
- fixed_now / fixed_clock: a pinned local "now"
- client: AsyncClient with session, clock and rng overridden
"""

import os

# Must be set before src.db.session builds its engine.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "dev")

import random  # noqa: E402
from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.api.dependencies import get_clock, get_rng  # noqa: E402
from src.dashboard.clock import FixedClock  # noqa: E402
from src.db.session import Base, get_async_session  # noqa: E402
import src.db.tables  # noqa: E402,F401 - register ORM models on Base.metadata

# Sunday, 18 October 2026, mid-afternoon local time
FIXED_NOW = datetime(2026, 10, 18, 15, 30, 0)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_clock(fixed_now: datetime) -> FixedClock:
    return FixedClock(fixed_now)


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with all tables."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Provide a session whose commits only release SAVEPOINTs.

    The outer transaction is never committed and rolls back at teardown,
    so every test starts from empty tables.
    """
    async with db_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(
            bind=conn,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )
        yield session
        await session.close()
        await trans.rollback()


@pytest.fixture
async def client(db_session, fixed_clock):
    """AsyncClient bound to the test session, a fixed clock and a seeded rng."""
    from src.api.main import app

    async def _override_session():
        yield db_session

    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    app.dependency_overrides[get_rng] = lambda: random.Random(42)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
