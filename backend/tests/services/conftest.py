"""Service test fixtures — in-memory store, fixed clock, async SQLite DB + FastAPI test client.

Invariants:
    - Every test gets a fresh InMemoryDataStore and a fresh in-memory SQLite database
    - get_db and get_clock dependencies overridden for API tests
    - db_manager patched so the readiness probe sees the test engine

Design Decisions:
    - Fake store for workflow tests: failure injection per (operation, table) without
      monkeypatching SQLAlchemy internals
    - SQLite in-memory for store and route tests: fast, no external dependency;
      foreign keys switched on so ON DELETE CASCADE behaves like PostgreSQL
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from homebase.api.deps import get_clock
from homebase.core.domain_types import InviteCode
from homebase.db.base import Base
from homebase.infrastructure.database import (
    DatabaseSessionManager, enable_sqlite_foreign_keys, get_db,
)
from homebase.infrastructure.sql_store import SqlDataStore
from homebase.main import app
from homebase.services.household_membership import HouseholdMembership
from homebase.services.invite_issuer import InviteIssuer
from homebase.services.invite_redeemer import InviteRedeemer
import homebase.infrastructure.database as db_module
import homebase.models  # noqa: F401

from tests.services.fakes import FixedClock, InMemoryDataStore


# ─── Workflow fixtures (in-memory store) ────────────────────────

@pytest.fixture
def store():
    return InMemoryDataStore()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def issuer(store, clock):
    return InviteIssuer(store, clock)


@pytest.fixture
def fixed_code_issuer(store, clock):
    """Issuer whose generator always yields AB3DE7GH."""
    return InviteIssuer(store, clock, code_generator=lambda: InviteCode("AB3DE7GH"))


@pytest.fixture
def redeemer(store, clock):
    return InviteRedeemer(store, clock)


@pytest.fixture
def membership(store):
    return HouseholdMembership(store)


# ─── SQL fixtures ───────────────────────────────────────────────

@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def sql_store(test_db):
    return SqlDataStore(test_db)


@pytest.fixture
def api_clock():
    return FixedClock(datetime.now(timezone.utc))


@pytest.fixture
async def client(test_engine, test_session_factory, api_clock):
    """FastAPI test client with DB and clock dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: api_clock

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
