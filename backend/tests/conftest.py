"""Pytest configuration and fixtures for async testing."""
import os

# The application engine is created at import time; point it at SQLite
# before anything from firm_billing is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from firm_billing.api.deps import get_db
from firm_billing.database import Base
from firm_billing.main import app
from firm_billing.models import Firm, ResourceLimit, Subscription, SubscriptionStatus
from firm_billing.schemas.firm import FirmCreate
from firm_billing.schemas.period import BillingPeriod
from firm_billing.services.firms import FirmService

from utils.factories import FirmFactory

PLAN_ID = "professional"

# Limits of the test plan; storage is unlimited
PLAN_LIMITS = {
    "clients": 100,
    "staff_seats": 10,
    "storage_gb": None,
    "e_signatures": 50,
}


def _enable_savepoints(engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy own transaction boundaries on SQLite.

    The sqlite3 driver otherwise manages BEGIN itself, which breaks
    SAVEPOINT-based nested transactions.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """
    File-backed SQLite engine with a fresh schema for each test.

    A file (rather than :memory:) lets concurrent sessions share one database.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'billing.db'}", echo=False)
    _enable_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    Yields:
        AsyncSession: Database session for testing
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def period() -> BillingPeriod:
    """The billing period most tests run in."""
    return BillingPeriod.for_month(2026, 10)


@pytest_asyncio.fixture
async def firm(db_session: AsyncSession) -> Firm:
    """A committed firm with USD billing."""
    firm = await FirmService(db_session).create_firm(FirmCreate(**FirmFactory.create({"currency": "USD"})))
    await db_session.commit()
    return firm


@pytest_asyncio.fixture
async def subscribed_firm(db_session: AsyncSession, firm: Firm, period: BillingPeriod) -> Firm:
    """A committed firm with an active subscription to the test plan."""
    for category, limit in PLAN_LIMITS.items():
        db_session.add(ResourceLimit(plan_id=PLAN_ID, category=category, limit=limit))
    db_session.add(
        Subscription(
            firm_id=firm.id,
            plan_id=PLAN_ID,
            status=SubscriptionStatus.ACTIVE,
            current_period_start=period.start,
            current_period_end=period.end - timedelta(seconds=1),
        )
    )
    await db_session.commit()
    return firm


@pytest_asyncio.fixture(scope="function")
async def async_client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing with database dependency override.

    Every request gets its own session from the test engine.

    Yields:
        AsyncClient: Async HTTP client for API testing
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        """Override database dependency to use test database."""
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
