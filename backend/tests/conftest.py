"""
Pytest fixtures for test database, client, and capacity ledgers.

Each test gets its own file-backed SQLite database. Every HTTP request opens
a fresh session from the test session factory, so concurrent requests really
race on the store the way they do in production.
"""

import os

# Must be set before the application modules read their settings
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./studio_booking_test.db")
os.environ.setdefault("COMPENSATION_RETRY_DELAY", "0")

from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from studio_booking.main import app
from studio_booking.db.base import Base
from studio_booking.db.session import get_db
from studio_booking.models.event import Event
from studio_booking.models.instructor import Instructor
from studio_booking.services.capacity import CapacityLedger, create_ledger, get_ledger


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a throwaway database, yield a session factory, dispose."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}",
        echo=False,
        # Writers queue on SQLite's database lock instead of failing fast
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture(params=["conditional", "locked"])
def ledger(request) -> CapacityLedger:
    """Run ledger-dependent tests against every strategy."""
    return create_ledger(request.param)


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, ledger) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session from the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger] = lambda: ledger

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_instructor(db_session: AsyncSession) -> Instructor:
    instructor = Instructor(name="Maya Haddad")
    db_session.add(instructor)
    await db_session.commit()
    await db_session.refresh(instructor)
    return instructor


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession, test_instructor: Instructor):
    """Factory: create an event with the given capacity (and optional starting counter)."""

    async def _make_event(max_seats: int = 2, booked: int = 0, title: str = "Morning Flow") -> Event:
        event = Event(
            title=title,
            date=date.today() + timedelta(days=7),
            time="09:30",
            duration=60,
            max_seats=max_seats,
            booked=booked,
            instructor_id=test_instructor.id,
        )
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return _make_event


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """An event with 2 seats, none booked."""
    return await make_event(max_seats=2)

