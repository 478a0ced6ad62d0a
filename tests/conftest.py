"""Shared fixtures: a file-backed SQLite database per test and a controllable clock."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./seatclaim-test.db")
os.environ.setdefault("PAYMENT_PROCESSING_DELAY_SECONDS", "0")
os.environ.setdefault("SWEEP_ENABLED", "false")

from datetime import datetime, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from seatclaim.api.v1.dependencies import get_clock  # noqa: E402
from seatclaim.clock import Clock, utcnow  # noqa: E402
from seatclaim.database import get_db, get_session_factory, init_db  # noqa: E402
from seatclaim.main import app  # noqa: E402
from seatclaim.models.event import Event, EventStatus  # noqa: E402


class FakeClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or utcnow().replace(microsecond=0)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class FakeRedis:
    """Just enough of redis.asyncio.Redis for DistributedLock."""

    def __init__(self):
        self.store: dict[str, str] = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def register_script(self, script):
        async def release(keys, args):
            if self.store.get(keys[0]) == args[0]:
                del self.store[keys[0]]
                return 1
            return 0

        return release


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture(scope="function")
async def async_engine(tmp_path):
    """File database so concurrent sessions use separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'seatclaim.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_event(session_factory, clock):
    """Factory for events, starting a week from the fake clock by default."""

    async def _make_event(
        capacity: int = 10,
        starts_in: timedelta = timedelta(days=7),
        status: EventStatus = EventStatus.ACTIVE,
        organizer_id: str = "org-1",
    ) -> Event:
        async with session_factory() as session:
            event = Event(
                name="Test Concert",
                organizer_id=organizer_id,
                start_date=clock.now() + starts_in,
                capacity=capacity,
                status=status,
                currency="INR",
                tickets_sold=0,
                attendees=0,
                revenue=Decimal("0"),
            )
            session.add(event)
            await session.commit()
            await session.refresh(event)
            return event

    return _make_event


@pytest.fixture
def get_event(session_factory):
    """Re-read an event in a fresh session."""

    async def _get_event(event_id: int) -> Event:
        async with session_factory() as session:
            return await session.get(Event, event_id)

    return _get_event


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture(scope="function")
async def async_client(session_factory, clock):
    """Create async test client."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

