import os
from datetime import datetime, timedelta, timezone

# Keep the module-level engine in app.db.async_session off any real database.
os.environ.setdefault("DATABASE_URL", "sqlite:///./.pytest-token-insights.db")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

from app.db.async_session import build_engine, get_async_db, make_sessionmaker
from app.db.models import Base
from app.main import create_app

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
SESSION_ID = "a" * 64
TOKEN_A = "0x" + "a" * 40
TOKEN_B = "0x" + "b" * 40
TOKEN_C = "0x" + "c" * 40
TOKEN_D = "0x" + "d" * 40


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value

    def advance(self, **kwargs) -> None:
        self._now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def database_url(tmp_path) -> str:
    path = tmp_path / "insights.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return f"sqlite+aiosqlite:///{path}"


@pytest_asyncio.fixture
async def engine(database_url):
    engine = build_engine(database_url, poolclass=NullPool)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    async with make_sessionmaker(engine)() as session:
        yield session


def _client_for(url: str, clock: FakeClock, **client_kwargs) -> TestClient:
    maker = make_sessionmaker(build_engine(url, poolclass=NullPool))

    async def _override_db():
        async with maker() as session:
            yield session

    app = create_app(clock=clock)
    app.dependency_overrides[get_async_db] = _override_db
    return TestClient(app, **client_kwargs)


@pytest.fixture
def client(database_url, clock):
    with _client_for(database_url, clock) as test_client:
        yield test_client


@pytest.fixture
def lenient_client(database_url, clock):
    # Unhandled server errors come back as responses instead of being re-raised.
    with _client_for(database_url, clock, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def broken_client(tmp_path, clock):
    # The parent directory does not exist, so every connection attempt fails.
    url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'insights.db'}"
    with _client_for(url, clock) as test_client:
        yield test_client
