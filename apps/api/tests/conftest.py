import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://127.0.0.1:1/0")
os.environ.setdefault("PAYMENT_SIMULATION_DELAY_SECONDS", "0")
os.environ.setdefault("ADDRESS_LOOKUP_DELAY_SECONDS", "0")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
import pytest_asyncio
import redis.asyncio
from redis.exceptions import ConnectionError as RedisConnectionError
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from database import Base, get_db
from main import app
from routers import rate_limit
from services import session_token


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit and sign-out state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    session_token._local_revoked.clear()
    yield
    rate_limit._local_counters.clear()
    session_token._local_revoked.clear()
    app.state.disable_rate_limits = previous


@pytest.fixture(autouse=True)
def redis_unavailable(monkeypatch):
    """Redis is never reachable in tests; callers exercise their local fallbacks."""

    def _refuse(*args, **kwargs):
        raise RedisConnectionError("redis disabled in tests")

    monkeypatch.setattr(redis.asyncio, "from_url", _refuse)


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "urbavisu.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def api_client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client, session_maker

    app.dependency_overrides.pop(get_db, None)
