"""Shared test fixtures for the session token manager."""

import os

# Set test JWT secret before any imports trigger Settings() validation.
os.environ.setdefault("JWT_SESSIONS_JWT_SECRET_KEY", "test-secret-for-unit-tests-0123456789")

import fakeredis.aioredis  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from jwt_sessions.config import get_settings  # noqa: E402
from jwt_sessions.core.session_manager import SessionTokenManager  # noqa: E402
from jwt_sessions.registry.redis_registry import RedisRegistry  # noqa: E402

# ---------------------------------------------------------------------------
# Fake Redis (drop-in async replacement)
# ---------------------------------------------------------------------------


def _make_fake_redis():
    """Create a fakeredis instance that behaves like redis.asyncio.Redis."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client."""
    client = _make_fake_redis()
    yield client
    await client.aclose()


@pytest.fixture()
def registry(redis_client):
    return RedisRegistry(redis_client)


@pytest.fixture()
def manager(registry):
    """Session manager with default prefix and no default key expiry."""
    return SessionTokenManager(registry)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are lru_cached; tests that patch the environment need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
