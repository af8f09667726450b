from datetime import UTC, datetime

import pytest

from priority_engine.auth.verify import current_user_id
from priority_engine.services.redis_client import RedisUnavailableError


@pytest.fixture
def auth_override():
    def _override():
        return "user-123"

    return _override


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}
        self.writes = 0

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        self.store[key] = value
        self.writes += 1
        return True

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def delete(self, key: str) -> bool:
        return self.store.pop(key, None) is not None


class FailingRedis(FakeRedis):
    """Reads work, writes report failure the way FastRedisClient does when Redis is down."""

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        return False


class UnreadableRedis(FakeRedis):
    """Holds data but every read fails, like FastRedisClient.get during an outage."""

    async def get(self, key: str) -> str | None:
        raise RedisUnavailableError("GET failed")


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def failing_redis():
    return FailingRedis()


@pytest.fixture
def unreadable_redis(fake_redis):
    # Shares fake_redis's data so tests can seed it there first.
    client = UnreadableRedis()
    client.store = fake_redis.store
    return client


@pytest.fixture
def apply_auth_override(auth_override):
    def _apply(app):
        app.dependency_overrides[current_user_id] = auth_override

    return _apply


@pytest.fixture
def utc_now():
    return datetime(2024, 5, 15, 15, 0, tzinfo=UTC)
