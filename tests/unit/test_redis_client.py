from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from priority_engine.services.redis_client import FastRedisClient, RedisUnavailableError


def _connected(**commands):
    client = FastRedisClient(url="redis://localhost:6379/0")
    client.client = MagicMock(**commands)
    client._initialized = True
    return client


@pytest.mark.asyncio
async def test_failed_initialize_releases_pool():
    pool = MagicMock()
    pool.disconnect = AsyncMock()
    connection = MagicMock()
    connection.ping = AsyncMock(side_effect=ConnectionError("refused"))

    with patch("priority_engine.services.redis_client.ConnectionPool") as pool_cls, patch(
        "priority_engine.services.redis_client.redis.Redis", return_value=connection
    ):
        pool_cls.from_url.return_value = pool
        client = FastRedisClient(url="redis://localhost:6379/0")

        with pytest.raises(RuntimeError):
            await client.initialize()
        with pytest.raises(RuntimeError):
            await client.initialize()

    assert pool.disconnect.await_count == 2
    assert client.pool is None
    assert client.client is None
    assert client.initialized is False


@pytest.mark.asyncio
async def test_get_absent_key_returns_none():
    client = _connected(get=AsyncMock(return_value=None))

    assert await client.get("priority:vip_contacts:u1") is None


@pytest.mark.asyncio
async def test_get_failure_raises_instead_of_looking_absent():
    client = _connected(get=AsyncMock(side_effect=TimeoutError("read timed out")))

    with pytest.raises(RedisUnavailableError):
        await client.get("priority:vip_contacts:u1")


@pytest.mark.asyncio
async def test_write_failure_returns_false():
    client = _connected(setex=AsyncMock(side_effect=ConnectionError("reset")))

    assert await client.set_with_ttl("priority:behavior:u1", "{}", ttl_s=60) is False
