# priority_engine/services/redis_client.py
"""
Pooled async Redis client backing the VIP registry and behavior store.

Writes degrade instead of raising: they return False, so a Redis outage
turns registry edits into session-only changes rather than request
failures. Reads raise RedisUnavailableError instead, so callers can tell a
missing key apart from a read that never completed.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar
from urllib.parse import urlsplit

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from priority_engine.config import settings
from priority_engine.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RedisUnavailableError(RuntimeError):
    """Raised by reads when Redis could not answer."""


def _redacted(url: str) -> str:
    # host:port/db only; credentials never reach the logs
    parts = urlsplit(url)
    host = parts.hostname or "?"
    port = f":{parts.port}" if parts.port else ""
    return f"{parts.scheme}://{host}{port}{parts.path}"


class FastRedisClient:
    def __init__(self, url: str | None = None, max_connections: int | None = None):
        self.url = url or settings.REDIS_URL
        self.max_connections = max_connections or settings.REDIS_MAX_CONNECTIONS
        self.pool: ConnectionPool | None = None
        self.client: redis.Redis | None = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Create the pool and verify it with a ping (idempotent)."""
        if self._initialized:
            return

        target = _redacted(self.url)
        try:
            self.pool = ConnectionPool.from_url(
                self.url,
                max_connections=self.max_connections,
                retry_on_timeout=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
                decode_responses=True,
            )
            self.client = redis.Redis(connection_pool=self.pool)
            await self.client.ping()
        except Exception as e:
            logger.error("Redis connection failed", target=target, error=str(e))
            await self._discard_pool()
            raise RuntimeError("Redis initialization failed") from e

        self._initialized = True
        logger.info("Redis pool ready", target=target, max_connections=self.max_connections)

    async def _discard_pool(self) -> None:
        pool, self.pool, self.client = self.pool, None, None
        if pool is None:
            return
        try:
            await pool.disconnect()
        except Exception as e:
            logger.warning("Redis pool disconnect failed", error=str(e))

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
        if self.pool is not None:
            await self.pool.disconnect()
        self.client = None
        self.pool = None
        self._initialized = False
        logger.info("Redis pool closed")

    async def _guarded(
        self,
        operation: str,
        key: str | None,
        call: Callable[[redis.Redis], Awaitable[T]],
        fallback: T,
        raise_on_error: bool = False,
    ) -> T:
        """Run one Redis command, connecting lazily; log and return ``fallback`` on any failure.

        With ``raise_on_error`` the failure is logged and re-raised as
        RedisUnavailableError instead.
        """
        try:
            if not self._initialized:
                logger.warning("Redis used before startup, connecting now", operation=operation)
                await self.initialize()
            return await call(self.client)
        except Exception as e:
            logger.error(
                "Redis operation failed",
                operation=operation,
                key=key[:30] if key else None,
                error_type=type(e).__name__,
                error=str(e),
            )
            if raise_on_error:
                raise RedisUnavailableError(f"{operation} failed") from e
            return fallback

    async def ping(self) -> bool:
        result = await self._guarded("PING", None, lambda c: c.ping(), False)
        return bool(result)

    async def get(self, key: str) -> str | None:
        """Value at ``key``, or None when the key is absent. Raises RedisUnavailableError."""
        result = await self._guarded("GET", key, lambda c: c.get(key), None, raise_on_error=True)
        return result or None

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        """SET, or SETEX when ``ttl_s`` is given. Returns False if the write did not land."""
        if ttl_s:
            result = await self._guarded("SETEX", key, lambda c: c.setex(key, ttl_s, value), False)
        else:
            result = await self._guarded("SET", key, lambda c: c.set(key, value), False)
        return bool(result)

    async def delete(self, key: str) -> bool:
        result = await self._guarded("DEL", key, lambda c: c.delete(key), 0)
        return bool(result)


# Global instance
fast_redis = FastRedisClient()
