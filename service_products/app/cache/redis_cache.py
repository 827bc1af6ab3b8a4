"""
Redis caching layer for the Products Service.

The cache is advisory: every runtime failure is logged, counted and turned
into "absent" (reads) or "not acknowledged" (writes) here, so nothing past
this module ever sees a Redis error. When no Redis URL is configured the
service wires ``NullCache`` instead, which has the same surface and no effect.
"""

from typing import Optional, Union

import redis.asyncio as redis
from shared.logging import get_logger
from shared.errors import CacheError
from shared.metrics import MetricsCollector


class RedisCache:
    """Redis-backed key/value cache with per-entry TTLs."""

    enabled = True

    def __init__(self, redis_url: str, metrics: Optional[MetricsCollector] = None):
        self.redis_url = redis_url
        self.metrics = metrics
        self.logger = get_logger("products.cache.redis")
        self.redis: Optional[redis.Redis] = None

    async def start(self):
        """Connect and ping. A configured cache that cannot be reached is fatal at startup."""
        try:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30
            )
            await self.redis.ping()
            self.logger.info("Redis cache started")

        except Exception as e:
            self.logger.error("Failed to start Redis cache", error=str(e))
            raise CacheError("redis connect error", {"error": str(e)}) from e

    async def stop(self):
        """Stop the Redis cache."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache stopped")

    async def get(self, key: str) -> Optional[str]:
        """Return the cached value, or None when absent, expired or unreachable."""
        try:
            value = await self._client().get(key)
        except Exception as e:
            self._degraded("get", key, e)
            return None

        return value or None

    async def set(self, key: str, value: Union[str, bytes], ttl_seconds: int) -> bool:
        """Store a value with a TTL. Returns False when the write was not acknowledged."""
        try:
            await self._client().set(key, value, ex=ttl_seconds)
        except Exception as e:
            self._degraded("set", key, e)
            return False

        self.logger.debug("Cached value", key=key, ttl=ttl_seconds)
        return True

    async def delete(self, key: str) -> bool:
        """Remove a key. Deleting an absent key counts as success."""
        try:
            await self._client().delete(key)
        except Exception as e:
            self._degraded("delete", key, e)
            return False

        return True

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._client().ping()
            return True
        except Exception:
            return False

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise CacheError("cache not started")
        return self.redis

    def _degraded(self, operation: str, key: str, error: Exception):
        self.logger.warning("Cache operation failed", operation=operation, key=key, error=str(error))
        if self.metrics is not None:
            self.metrics.increment_counter("cache_errors_total", operation=operation)


class NullCache:
    """Stand-in used when caching is disabled: always absent, always acknowledged."""

    enabled = False

    async def start(self):
        get_logger("products.cache").info("Redis disabled (REDIS_URL not set)")

    async def stop(self):
        return None

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: Union[str, bytes], ttl_seconds: int) -> bool:
        return True

    async def delete(self, key: str) -> bool:
        return True

    async def health_check(self) -> bool:
        return True


def build_cache(redis_url: Optional[str], metrics: Optional[MetricsCollector] = None):
    """Pick the cache implementation once, from configuration."""
    if redis_url:
        return RedisCache(redis_url, metrics)
    return NullCache()
