import asyncio
import json
from typing import Any, Awaitable, Callable, Dict

from blogapi.clients.redis import RedisClient
from blogapi.core.logging import LogContext
from blogapi.core.metrics import cache_hits, cache_misses

logger = LogContext(__name__)


class CacheService:
    # one lock per key for the whole process, shared by every CacheService
    _key_locks: Dict[str, asyncio.Lock] = {}

    def __init__(self, redis_client: RedisClient):
        self.redis = redis_client

    async def get_cached_data(self, key: str, default=None) -> Any | None:
        """
        Get data from cache with given key

        Args:
            key: The cache key
            default: Default value if key not found

        Returns:
            Deserialized data or default value
        """
        try:
            cached = await self.redis.get(key)
            if cached is not None:
                return json.loads(cached)
            return default
        except Exception as e:
            logger.error(
                "Error retrieving from cache",
                extra={"key": key, "error": str(e), "error_type": e.__class__.__name__},
                exc_info=True,
            )
            return default

    async def set_cached_data(self, key: str, data: Any, expire: int = 300) -> bool:
        """
        Set data in cache with the given key and expiration time

        Args:
            key: The cache key
            data: The data to cache (will be JSON serialized)
            expire: Expiration time in seconds

        Returns:
            True if successful, False otherwise
        """
        try:
            await self.redis.set(key, json.dumps(data), expire=expire)
            return True
        except Exception as e:
            logger.error(
                "Error setting cache",
                extra={"key": key, "error": str(e), "error_type": e.__class__.__name__},
                exc_info=True,
            )
            return False

    async def invalidate(self, key: str) -> bool:
        try:
            await self.redis.delete(key)
            return True
        except Exception as e:
            logger.error(
                "Error invalidating cache",
                extra={"key": key, "error": str(e), "error_type": e.__class__.__name__},
                exc_info=True,
            )
            return False

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._key_locks.get(key)
        if lock is None:
            lock = self._key_locks.setdefault(key, asyncio.Lock())
        return lock

    async def get_or_set(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        expire: int = 300,
    ) -> Any:
        """
        Return the cached value for ``key``, building it on a miss

        Within this process at most one ``producer`` call is in flight per
        key: concurrent callers wait on the key lock and then read the value
        the first caller stored. Separate processes may still build the same
        key concurrently. Producer errors propagate and nothing is cached.

        Args:
            key: The cache key
            producer: Coroutine function building the value
            expire: Expiration time in seconds

        Returns:
            The cached or freshly built value
        """
        cached = await self.get_cached_data(key)
        if cached is not None:
            cache_hits.labels(cache_type=key).inc()
            return cached

        async with self._lock_for(key):
            cached = await self.get_cached_data(key)
            if cached is not None:
                cache_hits.labels(cache_type=key).inc()
                return cached

            cache_misses.labels(cache_type=key).inc()
            logger.debug("Cache miss, building value", extra={"key": key})
            value = await producer()
            await self.set_cached_data(key, value, expire=expire)
            return value
