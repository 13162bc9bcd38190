import asyncio
import time
import redis.asyncio as aioredis
from blogapi.core.config import settings
from blogapi.core.logging import LogContext, PerformanceLogger

logger = LogContext(__name__)


class RedisClient:
    _instance = None
    _lock = asyncio.Lock()

    def __new__(cls, *args, **kwargs) -> "RedisClient":
        if cls._instance is None:
            cls._instance = super(RedisClient, cls).__new__(cls)
            cls._instance._initialized = False

        return cls._instance

    def __init__(self, redis_url: str = settings.REDIS_URL) -> None:
        if not getattr(self, "_initialized", False):
            self.redis = None
            self.redis_url = redis_url
            self.connection_retries = 0

            logger.info(
                "Redis client created",
                extra={"redis_url": redis_url.split("@")[-1]},  # hide credentials
            )
            self._initialized = True

    async def initialize(self) -> "RedisClient":
        """
        Connect and ping, retrying with backoff

        On failure the client stays usable: every operation becomes a no-op
        returning None so callers degrade to uncached behaviour.
        """
        async with self._lock:
            if self.redis is not None:
                return self

            max_retries = 2
            retry_delay = 0.5
            for attempt in range(max_retries):
                try:
                    connection_start = time.time()
                    client = aioredis.from_url(
                        self.redis_url,
                        decode_responses=True,
                        max_connections=settings.REDIS_POOL_SIZE,
                        health_check_interval=60,
                        socket_connect_timeout=3.0,
                        socket_keepalive=True,
                        retry_on_timeout=True,
                    )
                    await client.ping()
                    self.redis = client
                    self.connection_retries = 0
                    logger.info(
                        "Redis connection established",
                        extra={
                            "connection_time_ms": round(
                                (time.time() - connection_start) * 1000, 2
                            ),
                            "attempts": attempt + 1,
                        },
                    )
                    return self
                except (aioredis.RedisError, ConnectionError, OSError) as e:
                    self.connection_retries += 1
                    logger.warning(
                        "Redis connection attempt failed",
                        extra={
                            "error": str(e),
                            "attempt": attempt + 1,
                            "max_retries": max_retries,
                            "error_type": e.__class__.__name__,
                        },
                    )
                    if attempt < max_retries - 1:
                        await asyncio.sleep(retry_delay * (2**attempt))

            logger.error(
                "Failed to connect to Redis after all attempts",
                extra={"attempts": max_retries},
            )
            return self

    async def get(self, key: str) -> str | None:
        """get value from redis by key with retry logic"""

        async def _operation():
            with PerformanceLogger(logger, f"redis_get_{key}"):
                result = await self.redis.get(key)
                logger.debug(
                    "Redis GET operation",
                    extra={"key": key, "hit": result is not None},
                )
                return result

        return await self._execute_with_retry(_operation)

    async def set(self, key: str, value: str, expire: int = 3600) -> None:
        """set a key-value pair in redis with retry logic"""

        async def _operation():
            with PerformanceLogger(logger, f"redis_set_{key}"):
                await self.redis.set(key, value, ex=expire)

        await self._execute_with_retry(_operation)

    async def delete(self, key: str) -> None:
        async def _operation():
            with PerformanceLogger(logger, f"redis_delete_{key}"):
                await self.redis.delete(key)

        await self._execute_with_retry(_operation)

    async def _execute_with_retry(self, operation, *args, **kwargs):
        """Run a Redis operation, retrying once on connection errors"""
        max_retries = 1
        retry_delay = 0.1

        if self.redis is None:
            await self.initialize()

        if self.redis is None:
            logger.warning("Redis not available, skipping operation")
            return None

        for attempt in range(max_retries + 1):
            try:
                return await operation(*args, **kwargs)
            except (aioredis.RedisError, ConnectionError) as e:
                if attempt < max_retries:
                    logger.warning(
                        "Redis operation failed. Retrying...",
                        extra={
                            "error": str(e),
                            "attempt": attempt + 1,
                            "error_type": e.__class__.__name__,
                        },
                    )
                    await asyncio.sleep(retry_delay * (2**attempt))
                else:
                    logger.error(
                        "Redis operation failed after retries",
                        extra={
                            "error": str(e),
                            "attempt": attempt + 1,
                            "error_type": e.__class__.__name__,
                        },
                    )
                    return None

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            logger.info("Redis connection closed")
