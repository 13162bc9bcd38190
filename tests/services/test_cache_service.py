import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from blogapi.clients.redis import RedisClient
from blogapi.services.cache_service import CacheService


@pytest.fixture
def failing_redis():
    client = MagicMock(spec=RedisClient)
    client.get = AsyncMock(side_effect=RedisConnectionError("down"))
    client.set = AsyncMock(side_effect=RedisConnectionError("down"))
    client.delete = AsyncMock(side_effect=RedisConnectionError("down"))
    return client


class TestCachedData:
    @pytest.mark.asyncio
    async def test_round_trip(self, cache_service, redis_store):
        assert await cache_service.set_cached_data("key", {"a": 1}, expire=10)

        assert json.loads(redis_store["key"]) == {"a": 1}
        assert await cache_service.get_cached_data("key") == {"a": 1}

    @pytest.mark.asyncio
    async def test_missing_key_returns_default(self, cache_service):
        assert await cache_service.get_cached_data("nope", default="x") == "x"

    @pytest.mark.asyncio
    async def test_invalidate(self, cache_service, redis_store):
        redis_store["key"] = json.dumps("value")

        assert await cache_service.invalidate("key")
        assert "key" not in redis_store

    @pytest.mark.asyncio
    async def test_redis_errors_are_swallowed(self, failing_redis):
        service = CacheService(failing_redis)

        assert await service.get_cached_data("key") is None
        assert await service.set_cached_data("key", "value") is False
        assert await service.invalidate("key") is False


class TestGetOrSet:
    @pytest.mark.asyncio
    async def test_miss_builds_and_stores(self, cache_service, mock_redis_client):
        producer = AsyncMock(return_value="built")

        assert await cache_service.get_or_set("k", producer, expire=60) == "built"

        producer.assert_awaited_once()
        mock_redis_client.set.assert_awaited_once_with("k", '"built"', expire=60)

    @pytest.mark.asyncio
    async def test_hit_skips_producer(self, cache_service, redis_store):
        redis_store["k"] = json.dumps("cached")
        producer = AsyncMock()

        assert await cache_service.get_or_set("k", producer) == "cached"
        producer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_flight(self, cache_service):
        calls = 0

        async def producer():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            return "value"

        results = await asyncio.gather(
            *(cache_service.get_or_set("k", producer) for _ in range(10))
        )

        assert calls == 1
        assert results == ["value"] * 10

    @pytest.mark.asyncio
    async def test_separate_keys_build_separately(self, cache_service):
        producer = AsyncMock(return_value="v")

        await asyncio.gather(
            cache_service.get_or_set("a", producer),
            cache_service.get_or_set("b", producer),
        )

        assert producer.await_count == 2

    @pytest.mark.asyncio
    async def test_builds_without_cache_when_redis_down(self, failing_redis):
        service = CacheService(failing_redis)
        producer = AsyncMock(return_value="fresh")

        assert await service.get_or_set("k", producer) == "fresh"
        assert await service.get_or_set("k", producer) == "fresh"
        assert producer.await_count == 2

    @pytest.mark.asyncio
    async def test_producer_error_propagates(self, cache_service, redis_store):
        producer = AsyncMock(side_effect=ValueError("boom"))

        with pytest.raises(ValueError):
            await cache_service.get_or_set("k", producer)

        assert "k" not in redis_store
