"""
Integration tests for the store layer against a real Redis (testcontainers).

Requires:
    - Docker running
    - testcontainers[redis] installed

Run with:
    pytest -m integration tests/integration/test_redis_store_integration.py -v

Skip during regular runs (default):
    pytest tests/  # These tests are excluded by default
"""

import json
import uuid

import pytest

from chainstore.repositories import AddressRepository, CoinRepository
from chainstore.store.config import RedisConfig
from chainstore.store.errors import RedisCommandError
from chainstore.store.service import create_redis_service
from chainstore.store.validation import RedisValidator

# Skip if testcontainers not available
pytest.importorskip("testcontainers")

# Mark all tests in this module as integration tests (excluded by default)
pytestmark = pytest.mark.integration


def _config(base: RedisConfig) -> RedisConfig:
    """Fresh namespace per test so tests do not see each other's keys."""
    return RedisConfig(
        host=base.host,
        port=base.port,
        family=base.family,
        key_prefix=f"it:{uuid.uuid4().hex[:8]}:",
        retry_base_delay_ms=base.retry_base_delay_ms,
    )


class TestRedisStoreIntegration:
    """Uses the session-scoped redis_container fixture from conftest.py."""

    @pytest.mark.asyncio
    async def test_health(self, redis_container_config):
        async with create_redis_service(_config(redis_container_config)) as service:
            report = await service.get_health()

        assert report.is_healthy
        assert report.memory.used > 0
        assert report.connections.connected >= 1

    @pytest.mark.asyncio
    async def test_full_validation(self, redis_container_config):
        service = create_redis_service(_config(redis_container_config))
        try:
            report = await RedisValidator(
                service, iterations=20, latency_threshold_ms=50.0
            ).validate_full_setup()
        finally:
            await service.disconnect()

        assert report.success, report.details

    @pytest.mark.asyncio
    async def test_scalar_and_prefix(self, redis_container_config):
        config = _config(redis_container_config)
        async with create_redis_service(config) as service:
            await service.set("balance:a", {"amount": "1.5"}, ttl=30)
            await service.set("balance:b", {"amount": "2"})

            assert await service.get("balance:a") == {"amount": "1.5"}
            assert 0 < await service.ttl("balance:a") <= 30
            assert sorted(await service.keys("balance:*")) == ["balance:a", "balance:b"]
            assert await service.mget(["balance:a", "missing"]) == [{"amount": "1.5"}, None]

            raw = service.connection.get_client()
            assert await raw.exists(f"{config.key_prefix}balance:a") == 1

    @pytest.mark.asyncio
    async def test_streams(self, redis_container_config):
        async with create_redis_service(_config(redis_container_config)) as service:
            await service.create_group("events", "workers", "0", mkstream=True)
            entry_id = await service.add("events", {"type": "deposit"})

            [(stream, entries)] = await service.read({"events": "0"})
            assert stream == "events"
            first_id, fields = entries[0]
            assert first_id == entry_id
            assert fields == {"type": "deposit"}
            assert [g["name"] for g in await service.groups("events")] == ["workers"]

            with pytest.raises(RedisCommandError):
                await service.create_group("never-created", "workers")

    @pytest.mark.asyncio
    async def test_repositories(self, redis_container_config):
        async with create_redis_service(_config(redis_container_config)) as service:
            await service.sadd("addresses:solana", "addr-1")
            await service.hset("coins", "SOLANA_SOL", json.dumps({"key": "SOLANA_SOL"}))

            assert await AddressRepository(service).is_address_monitored("SOLANA", "addr-1")
            assert await CoinRepository(service).find_by_key("SOLANA_SOL") == {"key": "SOLANA_SOL"}
            assert len(await CoinRepository(service).find_all()) == 1

    @pytest.mark.asyncio
    async def test_malformed_requests_fail_without_retry(self, redis_container_config):
        sleeps = []

        async def record_sleep(seconds):
            sleeps.append(seconds)

        async with create_redis_service(_config(redis_container_config)) as service:
            service.retry_policy._sleep = record_sleep
            client = service.connection.get_client()
            await client.set(service._key("bad"), "{not json")

            assert await service.hmset("h", {}) is True
            with pytest.raises(RedisCommandError):
                await service.hset("h", "f", None)
            with pytest.raises(RedisCommandError):
                await service.get("bad")

        assert sleeps == []
