"""
End-to-end self-test of the Redis infrastructure.

RedisValidator exercises every operation family through RedisService, in
order, stopping at the first stage that fails:

    connection -> basic_operations -> stream_operations -> set_operations
    -> hash_operations -> error_handling -> performance

Each stage removes the keys it created whatever the outcome. The validator
does not retry anything itself; transient failures may still be masked by
the retry policy inside RedisService.

Usage:
    >>> report = await RedisValidator(service).validate_full_setup()
    >>> report.success
    True
    >>> report.details["performance"]
    True
"""

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from chainstore.core.logger import get_logger

from .connection import RedisConnection
from .service import RedisService

STAGES = (
    "connection",
    "basic_operations",
    "stream_operations",
    "set_operations",
    "hash_operations",
    "error_handling",
    "performance",
)


@dataclass
class ValidationReport:
    """Overall result plus one boolean per stage (and "error" if the run raised)."""

    success: bool
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "details": dict(self.details)}


class RedisValidator:
    """
    Startup diagnostics for the store layer.

    Args:
        service: The facade under test
        connection: Connection handle to probe (defaults to service.connection)
        iterations: Concurrent set/get/delete cycles in the performance stage
        latency_threshold_ms: Maximum average milliseconds per operation
    """

    def __init__(
        self,
        service: RedisService,
        connection: RedisConnection | None = None,
        iterations: int = 100,
        latency_threshold_ms: float = 10.0,
        logger: Any = None,
    ):
        self.service = service
        self.connection = connection or service.connection
        self.iterations = iterations
        self.latency_threshold_ms = latency_threshold_ms
        self._logger = logger or get_logger(__name__)
        self._namespace = f"test:validation:{uuid.uuid4().hex[:8]}"

    async def validate_full_setup(self) -> ValidationReport:
        results: dict[str, Any] = dict.fromkeys(STAGES, False)
        checks: dict[str, Callable[[], Awaitable[bool]]] = {
            "connection": self.validate_connection,
            "basic_operations": self.validate_basic_operations,
            "stream_operations": self.validate_stream_operations,
            "set_operations": self.validate_set_operations,
            "hash_operations": self.validate_hash_operations,
            "error_handling": self.validate_error_handling,
            "performance": self.validate_performance,
        }

        self._logger.info("Starting Redis infrastructure validation...")
        try:
            for stage in STAGES:
                results[stage] = await checks[stage]()
                if not results[stage]:
                    break
        except Exception as e:
            self._logger.error(f"Redis validation failed with error: {e}")
            return ValidationReport(success=False, details={**results, "error": str(e)})

        success = all(results[stage] is True for stage in STAGES)
        if success:
            self._logger.info("Redis infrastructure validation completed successfully")
        else:
            self._logger.warning(f"Redis infrastructure validation completed with issues: {results}")
        return ValidationReport(success=success, details=results)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def validate_connection(self) -> bool:
        try:
            if not self.connection.is_connected():
                await self.service.connect()

            health = await self.service.get_health()
            self._logger.info(
                f"Connection validation result: {health.status.value}",
                extra={"duration_ms": health.response_time_ms},
            )
            return health.is_healthy
        except Exception as e:
            self._logger.error(f"Connection validation failed: {e}")
            return False

    async def validate_basic_operations(self) -> bool:
        key = f"{self._namespace}:connection"
        value = {"timestamp": int(time.time() * 1000), "test": True}
        try:
            await self.service.set(key, value, ttl=10)

            retrieved = await self.service.get(key)
            if retrieved != value:
                return self._stage_failed("basic_operations", "GET returned a different value")
            if not await self.service.exists(key):
                return self._stage_failed("basic_operations", "EXISTS returned false")

            await self.service.delete(key)
            if await self.service.exists(key):
                return self._stage_failed("basic_operations", "DEL left the key in place")

            self._logger.info("Redis basic operations validation successful")
            return True
        except Exception as e:
            return self._stage_failed("basic_operations", e)
        finally:
            await self._cleanup(key)

    async def validate_stream_operations(self) -> bool:
        stream = f"{self._namespace}:stream"
        try:
            await self.service.create_group(stream, "test-group", "0", mkstream=True)
            message_id = await self.service.add(
                stream, {"type": "test", "timestamp": str(int(time.time() * 1000))}
            )
            batches = await self.service.read({stream: "0"}, count=1)
            entries = [entry for _, stream_entries in batches for entry in stream_entries]

            success = bool(message_id) and len(entries) > 0
            self._logger.info(
                f"Stream operations validation: success={success}, "
                f"message_id={message_id}, messages={len(entries)}"
            )
            return success
        except Exception as e:
            return self._stage_failed("stream_operations", e)
        finally:
            await self._cleanup(stream)

    async def validate_set_operations(self) -> bool:
        key = f"{self._namespace}:set"
        members = ["member1", "member2", "member3"]
        try:
            added = await self.service.sadd(key, *members)
            is_member = await self.service.sismember(key, "member1")
            all_members = await self.service.smembers(key)
            size = await self.service.scard(key)

            success = (
                added == len(members)
                and is_member
                and set(all_members) == set(members)
                and size == len(members)
            )
            self._logger.info(
                f"Set operations validation: success={success}, added={added}, "
                f"is_member={is_member}, members={len(all_members)}, size={size}"
            )
            return success
        except Exception as e:
            return self._stage_failed("set_operations", e)
        finally:
            await self._cleanup(key)

    async def validate_hash_operations(self) -> bool:
        key = f"{self._namespace}:hash"
        data = {"field1": "value1", "field2": "value2", "field3": "value3"}
        try:
            await self.service.hmset(key, data)
            field1 = await self.service.hget(key, "field1")
            field2_exists = await self.service.hexists(key, "field2")
            all_fields = await self.service.hgetall(key)
            field_count = await self.service.hlen(key)
            deleted = await self.service.hdel(key, "field3")
            field3_exists = await self.service.hexists(key, "field3")

            success = (
                field1 == "value1"
                and field2_exists
                and all_fields == data
                and field_count == len(data)
                and deleted == 1
                and not field3_exists
            )
            self._logger.info(
                f"Hash operations validation: success={success}, fields={len(all_fields)}, "
                f"hlen={field_count}, deleted={deleted}"
            )
            return success
        except Exception as e:
            return self._stage_failed("hash_operations", e)
        finally:
            await self._cleanup(key)

    async def validate_error_handling(self) -> bool:
        # A missing key is a normal miss, not an error
        key = f"{self._namespace}:nonexistent:{int(time.time() * 1000)}"
        try:
            return await self.service.get(key) is None
        except Exception as e:
            return self._stage_failed("error_handling", e)

    async def validate_performance(self) -> bool:
        base = f"{self._namespace}:performance"
        iterations = self.iterations

        async def cycle(index: int) -> bool:
            key = f"{base}:{index}"
            value = {"data": "test", "index": index}
            await self.service.set(key, value)
            retrieved = await self.service.get(key)
            await self.service.delete(key)
            return retrieved == value

        start = time.perf_counter()
        outcomes = await asyncio.gather(
            *(cycle(i) for i in range(iterations)), return_exceptions=True
        )
        total_ms = (time.perf_counter() - start) * 1000

        failures = [o for o in outcomes if o is not True]
        if failures:
            await self._cleanup(
                *(f"{base}:{i}" for i, outcome in enumerate(outcomes) if outcome is not True)
            )
            first_error = next((o for o in failures if isinstance(o, BaseException)), None)
            return self._stage_failed(
                "performance",
                first_error or f"{len(failures)} of {iterations} cycles returned a wrong value",
            )

        operations = iterations * 3
        avg_ms = total_ms / operations if operations else 0.0
        success = avg_ms < self.latency_threshold_ms
        self._logger.info(
            f"Performance validation: success={success}, iterations={iterations}, "
            f"total={total_ms:.0f}ms, avg={avg_ms:.2f}ms, "
            f"ops/sec={operations / (total_ms / 1000) if total_ms else 0:.0f}",
            extra={"duration_ms": total_ms},
        )
        return success

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _stage_failed(self, stage: str, reason: Any) -> bool:
        self._logger.error(f"{stage} validation failed: {reason}")
        return False

    async def _cleanup(self, *keys: str) -> None:
        outcomes = await asyncio.gather(
            *(self.service.delete(key) for key in keys), return_exceptions=True
        )
        for key, outcome in zip(keys, outcomes):
            if isinstance(outcome, Exception):
                self._logger.warning(f"Validation cleanup of {key} failed: {outcome}")
