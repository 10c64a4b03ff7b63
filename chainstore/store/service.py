"""
Redis data-access facade.

RedisService exposes typed operations over the Redis primitives used by the
blockchain service: scalar values (JSON encoded), streams, sets and hashes.
Every operation:

    1. runs inside RetryPolicy.execute_with_retry
    2. fetches the live client from RedisConnection
    3. namespaces keys with RedisConfig.key_prefix
    4. classifies failures through RedisErrorHandler (operation + key context)
       and raises the typed error for the retry loop to evaluate

Usage:
    >>> service = create_redis_service(RedisConfig.from_env())
    >>> await service.connect()
    >>> await service.set("balance:SOLANA_USDT:abc", {"amount": "12.5"}, ttl=60)
    >>> await service.get("balance:SOLANA_USDT:abc")
    {'amount': '12.5'}
"""

import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, TypeVar

from chainstore.core.logger import get_logger

from .config import RedisConfig
from .connection import RedisConnection
from .error_handler import RedisErrorHandler
from .errors import ClientNotInitializedError, RedisError
from .health import RedisHealthStatus
from .retry import RetryPolicy
from .serialization import deserialize, serialize

T = TypeVar("T")

StreamEntry = tuple[str, dict[str, str]]
StreamBatch = list[tuple[str, list[StreamEntry]]]


class RedisService:
    """
    Resilient typed access to Redis.

    Attributes:
        connection: The shared connection handle
        error_handler: Classifier used for every failure
        retry_policy: Retry loop wrapping every operation
    """

    def __init__(
        self,
        connection: RedisConnection,
        error_handler: RedisErrorHandler | None = None,
        retry_policy: RetryPolicy | None = None,
        metrics: Any = None,
        logger: Any = None,
    ):
        self.connection = connection
        self.error_handler = error_handler or RedisErrorHandler()
        self.retry_policy = retry_policy or RetryPolicy(
            self.error_handler,
            max_attempts=connection.config.max_retries_per_request,
            base_delay_ms=connection.config.retry_base_delay_ms,
            metrics=metrics,
        )
        self._metrics = metrics
        self._logger = logger or get_logger(__name__)

    @property
    def config(self) -> RedisConfig:
        return self.connection.config

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Connect the underlying handle.

        Raises:
            RedisError: Classified connection failure
        """
        try:
            await self.connection.connect()
        except Exception as e:
            raise self.error_handler.handle_error(e, "connect") from e
        self._logger.info("Redis service connected successfully")

    async def disconnect(self) -> None:
        try:
            await self.connection.disconnect()
        except Exception as e:
            raise self.error_handler.handle_error(e, "disconnect") from e
        self._logger.info("Redis service disconnected successfully")

    def is_connected(self) -> bool:
        return self.connection.is_connected()

    async def get_health(self) -> RedisHealthStatus:
        report = await self.connection.get_health()
        if self._metrics is not None:
            self._metrics.record_health(report)
        return report

    async def __aenter__(self) -> "RedisService":
        await self.connect()
        return self

    async def __aexit__(self, *args) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _key(self, key: str) -> str:
        return f"{self.config.key_prefix}{key}"

    def _unkey(self, key: str) -> str:
        prefix = self.config.key_prefix
        return key[len(prefix):] if prefix and key.startswith(prefix) else key

    async def _client(self) -> Any:
        if self.config.enable_offline_queue and not self.connection.is_connected():
            await self.connection.connect()
        return self.connection.get_client()

    async def _execute(
        self,
        operation: str,
        key: str | None,
        call: Callable[[Any], Awaitable[T]],
        **log_fields: Any,
    ) -> T:
        """Run ``call(client)`` with classification, retry, logging and metrics."""

        async def attempt() -> T:
            try:
                return await call(await self._client())
            except (RedisError, ClientNotInitializedError):
                raise
            except Exception as e:
                raise self.error_handler.handle_error(e, operation, key) from e

        start = time.perf_counter()
        try:
            result = await self.retry_policy.execute_with_retry(attempt)
        except Exception as e:
            self._record(operation, start, success=False)
            if self._metrics is not None and isinstance(e, RedisError):
                self._metrics.record_error(e.type)
            raise

        self._record(operation, start, success=True)
        self._logger.debug(
            f"Redis {operation.upper()} operation successful",
            extra={"operation": operation, "key": key, **log_fields},
        )
        return result

    def _record(self, operation: str, start: float, success: bool) -> None:
        if self._metrics is not None:
            self._metrics.record_operation(operation, time.perf_counter() - start, success)

    # ------------------------------------------------------------------
    # Scalar values
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any:
        """Return the decoded value stored at ``key``, or None if absent."""

        async def call(client):
            value = await client.get(self._key(key))
            return deserialize(value) if value else None

        return await self._execute("get", key, call)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` as JSON; expire after ``ttl`` seconds when given."""

        async def call(client):
            payload = serialize(value)
            if ttl:
                await client.set(self._key(key), payload, ex=ttl)
            else:
                await client.set(self._key(key), payload)

        await self._execute("set", key, call, ttl=ttl)

    async def delete(self, key: str) -> int:
        """Delete ``key``. Returns the number of keys removed (0 or 1)."""

        async def call(client):
            return await client.delete(self._key(key))

        return await self._execute("del", key, call)

    async def exists(self, key: str) -> bool:
        async def call(client):
            return await client.exists(self._key(key)) == 1

        return await self._execute("exists", key, call)

    async def expire(self, key: str, ttl: int) -> bool:
        """Set a TTL in seconds. Returns False if the key does not exist."""

        async def call(client):
            return bool(await client.expire(self._key(key), ttl))

        return await self._execute("expire", key, call, ttl=ttl)

    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds (-1 no expiry, -2 missing key)."""

        async def call(client):
            return await client.ttl(self._key(key))

        return await self._execute("ttl", key, call)

    async def keys(self, pattern: str) -> list[str]:
        """Keys matching ``pattern`` within the namespace, without the prefix."""

        async def call(client):
            return [self._unkey(k) for k in await client.keys(self._key(pattern))]

        return await self._execute("keys", pattern, call)

    async def mget(self, keys: list[str]) -> list[Any]:
        """Decoded values for ``keys`` in input order; missing keys yield None."""
        if not keys:
            return []

        async def call(client):
            values = await client.mget([self._key(k) for k in keys])
            return [deserialize(v) if v else None for v in values]

        return await self._execute("mget", ",".join(keys), call)

    async def mset(self, values: Mapping[str, Any]) -> None:
        if not values:
            return

        async def call(client):
            await client.mset({self._key(k): serialize(v) for k, v in values.items()})

        await self._execute("mset", None, call, keys=list(values))

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    async def add(
        self, stream: str, fields: Mapping[str, str], entry_id: str | None = None
    ) -> str:
        """Append an entry to ``stream``. Returns the entry ID."""

        async def call(client):
            return await client.xadd(self._key(stream), dict(fields), id=entry_id or "*")

        return await self._execute("xadd", stream, call)

    async def read(
        self,
        streams: Mapping[str, str | None] | Iterable[str],
        count: int | None = None,
    ) -> StreamBatch:
        """
        Read entries from one or more streams (non-blocking XREAD).

        Args:
            streams: Mapping of stream name to last-seen ID, or stream names.
                A missing ID means "$" (only entries added after the call).
            count: Maximum entries per stream

        Returns:
            [(stream_name, [(entry_id, fields), ...]), ...]
        """
        offsets = dict(streams) if isinstance(streams, Mapping) else dict.fromkeys(streams)
        if not offsets:
            msg = "read() requires at least one stream"
            raise ValueError(msg)
        request = {self._key(name): (offset or "$") for name, offset in offsets.items()}

        async def call(client):
            batches = await client.xread(request, count=count) or []
            return [(self._unkey(name), entries) for name, entries in batches]

        return await self._execute("xread", ",".join(offsets), call, count=count)

    async def ack(self, stream: str, group: str, entry_id: str) -> int:
        async def call(client):
            return await client.xack(self._key(stream), group, entry_id)

        return await self._execute("xack", f"{stream}:{group}:{entry_id}", call)

    async def create_group(
        self,
        stream: str,
        group: str,
        start_id: str | None = None,
        mkstream: bool = False,
    ) -> bool:
        """
        Create consumer group ``group`` on ``stream``.

        Args:
            start_id: First ID delivered to the group ("$" by default)
            mkstream: Create the stream if it does not exist
        """

        async def call(client):
            return bool(
                await client.xgroup_create(
                    self._key(stream), group, id=start_id or "$", mkstream=mkstream
                )
            )

        return await self._execute("xgroup-create", f"{stream}:{group}", call)

    async def groups(self, stream: str) -> list[dict[str, Any]]:
        async def call(client):
            return list(await client.xinfo_groups(self._key(stream)))

        return await self._execute("xinfo-groups", stream, call)

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    async def sadd(self, key: str, *members: str) -> int:
        async def call(client):
            return await client.sadd(self._key(key), *members)

        return await self._execute("sadd", key, call, members=len(members))

    async def srem(self, key: str, *members: str) -> int:
        async def call(client):
            return await client.srem(self._key(key), *members)

        return await self._execute("srem", key, call, members=len(members))

    async def smembers(self, key: str) -> list[str]:
        async def call(client):
            return list(await client.smembers(self._key(key)))

        return await self._execute("smembers", key, call)

    async def sismember(self, key: str, member: str) -> bool:
        async def call(client):
            return bool(await client.sismember(self._key(key), member))

        return await self._execute("sismember", f"{key}:{member}", call)

    async def scard(self, key: str) -> int:
        async def call(client):
            return await client.scard(self._key(key))

        return await self._execute("scard", key, call)

    # ------------------------------------------------------------------
    # Hashes
    # ------------------------------------------------------------------

    async def hget(self, key: str, field: str) -> str | None:
        async def call(client):
            return await client.hget(self._key(key), field)

        return await self._execute("hget", f"{key}:{field}", call)

    async def hset(self, key: str, field: str, value: str) -> int:
        """Set one field. Returns 1 if the field is new, 0 if it was updated."""

        async def call(client):
            return await client.hset(self._key(key), field, value)

        return await self._execute("hset", f"{key}:{field}", call)

    async def hmset(self, key: str, mapping: Mapping[str, str]) -> bool:
        """Set several fields at once. Returns True once acknowledged."""
        if not mapping:
            return True

        async def call(client):
            await client.hset(self._key(key), mapping=dict(mapping))
            return True

        return await self._execute("hmset", key, call, fields=list(mapping))

    async def hgetall(self, key: str) -> dict[str, str]:
        async def call(client):
            return dict(await client.hgetall(self._key(key)))

        return await self._execute("hgetall", key, call)

    async def hdel(self, key: str, *fields: str) -> int:
        async def call(client):
            return await client.hdel(self._key(key), *fields)

        return await self._execute("hdel", key, call, fields=list(fields))

    async def hexists(self, key: str, field: str) -> bool:
        async def call(client):
            return bool(await client.hexists(self._key(key), field))

        return await self._execute("hexists", f"{key}:{field}", call)

    async def hkeys(self, key: str) -> list[str]:
        async def call(client):
            return list(await client.hkeys(self._key(key)))

        return await self._execute("hkeys", key, call)

    async def hvals(self, key: str) -> list[str]:
        async def call(client):
            return list(await client.hvals(self._key(key)))

        return await self._execute("hvals", key, call)

    async def hlen(self, key: str) -> int:
        async def call(client):
            return await client.hlen(self._key(key))

        return await self._execute("hlen", key, call)


def create_redis_service(
    config: RedisConfig | None = None,
    metrics: Any = None,
) -> RedisService:
    """
    Wire a RedisService with its connection, error handler and retry policy.

    The caller owns the returned service and must call connect() before use
    and disconnect() once before exit.
    """
    config = config or RedisConfig.from_env()
    return RedisService(RedisConnection(config), metrics=metrics)
