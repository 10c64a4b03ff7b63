"""
Connection management for the Redis store.

RedisConnection owns exactly one logical connection (one redis.asyncio.Redis
transport at a time). State transitions:

    DISCONNECTED -> CONNECTING -> READY
    READY -> CLOSING -> DISCONNECTED
    CONNECTING -> ERROR -> DISCONNECTED

connect() and disconnect() are serialized through a single asyncio.Lock, so
a disconnect() issued while a connect() is in flight waits for the connect
to settle and then tears the transport down.

Usage:
    >>> connection = RedisConnection(RedisConfig.from_env())
    >>> await connection.connect()
    >>> client = connection.get_client()
    >>> report = await connection.get_health()
    >>> await connection.disconnect()
"""

import asyncio
import socket
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff

from chainstore.core.logger import get_logger

from .config import RedisConfig
from .errors import ClientNotInitializedError
from .health import (
    HealthStatus,
    RedisHealthStatus,
    parse_clients_info,
    parse_memory_info,
)


class ConnectionState(Enum):
    """Lifecycle state of the connection handle."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    CLOSING = "closing"
    ERROR = "error"


StateListener = Callable[[ConnectionState, ConnectionState], None]


class RedisConnection:
    """
    Single logical connection to one Redis endpoint.

    The handle keeps its identity across reconnects; only the transport
    object is replaced.
    """

    def __init__(
        self,
        config: RedisConfig | None = None,
        client_factory: Callable[..., Any] = redis.Redis,
        logger: Any = None,
    ):
        self.config = config or RedisConfig()
        self._client_factory = client_factory
        self._logger = logger or get_logger(__name__)
        self._client: Any = None
        self._state = ConnectionState.DISCONNECTED
        self._lock = asyncio.Lock()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    def on_state_change(self, listener: StateListener) -> None:
        """Register a callback invoked with (old_state, new_state) on every transition."""
        self._listeners.append(listener)

    def _transition(self, new_state: ConnectionState) -> None:
        old_state = self._state
        self._state = new_state
        self._logger.debug(
            f"Redis connection state {old_state.value} -> {new_state.value}",
            extra={"operation": "connection_state"},
        )
        for listener in self._listeners:
            try:
                listener(old_state, new_state)
            except Exception as e:
                self._logger.warning(f"Connection state listener failed: {e}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Establish the connection.

        No-op when already READY. Raises the underlying transport error
        (unclassified) if the connection cannot be established.
        """
        async with self._lock:
            if self.is_connected():
                self._logger.info("Redis already connected")
                return

            if self._client is not None:
                self._logger.info(f"Redis reconnecting to {self.config.address}")
                stale, self._client = self._client, None
                await self._close_quietly(stale)

            self._transition(ConnectionState.CONNECTING)
            client = None
            try:
                client = self._create_client(await self._resolve_host())
                await client.ping()
                self._logger.info("Redis connection established")
                await self._apply_memory_policy(client)
            except Exception as e:
                self._logger.error(f"Failed to connect to Redis: {e}")
                self._transition(ConnectionState.ERROR)
                if client is not None:
                    await self._close_quietly(client)
                self._transition(ConnectionState.DISCONNECTED)
                raise

            self._client = client
            self._transition(ConnectionState.READY)
            self._logger.info(f"Redis connection ready: {self.config.address}")

    async def disconnect(self) -> None:
        """Close the transport and reset to DISCONNECTED. Idempotent."""
        async with self._lock:
            if self._client is None:
                if self._state is not ConnectionState.DISCONNECTED:
                    self._transition(ConnectionState.DISCONNECTED)
                return

            client, self._client = self._client, None
            self._transition(ConnectionState.CLOSING)
            try:
                await client.aclose()
                self._logger.info("Redis disconnected")
            except Exception as e:
                self._logger.error(f"Error disconnecting from Redis: {e}")
                raise
            finally:
                self._transition(ConnectionState.DISCONNECTED)

    def is_connected(self) -> bool:
        return self._state is ConnectionState.READY and self._client is not None

    def get_client(self) -> Any:
        """
        Return the live transport.

        Raises:
            ClientNotInitializedError: If connect() was never called or the
                handle has been disconnected
        """
        if self._client is None:
            raise ClientNotInitializedError
        return self._client

    def _create_client(self, host: str) -> Any:
        config = self.config
        return self._client_factory(
            host=host,
            port=config.port,
            db=config.db,
            password=config.password,
            socket_timeout=config.command_timeout_ms / 1000,
            socket_connect_timeout=config.connect_timeout_ms / 1000,
            socket_keepalive=True,
            health_check_interval=config.keep_alive_ms / 1000,
            # RetryPolicy is the only retry mechanism
            retry=Retry(NoBackoff(), 0),
            retry_on_timeout=False,
            decode_responses=True,
        )

    async def _resolve_host(self) -> str:
        if self.config.family == 0:
            return self.config.host

        loop = asyncio.get_running_loop()
        addresses = await loop.getaddrinfo(
            self.config.host,
            self.config.port,
            family=self.config.socket_family,
            type=socket.SOCK_STREAM,
        )
        return addresses[0][4][0]

    async def _apply_memory_policy(self, client: Any) -> None:
        policy = self.config.max_memory_policy
        if not policy:
            return
        try:
            await client.config_set("maxmemory-policy", policy)
        except Exception as e:
            # Managed deployments commonly disable CONFIG
            self._logger.warning(f"Could not apply maxmemory-policy={policy}: {e}")

    async def _close_quietly(self, client: Any) -> None:
        try:
            await client.aclose()
        except Exception as e:
            self._logger.warning(f"Error closing Redis transport: {e}")

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def get_health(self) -> RedisHealthStatus:
        """
        Probe the store. Never raises.

        Returns:
            HEALTHY with latency, memory and client counts, or UNHEALTHY
            with the reason (and latency when a probe was attempted)
        """
        client = self._client
        if client is None:
            return RedisHealthStatus(
                status=HealthStatus.UNHEALTHY,
                error="Redis client not initialized",
            )

        start = time.perf_counter()
        try:
            pong = await client.ping()
            response_time_ms = (time.perf_counter() - start) * 1000

            if pong is not True and pong != "PONG":
                return RedisHealthStatus(
                    status=HealthStatus.UNHEALTHY,
                    response_time_ms=response_time_ms,
                    error="Redis ping failed",
                )

            memory = parse_memory_info(await client.info("memory"))
            connections = parse_clients_info(await client.info("clients"))

            return RedisHealthStatus(
                status=HealthStatus.HEALTHY,
                response_time_ms=response_time_ms,
                memory=memory,
                connections=connections,
            )
        except Exception as e:
            response_time_ms = (time.perf_counter() - start) * 1000
            self._logger.error(f"Redis health check failed: {e}")
            return RedisHealthStatus(
                status=HealthStatus.UNHEALTHY,
                response_time_ms=response_time_ms,
                error=str(e) or type(e).__name__,
            )

    async def __aenter__(self) -> "RedisConnection":
        await self.connect()
        return self

    async def __aexit__(self, *args) -> None:
        await self.disconnect()
