"""
Health report types for the Redis connection.

A RedisHealthStatus is computed on demand by RedisConnection.get_health()
and never cached. The INFO parsers accept both the dict that redis-py
returns and the raw ``key:value`` text of the INFO command.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# Redis does not report a client limit through INFO clients.
MAX_CLIENT_CONNECTIONS = 10000


class HealthStatus(Enum):
    """Store health status."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class MemoryUsage:
    """Memory pressure reported by INFO memory (bytes)."""

    used: int
    max: int
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return {"used": self.used, "max": self.max, "percentage": round(self.percentage, 2)}


@dataclass(frozen=True)
class ClientConnections:
    """Client connection counts reported by INFO clients."""

    connected: int
    max: int = MAX_CLIENT_CONNECTIONS

    def to_dict(self) -> dict[str, Any]:
        return {"connected": self.connected, "max": self.max}


@dataclass(frozen=True)
class RedisHealthStatus:
    """
    Point-in-time health snapshot.

    Attributes:
        status: HEALTHY or UNHEALTHY
        response_time_ms: Round-trip time of the probe (None if no probe ran)
        error: Why the store is unhealthy
        memory: Memory usage (only when healthy)
        connections: Client counts (only when healthy)
        checked_at: Timestamp of the check
    """

    status: HealthStatus
    response_time_ms: float | None = None
    error: str | None = None
    memory: MemoryUsage | None = None
    connections: ClientConnections | None = None
    checked_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        result: dict[str, Any] = {
            "status": self.status.value,
            "checked_at": self.checked_at.isoformat(),
        }
        if self.response_time_ms is not None:
            result["response_time_ms"] = round(self.response_time_ms, 2)
        if self.error is not None:
            result["error"] = self.error
        if self.memory is not None:
            result["memory"] = self.memory.to_dict()
        if self.connections is not None:
            result["connections"] = self.connections.to_dict()
        return result


def _info_fields(info: Mapping[str, Any] | str | bytes) -> Mapping[str, Any]:
    if isinstance(info, bytes):
        info = info.decode("utf-8")
    if isinstance(info, str):
        fields = {}
        for line in info.splitlines():
            if not line or line.startswith("#") or ":" not in line:
                continue
            name, _, value = line.partition(":")
            fields[name.strip()] = value.strip()
        return fields
    if isinstance(info, Mapping):
        return info
    msg = f"Unexpected INFO reply type: {type(info).__name__}"
    raise TypeError(msg)


def parse_memory_info(info: Mapping[str, Any] | str | bytes) -> MemoryUsage:
    """
    Parse an INFO memory reply.

    Raises:
        ValueError: If a numeric field cannot be parsed
        TypeError: If the reply has an unexpected shape
    """
    fields = _info_fields(info)
    used = int(fields.get("used_memory", 0))
    max_memory = int(fields.get("maxmemory", 0))
    percentage = (used / max_memory) * 100 if max_memory > 0 else 0.0
    return MemoryUsage(used=used, max=max_memory, percentage=percentage)


def parse_clients_info(info: Mapping[str, Any] | str | bytes) -> ClientConnections:
    """
    Parse an INFO clients reply.

    Raises:
        ValueError: If connected_clients is not numeric
        TypeError: If the reply has an unexpected shape
    """
    fields = _info_fields(info)
    return ClientConnections(connected=int(fields.get("connected_clients", 0)))
