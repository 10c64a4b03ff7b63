"""
chainstore store layer.

Resilient access to a single Redis endpoint:
- Error hierarchy and classification
- Retry with exponential backoff
- Connection lifecycle and health reports
- Typed data-access facade
- End-to-end setup validation

Usage:
    from chainstore.store import (
        RedisConfig,
        RedisConnection,
        RedisService,
        RedisValidator,
        create_redis_service,
    )
"""

from .config import RedisConfig
from .connection import ConnectionState, RedisConnection
from .error_handler import RedisErrorHandler
from .errors import (
    ClientNotInitializedError,
    RedisAuthenticationError,
    RedisCommandError,
    RedisConnectionError,
    RedisError,
    RedisErrorType,
    RedisMemoryError,
    RedisTimeoutError,
    RedisUnknownError,
    SerializationError,
    StoreError,
)
from .health import (
    ClientConnections,
    HealthStatus,
    MemoryUsage,
    RedisHealthStatus,
    parse_clients_info,
    parse_memory_info,
)
from .retry import RetryPolicy, backoff_delay_ms
from .serialization import deserialize, serialize
from .service import RedisService, create_redis_service
from .validation import RedisValidator, ValidationReport

__all__ = [
    "ClientConnections",
    "ClientNotInitializedError",
    "ConnectionState",
    "HealthStatus",
    "MemoryUsage",
    "RedisAuthenticationError",
    "RedisCommandError",
    "RedisConfig",
    "RedisConnection",
    "RedisConnectionError",
    "RedisError",
    "RedisErrorHandler",
    "RedisErrorType",
    "RedisHealthStatus",
    "RedisMemoryError",
    "RedisService",
    "RedisTimeoutError",
    "RedisUnknownError",
    "RedisValidator",
    "RetryPolicy",
    "SerializationError",
    "StoreError",
    "ValidationReport",
    "backoff_delay_ms",
    "create_redis_service",
    "deserialize",
    "parse_clients_info",
    "parse_memory_info",
    "serialize",
]
