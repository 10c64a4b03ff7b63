"""
chainstore - resilient Redis access for the blockchain balance service.

Quick Start:
    >>> from chainstore import RedisConfig, create_redis_service
    >>>
    >>> service = create_redis_service(RedisConfig.from_env())
    >>> await service.connect()
    >>> await service.sismember("addresses:solana", "9xQe...")
    True
    >>> report = await service.get_health()
    >>> await service.disconnect()
"""

from chainstore.store import (
    ClientNotInitializedError,
    ConnectionState,
    HealthStatus,
    RedisConfig,
    RedisConnection,
    RedisError,
    RedisErrorHandler,
    RedisErrorType,
    RedisHealthStatus,
    RedisService,
    RedisValidator,
    RetryPolicy,
    StoreError,
    ValidationReport,
    create_redis_service,
)

__version__ = "0.1.0"

__all__ = [
    "ClientNotInitializedError",
    "ConnectionState",
    "HealthStatus",
    "RedisConfig",
    "RedisConnection",
    "RedisError",
    "RedisErrorHandler",
    "RedisErrorType",
    "RedisHealthStatus",
    "RedisService",
    "RedisValidator",
    "RetryPolicy",
    "StoreError",
    "ValidationReport",
    "__version__",
    "create_redis_service",
]
