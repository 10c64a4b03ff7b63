"""
Redis connection configuration.

Usage:
    >>> from chainstore.store.config import RedisConfig
    >>>
    >>> config = RedisConfig.from_env()
    >>> config.key_prefix
    'mce:blockchain:'
"""

import socket
from dataclasses import dataclass, field

from chainstore.core.env import EnvManager

_ADDRESS_FAMILIES = {
    0: socket.AF_UNSPEC,
    4: socket.AF_INET,
    6: socket.AF_INET6,
}


@dataclass(frozen=True)
class RedisConfig:
    """
    Immutable Redis connection settings.

    Attributes:
        host: Redis host
        port: Redis port
        password: Optional password (AUTH)
        db: Logical database index
        max_retries_per_request: Default attempt bound of the retry policy
        connect_timeout_ms: Timeout for establishing the connection
        command_timeout_ms: Per-command socket timeout
        keep_alive_ms: Idle interval after which the connection is probed
        enable_offline_queue: Connect on demand instead of failing while disconnected
        key_prefix: Namespace prepended to every key
        family: Address family (4, 6, or 0 for the resolver default)
        max_memory_policy: Eviction policy hint applied on connect (None to skip)
        retry_base_delay_ms: Base delay of the exponential backoff
    """

    host: str = "localhost"
    port: int = 6379
    password: str | None = field(default=None, repr=False)
    db: int = 0
    max_retries_per_request: int = 3
    connect_timeout_ms: int = 10000
    command_timeout_ms: int = 5000
    keep_alive_ms: int = 30000
    enable_offline_queue: bool = False
    key_prefix: str = "mce:blockchain:"
    family: int = 4
    max_memory_policy: str | None = "allkeys-lru"
    retry_base_delay_ms: int = 1000

    def __post_init__(self) -> None:
        if self.family not in _ADDRESS_FAMILIES:
            msg = f"family must be one of 0, 4 or 6, got {self.family}"
            raise ValueError(msg)
        if self.max_retries_per_request < 1:
            msg = "max_retries_per_request must be >= 1"
            raise ValueError(msg)

    @property
    def socket_family(self) -> int:
        return _ADDRESS_FAMILIES[self.family]

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}/{self.db}"

    @classmethod
    def from_env(cls, env: EnvManager | None = None) -> "RedisConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_DB,
            REDIS_MAX_RETRIES_PER_REQUEST, REDIS_CONNECT_TIMEOUT,
            REDIS_COMMAND_TIMEOUT, REDIS_KEEP_ALIVE, REDIS_ENABLE_OFFLINE_QUEUE,
            REDIS_KEY_PREFIX, REDIS_FAMILY, REDIS_MAX_MEMORY_POLICY,
            REDIS_RETRY_BASE_DELAY
        """
        env = env or EnvManager()
        return cls(
            host=env.get("REDIS_HOST", "localhost"),  # type: ignore[arg-type]
            port=env.get_int("REDIS_PORT", 6379),
            password=env.get("REDIS_PASSWORD"),
            db=env.get_int("REDIS_DB", 0),
            max_retries_per_request=env.get_int("REDIS_MAX_RETRIES_PER_REQUEST", 3),
            connect_timeout_ms=env.get_int("REDIS_CONNECT_TIMEOUT", 10000),
            command_timeout_ms=env.get_int("REDIS_COMMAND_TIMEOUT", 5000),
            keep_alive_ms=env.get_int("REDIS_KEEP_ALIVE", 30000),
            enable_offline_queue=env.get_bool("REDIS_ENABLE_OFFLINE_QUEUE", False),
            key_prefix=env.get("REDIS_KEY_PREFIX", "mce:blockchain:"),  # type: ignore[arg-type]
            family=env.get_int("REDIS_FAMILY", 4),
            max_memory_policy=env.get("REDIS_MAX_MEMORY_POLICY", "allkeys-lru"),
            retry_base_delay_ms=env.get_int("REDIS_RETRY_BASE_DELAY", 1000),
        )
