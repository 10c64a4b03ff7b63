"""
Unified error hierarchy for store operations.

All exceptions raised by the store layer inherit from StoreError.
Transport failures are classified into a RedisError whose subclass
names the failure category, so callers can branch with ``except``
clauses instead of inspecting messages.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any


class StoreError(Exception):
    """
    Base exception for all store operations.

    Carries a human-readable message and optional structured details.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ClientNotInitializedError(StoreError):
    """
    The connection has no live transport.

    Raised by RedisConnection.get_client() when connect() was never called
    or the handle was disconnected. This is a programming error and is never
    retried.
    """

    def __init__(self, message: str = "Redis client not initialized. Call connect() first."):
        super().__init__(message)


class SerializationError(StoreError):
    """
    Failed to serialize or deserialize a stored value.

    Raised when:
    - A value cannot be JSON encoded
    - A stored string is not valid JSON
    """

    def __init__(
        self,
        message: str = "Serialization failed",
        operation: str | None = None,  # "serialize" or "deserialize"
        data_type: str | None = None,
        **details,
    ):
        super().__init__(
            message,
            details={"operation": operation, "data_type": data_type, **details},
        )
        self.operation = operation
        self.data_type = data_type


class RedisErrorType(Enum):
    """Failure category of a classified Redis error."""

    CONNECTION = "CONNECTION_ERROR"
    TIMEOUT = "TIMEOUT_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    MEMORY = "MEMORY_ERROR"
    COMMAND = "COMMAND_ERROR"
    UNKNOWN = "UNKNOWN_ERROR"

    @property
    def retryable(self) -> bool:
        """Transient categories worth another attempt."""
        return self in _RETRYABLE

    @property
    def fail_fast(self) -> bool:
        """Categories that will not heal and must abort retry/startup sequences."""
        return self in _FAIL_FAST


_RETRYABLE = frozenset({RedisErrorType.CONNECTION, RedisErrorType.TIMEOUT, RedisErrorType.UNKNOWN})
_FAIL_FAST = frozenset({RedisErrorType.AUTHENTICATION, RedisErrorType.COMMAND})


class RedisError(StoreError):
    """
    A classified Redis failure.

    Attributes:
        type: The failure category
        message: Human-readable summary
        original_error: The underlying exception (also set as __cause__ when raised)
        context: Read-only mapping with the operation name and key, if known
    """

    error_type: RedisErrorType = RedisErrorType.UNKNOWN

    def __init__(
        self,
        message: str,
        original_error: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ):
        self._context = MappingProxyType(dict(context or {}))
        super().__init__(message, details={"type": self.error_type.value, **self._context})
        self.original_error = original_error

    @property
    def type(self) -> RedisErrorType:
        return self.error_type

    @property
    def context(self) -> MappingProxyType:
        return self._context

    @property
    def retryable(self) -> bool:
        return self.error_type.retryable

    @property
    def fail_fast(self) -> bool:
        return self.error_type.fail_fast

    def with_context(self, **context: Any) -> "RedisError":
        """Return a copy of this error with extra context merged in."""
        merged = {**self._context, **{k: v for k, v in context.items() if v is not None}}
        return type(self)(self.message, self.original_error, merged)


class RedisConnectionError(RedisError):
    """Connection refused or dropped."""

    error_type = RedisErrorType.CONNECTION


class RedisTimeoutError(RedisError):
    """Operation or connect attempt timed out."""

    error_type = RedisErrorType.TIMEOUT


class RedisAuthenticationError(RedisError):
    """Missing or invalid credentials."""

    error_type = RedisErrorType.AUTHENTICATION


class RedisMemoryError(RedisError):
    """Store rejected the write because of its memory limit."""

    error_type = RedisErrorType.MEMORY


class RedisCommandError(RedisError):
    """Unknown command or syntax error."""

    error_type = RedisErrorType.COMMAND


class RedisUnknownError(RedisError):
    """Failure that matched no known category."""

    error_type = RedisErrorType.UNKNOWN


ERROR_CLASSES: dict[RedisErrorType, type[RedisError]] = {
    RedisErrorType.CONNECTION: RedisConnectionError,
    RedisErrorType.TIMEOUT: RedisTimeoutError,
    RedisErrorType.AUTHENTICATION: RedisAuthenticationError,
    RedisErrorType.MEMORY: RedisMemoryError,
    RedisErrorType.COMMAND: RedisCommandError,
    RedisErrorType.UNKNOWN: RedisUnknownError,
}
