"""
Classification of raw Redis failures into typed errors.

The classifier matches the lower-cased error message against a fixed,
ordered table of substrings. The first matching row decides the category.
"""

from typing import Any

from redis.exceptions import DataError

from chainstore.core.logger import get_logger

from .errors import ERROR_CLASSES, RedisError, RedisErrorType, SerializationError

# Evaluation order matters: "Timeout connecting to server" is a connection error.
_CLASSIFICATION_RULES: tuple[tuple[RedisErrorType, tuple[str, ...], str], ...] = (
    (RedisErrorType.CONNECTION, ("econnrefused", "connect"), "Redis connection failed"),
    (RedisErrorType.TIMEOUT, ("timeout", "etimedout"), "Redis operation timed out"),
    (RedisErrorType.AUTHENTICATION, ("noauth", "auth"), "Redis authentication failed"),
    (RedisErrorType.MEMORY, ("memory", "oom"), "Redis memory limit exceeded"),
    (RedisErrorType.COMMAND, ("command", "syntax"), "Redis command execution failed"),
)

# Rejected before reaching the server; the same arguments fail every time.
_MALFORMED_REQUEST_RULES: tuple[tuple[type[BaseException], str], ...] = (
    (DataError, "Redis command execution failed"),
    (SerializationError, "Redis value serialization failed"),
)


def _error_text(error: BaseException) -> str:
    try:
        text = str(error)
    except Exception:  # pragma: no cover
        text = ""
    # asyncio.TimeoutError() and friends carry no message
    return text or type(error).__name__


class RedisErrorHandler:
    """
    Turns arbitrary exceptions into RedisError subclasses.

    Example:
        >>> handler = RedisErrorHandler()
        >>> err = handler.classify(Exception("connect ECONNREFUSED 127.0.0.1:6379"))
        >>> err.type
        <RedisErrorType.CONNECTION: 'CONNECTION_ERROR'>
        >>> handler.is_retryable(err)
        True
    """

    def __init__(self, logger: Any = None):
        self._logger = logger or get_logger(__name__)

    def classify(self, error: BaseException) -> RedisError:
        """Return the typed error for ``error``. Never raises."""
        if isinstance(error, RedisError):
            return error

        text = _error_text(error)

        for error_class, summary in _MALFORMED_REQUEST_RULES:
            if isinstance(error, error_class):
                return ERROR_CLASSES[RedisErrorType.COMMAND](f"{summary}: {text}", error)

        lowered = text.lower()

        for error_type, needles, summary in _CLASSIFICATION_RULES:
            if any(needle in lowered for needle in needles):
                return ERROR_CLASSES[error_type](summary, error)

        return ERROR_CLASSES[RedisErrorType.UNKNOWN](f"Redis error: {text}", error)

    def handle_error(
        self,
        error: BaseException,
        operation: str | None = None,
        key: str | None = None,
    ) -> RedisError:
        """
        Classify ``error``, attach operation context and log it.

        Args:
            error: The raw (or already typed) failure
            operation: Name of the facade operation, e.g. "hget"
            key: Key (or composite key description) involved

        Returns:
            The typed error; callers are expected to raise it
        """
        redis_error = self.classify(error).with_context(operation=operation, key=key)
        original = redis_error.original_error or error

        self._logger.error(
            f"Redis operation failed: {redis_error.message}",
            extra={
                "error_type": redis_error.type.value,
                "operation": operation,
                "key": key,
                "original_error": _error_text(original),
            },
        )
        return redis_error

    @staticmethod
    def is_retryable(error: RedisError) -> bool:
        """CONNECTION, TIMEOUT and UNKNOWN errors may succeed on a later attempt."""
        return error.type.retryable

    @staticmethod
    def should_fail_fast(error: RedisError) -> bool:
        """AUTHENTICATION and COMMAND errors will not heal by retrying."""
        return error.type.fail_fast
