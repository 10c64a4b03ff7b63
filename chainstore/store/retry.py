"""
Retry with exponential backoff for store operations.

Every facade call is executed through RetryPolicy.execute_with_retry.
Attempts are strictly sequential: attempt N+1 starts only after attempt N
failed and its backoff delay elapsed.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from chainstore.core.logger import get_logger

from .error_handler import RedisErrorHandler
from .errors import RedisError, StoreError

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 1000.0


def backoff_delay_ms(base_delay_ms: float, attempt: int) -> float:
    """Delay after the 1-indexed ``attempt`` failed: base * 2^(attempt-1)."""
    return base_delay_ms * (2 ** (attempt - 1))


class RetryPolicy:
    """
    Exponential backoff retry loop.

    Retryable typed errors (CONNECTION, TIMEOUT, UNKNOWN) are retried until
    ``max_attempts`` attempts have been made. Anything else is raised on
    first occurrence. Library errors that are not transport failures
    (serialization problems, a missing client) pass through unclassified.

    Example:
        >>> policy = RetryPolicy(RedisErrorHandler(), max_attempts=3, base_delay_ms=1000)
        >>> value = await policy.execute_with_retry(lambda: client.get("k"))
    """

    def __init__(
        self,
        error_handler: RedisErrorHandler | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: float = DEFAULT_BASE_DELAY_MS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        metrics: Any = None,
        logger: Any = None,
    ):
        self._validate(max_attempts, base_delay_ms)
        self.error_handler = error_handler or RedisErrorHandler()
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self._sleep = sleep
        self._metrics = metrics
        self._logger = logger or get_logger(__name__)

    @staticmethod
    def _validate(max_attempts: int, base_delay_ms: float) -> None:
        if max_attempts < 1:
            msg = f"max_attempts must be >= 1, got {max_attempts}"
            raise ValueError(msg)
        if base_delay_ms < 0:
            msg = f"base_delay_ms must be >= 0, got {base_delay_ms}"
            raise ValueError(msg)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
        base_delay_ms: float | None = None,
    ) -> T:
        """
        Run ``operation`` until it succeeds or a retry is not allowed.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            max_attempts: Override of the policy bound for this call
            base_delay_ms: Override of the policy base delay for this call

        Returns:
            The operation result

        Raises:
            RedisError: The typed error of the last attempt
            StoreError: Non-transport library errors, unchanged
        """
        max_attempts = self.max_attempts if max_attempts is None else max_attempts
        base_delay_ms = self.base_delay_ms if base_delay_ms is None else base_delay_ms
        self._validate(max_attempts, base_delay_ms)

        attempt = 1
        while True:
            try:
                return await operation()
            except StoreError as e:
                if not isinstance(e, RedisError):
                    raise
                redis_error = e
            except Exception as e:
                redis_error = self.error_handler.handle_error(e)

            if attempt >= max_attempts or not self.error_handler.is_retryable(redis_error):
                raise redis_error from redis_error.original_error

            delay_ms = backoff_delay_ms(base_delay_ms, attempt)
            self._logger.warning(
                f"Retrying Redis operation in {delay_ms:.0f}ms "
                f"(attempt {attempt}/{max_attempts})",
                extra={
                    "error_type": redis_error.type.value,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                },
            )
            if self._metrics is not None:
                self._metrics.record_retry(redis_error.type)

            await self._sleep(delay_ms / 1000)
            attempt += 1
