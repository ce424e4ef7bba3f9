"""
Retry with Exponential Backoff

Wraps a fallible coroutine so transient backend failures (network blips,
throttling) are retried without the caller writing loop logic.

Cancellation is cooperative: the wait between attempts is an asyncio sleep,
so cancelling the awaiting task (or hitting an asyncio.wait_for deadline)
interrupts it immediately and the cancellation propagates unchanged.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .errors import AuthenticationError, ModelNotFoundError, ProviderNotAvailableError

logger = logging.getLogger(__name__)

# Errors that cannot succeed on a repeated attempt
TERMINAL_ERRORS: tuple[type[BaseException], ...] = (
    AuthenticationError,
    ModelNotFoundError,
    ProviderNotAvailableError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff policy for retry_with_backoff.

    Attributes:
        max_attempts: Total number of attempts, including the first
        initial_delay: Delay in seconds after the first failure
        max_delay: Upper bound for any single delay
        backoff_rate: Multiplier applied to the delay after each failure
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_rate: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """
        Delay to wait after the given failed attempt.

        Args:
            attempt: Zero-based index of the attempt that just failed

        Returns:
            Delay in seconds, capped at max_delay
        """
        delay = self.initial_delay * (self.backoff_rate ** attempt)
        return min(delay, self.max_delay)


DEFAULT_POLICY = RetryPolicy()


class RetryError(Exception):
    """Raised when every attempt failed; wraps the last failure."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"failed after {attempts} retries: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
        self.__cause__ = last_error


def is_retryable_error(exc: BaseException) -> bool:
    """Default classifier: everything except known-terminal provider errors."""
    return not isinstance(exc, TERMINAL_ERRORS)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[Any]],
    *,
    policy: RetryPolicy | None = None,
    is_retryable: Callable[[BaseException], bool] | None = None,
) -> Any:
    """
    Run operation with bounded exponential backoff.

    A successful attempt returns immediately. A failed attempt is retried
    after the policy delay until max_attempts is reached. Errors rejected by
    is_retryable are raised as-is without further attempts.

    Args:
        operation: Zero-argument coroutine function to execute
        policy: Backoff policy (defaults to 3 attempts, 1s doubling, 30s cap)
        is_retryable: Classifier deciding whether an error is worth retrying

    Returns:
        Whatever the first successful attempt returned

    Raises:
        RetryError: If every attempt failed
        asyncio.CancelledError: If the awaiting task is cancelled
    """
    policy = policy or DEFAULT_POLICY
    is_retryable = is_retryable or is_retryable_error
    last_error: Exception | None = None

    for attempt in range(policy.max_attempts):
        # Deliver a pending cancellation before starting another attempt
        await asyncio.sleep(0)
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not is_retryable(e):
                raise
            last_error = e

        if attempt < policy.max_attempts - 1:
            delay = policy.delay_for(attempt)
            logger.debug(
                f"Attempt {attempt + 1}/{policy.max_attempts} failed: {last_error}; "
                f"retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)

    raise RetryError(policy.max_attempts, last_error)
