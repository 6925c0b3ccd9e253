"""
Bounded exponential backoff for remote calls.

The retry layer never performs a transport call itself; it wraps a
callable and re-invokes it while the classified failure is transient.
"""

import functools
import sys
import time
from typing import Callable, Optional, TypeVar

from .errors import ErrorKind, ScanError, classify_error


T = TypeVar("T")

# Retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0  # seconds


def compute_wait(error: ScanError, attempt: int, base_delay: float) -> float:
    """
    Compute how long to wait before the next attempt.

    Args:
        error: Classified failure of the attempt that just ran
        attempt: Number of that attempt, counted from 1
        base_delay: Delay in seconds before the second attempt

    Returns:
        The retry-after hint for rate limits that carry one, otherwise
        base_delay * 2^(attempt - 1)
    """
    if error.kind is ErrorKind.RATE_LIMITED and error.retry_after is not None:
        return error.retry_after
    return base_delay * (2 ** (attempt - 1))


def with_retry(
    operation: Callable[..., T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    operation_name: Optional[str] = None,
) -> Callable[..., T]:
    """
    Wrap an operation with classified retry handling.

    Args:
        operation: Callable performing one remote call
        max_attempts: Total attempts including the first one
        base_delay: Initial backoff delay in seconds
        operation_name: Name used in warnings and error context

    Returns:
        A callable with the same signature that retries transient,
        rate-limited and server failures

    Raises:
        ScanError: VALIDATION if max_attempts is below 1
    """
    if max_attempts < 1:
        raise ScanError(
            ErrorKind.VALIDATION,
            f"max_attempts must be at least 1, got {max_attempts}",
        )

    name = operation_name or getattr(operation, "__name__", "operation")

    @functools.wraps(operation)
    def wrapper(*args, **kwargs):
        for attempt in range(1, max_attempts + 1):
            try:
                return operation(*args, **kwargs)
            except Exception as e:
                error = classify_error(e, operation=name)
                if not error.retryable or attempt == max_attempts:
                    if error is e:
                        raise
                    raise error from e

                wait_time = compute_wait(error, attempt, base_delay)
                print(
                    f"[retry] {name}: attempt {attempt} failed ({error.kind.value}), "
                    f"retrying in {wait_time:.2f}s...",
                    file=sys.stderr,
                )
                time.sleep(wait_time)

        # Unreachable: the final attempt either returns or raises
        raise ScanError(ErrorKind.UNKNOWN, "Max retries exceeded", operation=name)

    return wrapper


def retrying(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of with_retry."""

    def decorator(operation: Callable[..., T]) -> Callable[..., T]:
        return with_retry(operation, max_attempts=max_attempts, base_delay=base_delay)

    return decorator
