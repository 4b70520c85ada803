"""Async retry with exponential backoff for model calls.

Example:
    >>> from openai import RateLimitError
    >>>
    >>> @with_retry(max_attempts=3, retryable=(RateLimitError,))
    ... async def ask_model():
    ...     return await client.chat.completions.create(...)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from functools import wraps
from typing import ParamSpec, TypeVar

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def with_retry(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    retryable: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Retry an async function on ``retryable`` exceptions.

    The wait after attempt ``n`` (0-based) is
    ``min(initial_delay * exponential_base ** n, max_delay)``. The last
    exception is re-raised once attempts run out; other exceptions propagate
    immediately.

    Args:
        max_attempts: Total attempts including the first; values below 1
            are treated as 1
        initial_delay: Seconds to wait before the first retry
        max_delay: Upper bound on the wait between attempts
        exponential_base: Backoff multiplier
        retryable: Exception types that trigger a retry

    Returns:
        Decorator producing the retrying coroutine function
    """
    attempts = max(1, max_attempts)

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            delay = initial_delay
            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except retryable as e:
                    if attempt == attempts:
                        logger.error(f"{func.__name__} failed after {attempts} attempts: {e}")
                        raise
                    logger.warning(
                        f"Attempt {attempt}/{attempts} of {func.__name__} failed: {e}. "
                        f"Retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    delay = min(delay * exponential_base, max_delay)
            raise AssertionError("unreachable")

        return wrapper

    return decorator


@dataclass(frozen=True)
class RetryConfig:
    """Backoff settings passed to ``with_retry``.

    Example:
        >>> config = RetryConfig(max_attempts=5, initial_delay=0.5)
        >>> @with_retry(**config.to_kwargs())
        ... async def call():
        ...     pass
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    def to_kwargs(self) -> dict[str, float | int]:
        """Keyword arguments for ``with_retry``."""
        return asdict(self)
