"""
Retry Utility - Retry mechanism with exponential backoff

@file_name: retry.py
@date: 2026-10-02
@description: Automatic retry for transient failures in capability adapters

Used by the OpenAI-backed text generation and embedding adapters. Pipeline code
never retries on its own: it wraps each capability call in a timeout and a
fallback (see story._story_impl.fallback), so retries stay close to the wire.

Usage example:
    @with_retry(max_attempts=3, exceptions=(openai.APIConnectionError,))
    async def _request(self, prompt: str) -> str:
        ...
"""

from __future__ import annotations

import asyncio
from functools import wraps
from typing import (
    Any,
    Awaitable,
    Callable,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)
from loguru import logger


T = TypeVar('T')
ExceptionTypes = Union[Type[Exception], Tuple[Type[Exception], ...]]


# Default retryable exception types (network-level failures)
DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
    OSError,
)


def backoff_delay(attempt: int, delay: float, backoff: float, max_delay: float) -> float:
    """Wait time before the retry following `attempt` (1-based)"""
    return min(delay * (backoff ** (attempt - 1)), max_delay)


def with_retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    max_delay: float = 30.0,
    exceptions: ExceptionTypes = DEFAULT_RETRYABLE_EXCEPTIONS,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
):
    """
    Retry decorator with exponential backoff for coroutine functions

    Args:
        max_attempts: Maximum number of attempts (including the first attempt)
        delay: Initial delay in seconds
        backoff: Backoff multiplier applied on each retry
        max_delay: Upper bound for a single wait
        exceptions: Exception types to retry on
        on_retry: Callback receiving (exception, attempt) before each wait

    Returns:
        The decorated coroutine function
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"with_retry only supports coroutine functions, got {func!r}")

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            last_exception: Optional[Exception] = None

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt >= max_attempts:
                        logger.error(
                            f"All {max_attempts} attempts failed for {func.__name__}: {e}"
                        )
                        break

                    wait_time = backoff_delay(attempt, delay, backoff, max_delay)
                    logger.warning(
                        f"Retry {attempt}/{max_attempts} for {func.__name__}: {e}. "
                        f"Waiting {wait_time:.2f}s before next attempt."
                    )
                    if on_retry:
                        on_retry(e, attempt)
                    await asyncio.sleep(wait_time)

            raise last_exception  # type: ignore

        return wrapper

    return decorator
