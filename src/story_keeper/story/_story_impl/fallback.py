"""
Timeout and fallback wrapper for capability calls

@file_name: fallback.py
@date: 2026-10-02
@description: Every text generation / embedding call goes through call_with_fallback

The caller supplies the fallback explicitly. Timeouts, capability errors and
parse errors inside `call` all resolve to the fallback and are logged as an
ExternalServiceError; cancellation still propagates.

Usage:
    tone = await call_with_fallback(
        "tone_analysis",
        lambda: self._request_tone(text),
        fallback=ToneAnalysis(),
        timeout=settings.llm_timeout,
    )
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from story_keeper.utils.exceptions import ExternalServiceError

T = TypeVar("T")


async def call_with_fallback(
    operation: str,
    call: Callable[[], Awaitable[T]],
    *,
    fallback: T,
    timeout: Optional[float],
    service: str = "text_generation",
) -> T:
    """
    Await call() under a timeout, returning fallback on any failure

    Args:
        operation: Name used in logs (e.g. "narrative_generation")
        call: Zero-argument coroutine factory performing the request and parsing
        fallback: Value returned when the call fails or times out
        timeout: Seconds, or None for no limit
        service: Capability name used in logs
    """
    try:
        return await asyncio.wait_for(call(), timeout=timeout)
    except asyncio.CancelledError:
        raise
    except asyncio.TimeoutError as e:
        error = ExternalServiceError(f"{operation} timed out after {timeout}s", service=service, cause=e)
    except Exception as e:
        error = ExternalServiceError(f"{operation} failed", service=service, cause=e)

    logger.warning(f"Using fallback for {operation}: {error}")
    return fallback
