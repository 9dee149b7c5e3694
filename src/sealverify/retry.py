"""Bounded async retry with jittered backoff for idempotent lookups."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 0.1
DEFAULT_MAX_DELAY_SECONDS = 2.0
DEFAULT_JITTER_RATIO = 0.2


def should_retry_http_status(status: int) -> bool:
    return status in (429, 502, 503, 504)


def _jitter_delay(delay_seconds: float, jitter_ratio: float) -> float:
    if delay_seconds <= 0 or jitter_ratio <= 0:
        return max(0.0, delay_seconds)
    window = delay_seconds * jitter_ratio
    delta = random.uniform(-window, window)
    return max(0.0, delay_seconds + delta)


async def retry_with_backoff_async(
    operation: Callable[[], Awaitable[T]],
    *,
    idempotent: bool,
    attempts: int = DEFAULT_ATTEMPTS,
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
    max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS,
    jitter_ratio: float = DEFAULT_JITTER_RATIO,
    should_retry_result: Optional[Callable[[T], bool]] = None,
    should_retry_error: Optional[Callable[[Exception], bool]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    if attempts < 1:
        attempts = 1
    if not idempotent and attempts > 1:
        raise ValueError("retry_with_backoff_async requires idempotent=True when attempts > 1")

    delay_seconds = max(0.0, base_delay_seconds)
    max_delay_seconds = max(delay_seconds, max_delay_seconds)
    jitter_ratio = max(0.0, jitter_ratio)
    should_retry_error = should_retry_error or (lambda _: False)

    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
        except Exception as error:  # noqa: BLE001
            if attempt >= attempts or not should_retry_error(error):
                raise
            logger.warning("attempt %d/%d failed, retrying: %s", attempt, attempts, error)
        else:
            if attempt < attempts and should_retry_result is not None and should_retry_result(result):
                logger.warning("attempt %d/%d returned a retryable result", attempt, attempts)
            else:
                return result
        await sleep(_jitter_delay(delay_seconds, jitter_ratio))
        delay_seconds = min(max_delay_seconds, delay_seconds * 2)

    raise RuntimeError("retry_with_backoff_async exhausted attempts without a terminal result")
