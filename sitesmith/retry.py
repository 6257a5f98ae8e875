"""Bounded retry with a fixed, injectable delay."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from sitesmith.errors import RetryExhausted

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[object]]


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    delay_s: float = 1.0,
    sleep: Sleep = asyncio.sleep,
    label: str = "operation",
    on_attempt: Optional[Callable[[int], None]] = None,
) -> T:
    """Await ``operation`` until it succeeds or ``max_attempts`` is reached.

    ``sleep`` is awaited between attempts only, so ``n`` attempts wait
    ``n - 1`` times. Raises :class:`RetryExhausted` with the last error.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    attempt = 0
    while True:
        attempt += 1
        if on_attempt is not None:
            on_attempt(attempt)
        try:
            return await operation()
        except Exception as exc:
            logger.warning(
                "retry.attempt_failed label={} attempt={}/{} error={}",
                label,
                attempt,
                max_attempts,
                exc,
            )
            if attempt >= max_attempts:
                raise RetryExhausted(max_attempts, exc) from exc
        await sleep(delay_s)
