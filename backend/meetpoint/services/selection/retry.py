"""Bounded retry with a fixed backoff and an injectable sleep."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


async def retry_until(
    attempt: Callable[[int], Awaitable[T]],
    accept: Callable[[T], bool],
    *,
    max_attempts: int,
    backoff_seconds: float,
    sleep: Sleep = asyncio.sleep,
) -> tuple[T | None, int]:
    """Call ``attempt(n)`` until ``accept`` says yes or attempts run out.

    Returns the last result (accepted or not) and the number of attempts made.
    No sleep happens after the final attempt.
    """
    result: T | None = None
    for n in range(1, max_attempts + 1):
        result = await attempt(n)
        if accept(result):
            return result, n
        if n < max_attempts:
            logger.info(f"Attempt {n}/{max_attempts} not accepted, retrying in {backoff_seconds}s")
            await sleep(backoff_seconds)
    return result, max_attempts
