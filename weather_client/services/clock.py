"""
Clock - Time source shared by the cache, retry policy and circuit breaker.

Injected everywhere time matters so that expiry, backoff and cooldown can
be driven deterministically in tests.
"""

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic time plus an awaitable delay."""

    def now(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...


class MonotonicClock:
    """Production clock backed by time.monotonic and asyncio.sleep."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
