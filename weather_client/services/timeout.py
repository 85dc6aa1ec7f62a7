"""
TimeoutGuard - Bounds a single transport attempt with a deadline.
"""

import asyncio
from typing import Awaitable, Callable

from loguru import logger

from weather_client.services.errors import RequestTimeoutError
from weather_client.services.models import FetchResult


def _discard(task: "asyncio.Task[FetchResult]") -> None:
    """Consume the outcome of an abandoned attempt."""
    if not task.cancelled():
        task.exception()


class TimeoutGuard:
    """
    Runs one attempt and stops waiting for it once the deadline passes.

    The attempt is asked to cancel, but the guard does not wait for that
    to happen; whatever the attempt eventually produces is dropped.
    """

    def __init__(self, timeout: float = 30.0):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout

    async def run(
        self,
        operation: Callable[[], Awaitable[FetchResult]],
        url: str | None = None,
    ) -> FetchResult:
        task = asyncio.ensure_future(operation())
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout)
        except asyncio.CancelledError:
            task.cancel()
            task.add_done_callback(_discard)
            raise

        if task in done:
            return task.result()

        logger.debug(f"Attempt for {url} exceeded {self.timeout}s, abandoning it")
        task.cancel()
        task.add_done_callback(_discard)
        return FetchResult.fail(RequestTimeoutError(url, self.timeout))
