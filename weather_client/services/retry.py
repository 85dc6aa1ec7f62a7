"""
RetryPolicy - Re-runs a guarded attempt on transient failure.

Backoff is exponential without jitter: the wait before attempt n + 1 is
base_backoff ** n seconds, attempts numbered from 1.
"""

from dataclasses import replace
from typing import Awaitable, Callable

from loguru import logger

from weather_client.services.clock import Clock, MonotonicClock
from weather_client.services.errors import FetchError, TransientNetworkError
from weather_client.services.models import FetchResult

RetryHook = Callable[[int, float, FetchError], None]


class RetryPolicy:
    """
    Bounded retry with exponential backoff.

    Usage:
        policy = RetryPolicy(max_retries=5, base_backoff=2.0)
        result = await policy.run(lambda: guard.run(attempt, url), url)
    """

    def __init__(
        self,
        max_retries: int = 5,
        base_backoff: float = 2.0,
        clock: Clock | None = None,
        on_retry: RetryHook | None = None,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must allow at least one attempt")
        self.max_retries = max_retries
        self.base_backoff = base_backoff
        self._clock = clock or MonotonicClock()
        self._on_retry = on_retry

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt``."""
        return float(self.base_backoff**attempt)

    async def run(
        self,
        operation: Callable[[], Awaitable[FetchResult]],
        url: str | None = None,
    ) -> FetchResult:
        """
        Run operation until it succeeds, fails permanently, or attempts run out.

        Returns:
            The first non-transient result, or a TransientNetworkError
            result once max_retries attempts have all failed transiently.
        """
        attempt = 0
        while True:
            attempt += 1
            result = await operation()

            if not result.is_transient:
                return replace(result, attempts=attempt)

            assert result.error is not None
            if attempt >= self.max_retries:
                logger.warning(f"Giving up on {url} after {attempt} attempts")
                return FetchResult.fail(
                    self._exhausted(result.error, url, attempt), attempts=attempt
                )

            wait = self.delay(attempt)
            logger.warning(
                f"Retry attempt {attempt} for {url} failed ({result.error}). "
                f"Waiting {wait}s before retrying..."
            )
            if self._on_retry is not None:
                self._on_retry(attempt, wait, result.error)
            await self._clock.sleep(wait)

    @staticmethod
    def _exhausted(last: FetchError, url: str | None, attempts: int) -> FetchError:
        error = TransientNetworkError(
            f"Request to '{url}' failed after {attempts} attempts: {last}",
            url=url,
            attempts=attempts,
        )
        error.__cause__ = last
        return error
