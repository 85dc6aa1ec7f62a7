"""
FetchPipeline - Async HTTP GET with caching and resilience patterns.

Wrapping order, outermost first:
- ResponseCache: a fresh hit returns without touching anything below
- CircuitBreaker: rejects while open, counts one outcome per fetch
- RetryPolicy: retries transient failures with exponential backoff
- TimeoutGuard: bounds each individual attempt
- Transport: one raw HTTP exchange
"""

from typing import Any

import httpx
from loguru import logger

from weather_client.services.cache import ResponseCache
from weather_client.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
)
from weather_client.services.clock import Clock, MonotonicClock
from weather_client.services.errors import (
    CircuitOpenError,
    InvalidUrlError,
    PermanentHttpError,
)
from weather_client.services.models import FetchResult
from weather_client.services.retry import RetryPolicy
from weather_client.services.timeout import TimeoutGuard
from weather_client.services.transport import HttpxTransport, Transport
from weather_client.settings import Settings


class FetchPipeline:
    """
    The only entry point callers use to fetch a URI.

    Usage:
        async with FetchPipeline.from_settings(global_settings) as pipeline:
            result = await pipeline.fetch(url)
            if result.is_success:
                print(result.response.body)
            else:
                print(result.error)
    """

    def __init__(
        self,
        transport: Transport,
        cache: ResponseCache,
        breaker: CircuitBreaker,
        retry: RetryPolicy,
        timeout_guard: TimeoutGuard,
    ):
        self._transport = transport
        self._cache = cache
        self._breaker = breaker
        self._retry = retry
        self._timeout_guard = timeout_guard

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Transport | None = None,
        clock: Clock | None = None,
    ) -> "FetchPipeline":
        """Wire up a pipeline from configuration."""
        clock = clock or MonotonicClock()
        if transport is None:
            transport = HttpxTransport(
                timeout=settings.per_attempt_timeout_seconds,
                headers={"User-Agent": settings.user_agent},
            )
        return cls(
            transport=transport,
            cache=ResponseCache(
                default_ttl=settings.cache_ttl_seconds,
                max_size=settings.cache_max_size,
                clock=clock,
                debug=settings.debug,
            ),
            breaker=CircuitBreaker(
                "weather",
                CircuitBreakerConfig(
                    failure_threshold=(
                        settings.circuit_failure_threshold or 2 * settings.max_retries
                    ),
                    reset_timeout=settings.circuit_cooldown_seconds,
                ),
                clock=clock,
            ),
            retry=RetryPolicy(
                max_retries=settings.max_retries,
                base_backoff=settings.base_backoff_seconds,
                clock=clock,
            ),
            timeout_guard=TimeoutGuard(settings.per_attempt_timeout_seconds),
        )

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a URI through cache, circuit breaker, retry and timeout.

        Args:
            url: Absolute http(s) URI to GET

        Returns:
            FetchResult with either the Response or one of
            TransientNetworkError, RequestTimeoutError, PermanentHttpError,
            ProtocolError, InvalidUrlError, CircuitOpenError
        """
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            error = InvalidUrlError(f"Invalid URI '{url}': {e}", url=str(url))
            error.__cause__ = e
            return FetchResult.fail(error)
        if not parsed.is_absolute_url or parsed.scheme not in ("http", "https"):
            return FetchResult.fail(
                InvalidUrlError(f"Not an absolute http(s) URI: '{url}'", url=url)
            )

        cache_key = self._cache.generate_key(parsed)

        cached = await self._cache.get(cache_key)
        if cached is not None:
            return FetchResult.ok(cached, from_cache=True)

        permit = self._breaker.try_acquire()
        if permit is None:
            reset_after = self._breaker.get_time_until_reset() or 0.0
            logger.debug(f"Circuit open, rejecting {url}")
            return FetchResult.fail(
                CircuitOpenError(self._breaker.name, reset_after, url=url)
            )

        try:
            result = await self._retry.run(
                lambda: self._timeout_guard.run(
                    lambda: self._transport.send(url), url
                ),
                url,
            )
        except BaseException:
            # Cancelled or aborted calls say nothing about the endpoint
            self._breaker.release(permit)
            raise

        if result.is_transient:
            self._breaker.record_failure(permit)
            return result

        if result.error is not None:
            self._breaker.record_permanent(permit)
            return result

        assert result.response is not None
        response = result.response
        if not response.is_success:
            self._breaker.record_permanent(permit)
            logger.info(f"{url} answered with HTTP {response.status_code}")
            return FetchResult.fail(
                PermanentHttpError(response), attempts=result.attempts
            )

        self._breaker.record_success(permit)
        await self._cache.set(cache_key, response)
        return result

    def get_health_status(self) -> dict[str, Any]:
        """Get cache statistics and circuit breaker status."""
        return {
            "cache": self._cache.get_stats().to_dict(),
            "circuit_breaker": self._breaker.get_status(),
        }

    def reset_circuit(self) -> None:
        """Reset the circuit breaker."""
        self._breaker.reset()

    async def clear_cache(self) -> None:
        """Drop every cached response."""
        await self._cache.clear()

    async def aclose(self) -> None:
        """Close the transport if it holds resources."""
        close = getattr(self._transport, "aclose", None)
        if close is not None:
            await close()
        logger.debug("FetchPipeline closed")

    async def __aenter__(self) -> "FetchPipeline":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()
