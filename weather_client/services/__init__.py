"""
Fetch layer - caching and resilience patterns for the weather endpoint.

Provides:
- ResponseCache: TTL cache for successful responses
- CircuitBreaker: Stops hammering an endpoint that keeps failing
- RetryPolicy: Exponential backoff for transient failures
- TimeoutGuard: Per-attempt deadline
- HttpxTransport: Raw HTTP exchange
- FetchPipeline: Unified client combining all patterns
"""

from weather_client.services.errors import (
    ErrorKind,
    FetchError,
    TransientNetworkError,
    RequestTimeoutError,
    PermanentHttpError,
    CircuitOpenError,
    DeserializationError,
    ProtocolError,
    InvalidUrlError,
)
from weather_client.services.models import FetchResult, Response
from weather_client.services.clock import Clock, MonotonicClock
from weather_client.services.cache import CacheEntry, CacheStats, ResponseCache
from weather_client.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
    Permit,
)
from weather_client.services.retry import RetryPolicy
from weather_client.services.timeout import TimeoutGuard
from weather_client.services.transport import HttpxTransport, Transport
from weather_client.services.pipeline import FetchPipeline

__all__ = [
    # Errors
    "ErrorKind",
    "FetchError",
    "TransientNetworkError",
    "RequestTimeoutError",
    "PermanentHttpError",
    "CircuitOpenError",
    "DeserializationError",
    "ProtocolError",
    "InvalidUrlError",
    # Values
    "FetchResult",
    "Response",
    "Clock",
    "MonotonicClock",
    # Cache
    "CacheEntry",
    "CacheStats",
    "ResponseCache",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "Permit",
    # Retry / Timeout
    "RetryPolicy",
    "TimeoutGuard",
    # Transport
    "HttpxTransport",
    "Transport",
    # Pipeline
    "FetchPipeline",
]
