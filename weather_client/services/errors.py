"""
Fetch layer exceptions.

The pipeline never raises these for expected failure modes; it carries
them inside a FetchResult. FetchResult.unwrap() raises them for callers
who prefer exceptions.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from weather_client.services.models import Response


class ErrorKind(str, Enum):
    """Classification used for retry and circuit breaker decisions."""

    TRANSIENT = "TRANSIENT"
    PERMANENT = "PERMANENT"
    CIRCUIT_OPEN = "CIRCUIT_OPEN"


class FetchError(Exception):
    """Base exception for fetch layer errors."""

    kind: ErrorKind = ErrorKind.PERMANENT

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class TransientNetworkError(FetchError):
    """Network level failure that may succeed on retry."""

    kind = ErrorKind.TRANSIENT

    def __init__(self, message: str, url: str | None = None, attempts: int = 1):
        self.attempts = attempts
        super().__init__(message, url=url)


class RequestTimeoutError(TransientNetworkError):
    """A single attempt did not complete within its deadline."""

    def __init__(self, url: str | None, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request to '{url}' timed out after {timeout}s", url=url)


class PermanentHttpError(FetchError):
    """The endpoint answered with a non-success status."""

    kind = ErrorKind.PERMANENT

    def __init__(self, response: "Response"):
        self.response = response
        self.status_code = response.status_code
        super().__init__(
            f"HTTP {response.status_code} from '{response.url}'",
            url=response.url,
        )


class CircuitOpenError(FetchError):
    """Circuit breaker is open, request blocked."""

    kind = ErrorKind.CIRCUIT_OPEN

    def __init__(self, name: str, reset_after_seconds: float, url: str | None = None):
        self.name = name
        self.reset_after_seconds = reset_after_seconds
        super().__init__(
            f"Circuit breaker open for '{name}', "
            f"retry after {reset_after_seconds:.1f}s",
            url=url,
        )


class DeserializationError(FetchError):
    """Response body could not be mapped onto the expected model."""

    kind = ErrorKind.PERMANENT


class ProtocolError(FetchError):
    """Exchange broke in a way retrying cannot fix (redirect loop, bad encoding)."""

    kind = ErrorKind.PERMANENT


class InvalidUrlError(FetchError):
    """URI is malformed, relative, or not http(s)."""

    kind = ErrorKind.PERMANENT
