"""
Response and result values passed between the pipeline layers.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from weather_client.services.errors import ErrorKind, FetchError


@dataclass(frozen=True)
class Response:
    """An HTTP response as received from the transport. Shared read-only."""

    status_code: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of one layer of the pipeline.

    Exactly one of ``response`` and ``error`` is set. A result carrying a
    response is a transport-level success; the HTTP status has not been
    judged yet at that point, the pipeline does that.
    """

    response: Response | None = None
    error: FetchError | None = None
    from_cache: bool = False
    attempts: int = 0

    def __post_init__(self) -> None:
        if (self.response is None) == (self.error is None):
            raise ValueError("FetchResult needs exactly one of response or error")

    @classmethod
    def ok(
        cls, response: Response, from_cache: bool = False, attempts: int = 0
    ) -> "FetchResult":
        return cls(response=response, from_cache=from_cache, attempts=attempts)

    @classmethod
    def fail(cls, error: FetchError, attempts: int = 0) -> "FetchResult":
        return cls(error=error, attempts=attempts)

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        """Error classification, None for a success."""
        return self.error.kind if self.error is not None else None

    @property
    def is_transient(self) -> bool:
        return self.kind == ErrorKind.TRANSIENT

    def unwrap(self) -> Response:
        """Return the response or raise the carried error."""
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response
