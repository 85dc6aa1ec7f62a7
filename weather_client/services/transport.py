"""
Transport - One raw HTTP exchange, no policy.

Every status code comes back as a Response. Network level faults become
transient errors; unusable URIs and broken exchanges (redirect loops,
undecodable bodies) become permanent ones.
"""

from typing import Protocol

import httpx
from loguru import logger

from weather_client.services.errors import (
    FetchError,
    InvalidUrlError,
    ProtocolError,
    RequestTimeoutError,
    TransientNetworkError,
)
from weather_client.services.models import FetchResult, Response


def _describe(e: Exception) -> str:
    return str(e) or type(e).__name__


def _failure(error: FetchError, cause: Exception) -> FetchResult:
    error.__cause__ = cause
    return FetchResult.fail(error)


class Transport(Protocol):
    """Performs a single GET request."""

    async def send(self, url: str) -> FetchResult: ...


class HttpxTransport:
    """Transport backed by a lazily created httpx.AsyncClient."""

    def __init__(
        self,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        follow_redirects: bool = True,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout = timeout
        self._headers = headers or {}
        self._follow_redirects = follow_redirects
        self._http_transport = http_transport
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers=self._headers,
                follow_redirects=self._follow_redirects,
                transport=self._http_transport,
            )
        return self._http_client

    async def send(self, url: str) -> FetchResult:
        client = await self._get_http_client()

        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            logger.debug(f"Transport timeout for {url}: {e!r}")
            return _failure(RequestTimeoutError(url, self._timeout), e)
        except httpx.UnsupportedProtocol as e:
            return _failure(
                InvalidUrlError(f"Unsupported protocol in '{url}': {e}", url=url), e
            )
        except httpx.TransportError as e:
            logger.debug(f"Transport error for {url}: {e!r}")
            return _failure(
                TransientNetworkError(
                    f"Error querying '{url}': {_describe(e)}", url=url
                ),
                e,
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            # TooManyRedirects, DecodingError: the server answered, badly
            logger.debug(f"Protocol error for {url}: {e!r}")
            return _failure(
                ProtocolError(f"Protocol error for '{url}': {_describe(e)}", url=url),
                e,
            )

        return FetchResult.ok(
            Response(
                status_code=response.status_code,
                body=response.content,
                headers=dict(response.headers),
                url=str(response.url),
            )
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
