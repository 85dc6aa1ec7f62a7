"""Unit tests for the httpx transport adapter."""

import httpx
import pytest

from weather_client.services.errors import (
    ErrorKind,
    InvalidUrlError,
    ProtocolError,
    RequestTimeoutError,
    TransientNetworkError,
)
from weather_client.services.transport import HttpxTransport

URL = "https://api.example.com/weather"


def make_transport(handler) -> HttpxTransport:
    return HttpxTransport(timeout=5.0, http_transport=httpx.MockTransport(handler))


class TestHttpxTransport:
    """Tests for HttpxTransport.send."""

    @pytest.mark.asyncio
    async def test_success_response(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"latitude": 52.28})

        transport = make_transport(handler)
        result = await transport.send(URL)
        await transport.aclose()

        assert result.is_success
        assert result.response is not None
        assert result.response.status_code == 200
        assert result.response.json() == {"latitude": 52.28}
        assert result.response.url == URL

    @pytest.mark.asyncio
    async def test_error_status_is_still_a_response(self) -> None:
        transport = make_transport(lambda request: httpx.Response(503))

        result = await transport.send(URL)
        await transport.aclose()

        assert result.is_success
        assert result.response is not None
        assert result.response.status_code == 503
        assert not result.response.is_success

    @pytest.mark.asyncio
    async def test_connect_error_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        transport = make_transport(handler)
        result = await transport.send(URL)
        await transport.aclose()

        assert result.is_transient
        assert isinstance(result.error, TransientNetworkError)
        assert isinstance(result.error.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport = make_transport(handler)
        result = await transport.send(URL)
        await transport.aclose()

        assert isinstance(result.error, RequestTimeoutError)
        assert result.is_transient

    @pytest.mark.asyncio
    async def test_sends_configured_headers(self) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200)

        async with HttpxTransport(
            headers={"User-Agent": "weather-client/test"},
            http_transport=httpx.MockTransport(handler),
        ) as transport:
            await transport.send(URL)

        assert seen["user-agent"] == "weather-client/test"

    @pytest.mark.asyncio
    async def test_redirect_loop_is_permanent(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": str(request.url)})

        transport = make_transport(handler)
        result = await transport.send(URL)
        await transport.aclose()

        assert isinstance(result.error, ProtocolError)
        assert result.kind == ErrorKind.PERMANENT
        assert isinstance(result.error.__cause__, httpx.TooManyRedirects)

    @pytest.mark.asyncio
    async def test_decoding_error_is_permanent(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.DecodingError(
                "Error -3 while decompressing data", request=request
            )

        transport = make_transport(handler)
        result = await transport.send(URL)
        await transport.aclose()

        assert isinstance(result.error, ProtocolError)
        assert not result.is_transient

    @pytest.mark.asyncio
    async def test_remote_protocol_error_stays_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("Server disconnected", request=request)

        transport = make_transport(handler)
        result = await transport.send(URL)
        await transport.aclose()

        assert isinstance(result.error, TransientNetworkError)

    @pytest.mark.asyncio
    async def test_unsupported_protocol_is_permanent(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.UnsupportedProtocol(
                "Request URL has an unsupported protocol 'ftp://'.", request=request
            )

        transport = make_transport(handler)
        result = await transport.send("ftp://example.com/weather")
        await transport.aclose()

        assert isinstance(result.error, InvalidUrlError)
        assert result.kind == ErrorKind.PERMANENT
