"""Tests for GoogleGeocodingClient (HTTP is served by httpx.MockTransport)."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from geomatch.core.exceptions import (
    AuthenticationError,
    PermanentFetchError,
    TransientFetchError,
)
from geomatch.geocoding.base import GeocodeMatch, GeocodingClient
from geomatch.geocoding.google import GoogleGeocodingClient

# -- helpers -------------------------------------------------------------


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> GoogleGeocodingClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleGeocodingClient("test-key", base_url="https://geo.test/json", http_client=http_client)


def _ok_body(lat: float = 39.78, lng: float = -89.65) -> dict[str, Any]:
    return {
        "status": "OK",
        "results": [
            {
                "formatted_address": "1 Main St, Springfield, IL 62701, USA",
                "geometry": {"location": {"lat": lat, "lng": lng}, "location_type": "ROOFTOP"},
                "place_id": "ignored",
            },
            {
                "formatted_address": "Elsewhere",
                "geometry": {"location": {"lat": 0.0, "lng": 0.0}},
            },
        ],
    }


def _status(status: str, **extra: Any) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(200, json={"status": status, "results": [], **extra})


# -- success -------------------------------------------------------------


class TestLookupSuccess:
    def test_satisfies_protocol(self):
        assert isinstance(GoogleGeocodingClient("k"), GeocodingClient)

    def test_client_not_created_at_init(self):
        assert GoogleGeocodingClient("k")._client is None

    @pytest.mark.asyncio
    async def test_returns_first_result(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_ok_body())

        client = _client(handler)
        match = await client.lookup("1 Main St, Springfield, IL, 62701")

        assert match == GeocodeMatch(39.78, -89.65, "1 Main St, Springfield, IL 62701, USA")
        assert seen[0].url.params["address"] == "1 Main St, Springfield, IL, 62701"
        assert seen[0].url.params["key"] == "test-key"
        assert seen[0].url.host == "geo.test"

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        async with GoogleGeocodingClient("k", http_client=http_client):
            pass
        assert not http_client.is_closed
        await http_client.aclose()


# -- error mapping -------------------------------------------------------


class TestStatusMapping:
    @pytest.mark.asyncio
    async def test_zero_results_is_permanent(self):
        with pytest.raises(PermanentFetchError, match="ZERO_RESULTS") as exc_info:
            await _client(_status("ZERO_RESULTS")).lookup("nowhere")
        assert not isinstance(exc_info.value, AuthenticationError)

    @pytest.mark.asyncio
    async def test_ok_without_results_is_permanent(self):
        with pytest.raises(PermanentFetchError):
            await _client(_status("OK")).lookup("nowhere")

    @pytest.mark.asyncio
    async def test_request_denied_is_auth(self):
        handler = _status("REQUEST_DENIED", error_message="The provided API key is invalid.")
        with pytest.raises(AuthenticationError, match="API key is invalid"):
            await _client(handler).lookup("x")

    @pytest.mark.asyncio
    async def test_over_query_limit_is_transient(self):
        with pytest.raises(TransientFetchError) as exc_info:
            await _client(_status("OVER_QUERY_LIMIT")).lookup("x")
        assert exc_info.value.is_rate_limit

    @pytest.mark.asyncio
    async def test_unknown_error_is_transient(self):
        with pytest.raises(TransientFetchError) as exc_info:
            await _client(_status("UNKNOWN_ERROR")).lookup("x")
        assert not exc_info.value.is_rate_limit


class TestHttpMapping:
    @pytest.mark.asyncio
    async def test_429_with_retry_after(self):
        handler = lambda request: httpx.Response(429, headers={"Retry-After": "3"})
        with pytest.raises(TransientFetchError) as exc_info:
            await _client(handler).lookup("x")
        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 3.0
        assert exc_info.value.is_rate_limit

    @pytest.mark.asyncio
    async def test_5xx_is_transient(self):
        handler = lambda request: httpx.Response(503)
        with pytest.raises(TransientFetchError) as exc_info:
            await _client(handler).lookup("x")
        assert exc_info.value.status_code == 503
        assert exc_info.value.retry_after is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_statuses(self, status):
        handler = lambda request: httpx.Response(status)
        with pytest.raises(AuthenticationError):
            await _client(handler).lookup("x")

    @pytest.mark.asyncio
    async def test_other_4xx_is_permanent(self):
        handler = lambda request: httpx.Response(400)
        with pytest.raises(PermanentFetchError, match="HTTP 400"):
            await _client(handler).lookup("x")

    @pytest.mark.asyncio
    async def test_non_json_body_is_permanent(self):
        handler = lambda request: httpx.Response(200, text="<html>oops</html>")
        with pytest.raises(PermanentFetchError, match="Malformed"):
            await _client(handler).lookup("x")

    @pytest.mark.asyncio
    async def test_missing_status_is_permanent(self):
        handler = lambda request: httpx.Response(200, json={"results": []})
        with pytest.raises(PermanentFetchError, match="Malformed"):
            await _client(handler).lookup("x")


class TestTransportMapping:
    @pytest.mark.asyncio
    async def test_connect_error_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransientFetchError, match="transport error"):
            await _client(handler).lookup("x")

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(TransientFetchError) as exc_info:
            await _client(handler).lookup("x")
        assert exc_info.value.status_code == 408
