"""Google Geocoding API adapter.

Sends ``GET <base_url>?address=...&key=...`` with ``httpx`` and translates
every outcome into either a :class:`GeocodeMatch` or a typed fetch error:

- HTTP 429 / 5xx, transport errors, timeouts, ``OVER_QUERY_LIMIT`` and
  ``UNKNOWN_ERROR`` → :class:`TransientFetchError`
- HTTP 401 / 403 and ``REQUEST_DENIED`` → :class:`AuthenticationError`
- other 4xx, ``ZERO_RESULTS``, ``INVALID_REQUEST`` and unparseable bodies
  → :class:`PermanentFetchError`
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ..core.config import GOOGLE_GEOCODE_URL
from ..core.exceptions import AuthenticationError, PermanentFetchError, TransientFetchError
from ..schemas.geocoding import GeocodeResponse
from ..utils.logger import get_logger
from .base import GeocodeMatch

logger = get_logger(__name__)

TRANSIENT_STATUSES = {"OVER_QUERY_LIMIT", "UNKNOWN_ERROR"}
AUTH_STATUSES = {"REQUEST_DENIED"}


class GoogleGeocodingClient:
    """Adapter for the Google Geocoding JSON API.

    The underlying ``httpx.AsyncClient`` is created on first use and bound
    to the running event loop; call :meth:`aclose` (or use ``async with``)
    when done.  A pre-built client can be injected for tests.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = GOOGLE_GEOCODE_URL,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> GoogleGeocodingClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def lookup(self, address: str) -> GeocodeMatch:
        client = self._get_client()
        params = {"address": address, "key": self._api_key}

        try:
            response = await client.get(self._base_url, params=params)
        except httpx.TimeoutException as exc:
            raise TransientFetchError(f"Geocoding timeout for '{address}': {exc}", status_code=408) from exc
        except httpx.TransportError as exc:
            raise TransientFetchError(f"Geocoding transport error for '{address}': {exc}") from exc

        self._raise_for_status(response, address)

        try:
            body = GeocodeResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise PermanentFetchError(f"Malformed geocoding response for '{address}': {exc}") from exc

        return self._parse_body(body, address)

    @staticmethod
    def _raise_for_status(response: httpx.Response, address: str) -> None:
        status = response.status_code
        if status < 400:
            return

        if status == 429:
            raise TransientFetchError(
                f"Geocoding rate limit for '{address}'",
                status_code=status,
                retry_after=_retry_after(response),
                is_rate_limit=True,
            )
        if status >= 500:
            raise TransientFetchError(
                f"Geocoding server error {status} for '{address}'",
                status_code=status,
                retry_after=_retry_after(response),
            )
        if status in (401, 403):
            raise AuthenticationError(f"Geocoding credential rejected (HTTP {status})")
        raise PermanentFetchError(f"Geocoding request failed with HTTP {status} for '{address}'")

    @staticmethod
    def _parse_body(body: GeocodeResponse, address: str) -> GeocodeMatch:
        detail = f": {body.error_message}" if body.error_message else ""

        if body.status == "OK" and body.results:
            best = body.results[0]
            return GeocodeMatch(
                lat=best.geometry.location.lat,
                lng=best.geometry.location.lng,
                formatted_address=best.formatted_address,
            )

        if body.status in AUTH_STATUSES:
            raise AuthenticationError(f"Geocoding credential rejected ({body.status}){detail}")

        if body.status in TRANSIENT_STATUSES:
            if body.status == "OVER_QUERY_LIMIT":
                logger.warning("Geocoding quota exceeded for API key")
            raise TransientFetchError(
                f"Geocoding status {body.status} for '{address}'{detail}",
                is_rate_limit=body.status == "OVER_QUERY_LIMIT",
            )

        raise PermanentFetchError(f"Geocoding status {body.status} for '{address}'{detail}")


def _retry_after(response: httpx.Response) -> Optional[float]:
    header = response.headers.get("retry-after")
    if not header:
        return None
    try:
        return float(header)
    except (ValueError, TypeError):
        return None
