"""GeocodingClient protocol and result types, independent of any provider."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from ..core.exceptions import FetchError


@dataclass(frozen=True)
class GeocodeMatch:
    """Best candidate returned by a provider for one address."""

    lat: float
    lng: float
    formatted_address: str = ""


@dataclass
class GeoResult:
    """Outcome of geocoding one row.

    Attributes:
        coordinates: ``(lat, lng)`` on success, else ``None``.
        formatted_address: Provider's normalized address (may be empty).
        error: The failure for this row, if any.
        attempts: Number of lookups issued (0 when the row was never sent).
    """

    coordinates: Optional[tuple[float, float]] = None
    formatted_address: str = ""
    error: Optional[FetchError] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.coordinates is not None


@runtime_checkable
class GeocodingClient(Protocol):
    """Protocol every provider adapter must satisfy.

    ``lookup`` returns the best match or raises a typed
    :class:`~geomatch.core.exceptions.FetchError`:
    ``TransientFetchError`` (retryable), ``PermanentFetchError`` or
    ``AuthenticationError``.
    """

    async def lookup(self, address: str) -> GeocodeMatch: ...


async def close_client(client: GeocodingClient) -> None:
    """Release ``client``'s connections if it has an ``aclose`` method.

    Pooled connections belong to the event loop that opened them, so this
    must run before that loop shuts down.
    """
    close = getattr(client, "aclose", None)
    if close is None:
        return
    outcome = close()
    if inspect.isawaitable(outcome):
        await outcome
