"""Geocoder: paced, retrying wrapper around a GeocodingClient."""

from __future__ import annotations

import asyncio
import random
from typing import Optional

from ..core.config import GeomatchConfig
from ..core.exceptions import (
    AuthenticationError,
    FetchAborted,
    PermanentFetchError,
    TransientFetchError,
)
from ..utils.logger import get_logger
from .base import GeocodingClient, GeoResult
from .limiter import RateLimiter

logger = get_logger(__name__)


class Geocoder:
    """Turns one formatted address into a :class:`GeoResult`.

    Every attempt waits on the shared :class:`RateLimiter` and is bounded
    by ``config.request_timeout``.  Transient failures are retried with
    exponential backoff and jitter; permanent failures are returned as the
    result's ``error``; a rejected credential raises :class:`FetchAborted`.
    """

    def __init__(
        self,
        client: GeocodingClient,
        config: Optional[GeomatchConfig] = None,
        limiter: Optional[RateLimiter] = None,
    ):
        self.client = client
        self.config = config or GeomatchConfig()
        self.limiter = limiter or RateLimiter(self.config.requests_per_second)

    def backoff_delay(self, attempt: int, error: TransientFetchError) -> float:
        """Delay before retry number ``attempt + 1``."""
        delay = min(self.config.retry_base_delay * (2 ** attempt), self.config.retry_max_delay)
        if error.retry_after is not None:
            delay = max(delay, min(error.retry_after, self.config.retry_max_delay))
        return delay + random.uniform(0, delay * 0.25)

    async def geocode(self, address: str) -> GeoResult:
        max_retries = self.config.max_retries
        last_error: Optional[TransientFetchError] = None

        for attempt in range(max_retries + 1):
            await self.limiter.acquire()
            try:
                match = await asyncio.wait_for(
                    self.client.lookup(address),
                    timeout=self.config.request_timeout,
                )
                return GeoResult(
                    coordinates=(match.lat, match.lng),
                    formatted_address=match.formatted_address,
                    attempts=attempt + 1,
                )

            except AuthenticationError as exc:
                raise FetchAborted(f"Fetch aborted, credential rejected: {exc}") from exc

            except PermanentFetchError as exc:
                logger.debug("Permanent geocoding failure for '%s': %s", address, exc)
                return GeoResult(error=exc, attempts=attempt + 1)

            except asyncio.TimeoutError:
                last_error = TransientFetchError(
                    f"Geocoding timed out after {self.config.request_timeout}s for '{address}'",
                    status_code=408,
                )

            except TransientFetchError as exc:
                last_error = exc

            if attempt < max_retries:
                delay = self.backoff_delay(attempt, last_error)
                logger.warning(
                    "Geocoding error (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1, max_retries + 1, delay, last_error,
                )
                await asyncio.sleep(delay)

        return GeoResult(
            error=TransientFetchError(
                f"Geocoding failed after {max_retries + 1} attempts: {last_error}",
                status_code=last_error.status_code if last_error else None,
                is_rate_limit=last_error.is_rate_limit if last_error else False,
            ),
            attempts=max_retries + 1,
        )
