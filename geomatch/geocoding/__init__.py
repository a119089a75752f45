"""Geocoding client, pacing and retry for geomatch."""

from .base import GeocodeMatch, GeocodingClient, GeoResult, close_client
from .geocoder import Geocoder
from .google import GoogleGeocodingClient
from .limiter import RateLimiter

__all__ = [
    "GeocodingClient",
    "GeocodeMatch",
    "GeoResult",
    "Geocoder",
    "GoogleGeocodingClient",
    "RateLimiter",
    "close_client",
]
