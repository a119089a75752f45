"""Pydantic models for the Google Geocoding JSON response."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Location(BaseModel):
    """A WGS84 coordinate pair."""

    lat: float
    lng: float


class Geometry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    location: Location
    location_type: Optional[str] = None


class GeocodeCandidate(BaseModel):
    """One entry of ``results``; only the fields geomatch reads."""

    model_config = ConfigDict(extra="ignore")

    geometry: Geometry
    formatted_address: str = ""
    partial_match: bool = False


class GeocodeResponse(BaseModel):
    """Top-level response body.

    Attributes:
        status: ``OK``, ``ZERO_RESULTS``, ``OVER_QUERY_LIMIT``,
            ``REQUEST_DENIED``, ``INVALID_REQUEST`` or ``UNKNOWN_ERROR``.
        results: Candidates, best first.
        error_message: Optional detail supplied with non-OK statuses.
    """

    model_config = ConfigDict(extra="ignore")

    status: str
    results: List[GeocodeCandidate] = []
    error_message: Optional[str] = None
