"""Pydantic schemas for geomatch."""

from .geocoding import GeocodeCandidate, GeocodeResponse, Geometry, Location

__all__ = ["GeocodeResponse", "GeocodeCandidate", "Geometry", "Location"]
