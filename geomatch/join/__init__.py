"""Coordinate join for geomatch."""

from .engine import JoinEngine, JoinMethod, haversine, parse_key

__all__ = ["JoinEngine", "JoinMethod", "haversine", "parse_key"]
