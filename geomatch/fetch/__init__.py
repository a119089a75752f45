"""Concurrent coordinate fetching for geomatch."""

from .orchestrator import FetchOrchestrator, FetchResult, format_address

__all__ = ["FetchOrchestrator", "FetchResult", "format_address"]
