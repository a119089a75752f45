"""
geomatch - geocode tabular files and join them on coordinates.

Loads tables, resolves each row's address to a latitude/longitude pair
through the Google Geocoding API, and joins two geocoded tables on
those coordinates.
"""

from .core import (
    ConfigurationError,
    FetchAborted,
    FetchHooks,
    GeomatchConfig,
    GeomatchError,
    JoinError,
    RowFailure,
)
from .data import ColumnKind, FieldMap, Table, Variable
from .fetch import FetchOrchestrator, FetchResult
from .geocoding import Geocoder, GeoResult, GoogleGeocodingClient
from .join import JoinEngine, JoinMethod
from .session import Session

__version__ = "0.1.0"

__all__ = [
    'Session',
    'Table',
    'FieldMap',
    'Variable',
    'ColumnKind',
    'FetchOrchestrator',
    'FetchResult',
    'Geocoder',
    'GeoResult',
    'GoogleGeocodingClient',
    'JoinEngine',
    'JoinMethod',
    'GeomatchConfig',
    'FetchHooks',
    'GeomatchError',
    'ConfigurationError',
    'JoinError',
    'FetchAborted',
    'RowFailure',
]
