"""
Core configuration, errors and hooks for geomatch.
"""

from .config import GeomatchConfig, resolve_api_key
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    DuplicateOutputColumn,
    FetchAborted,
    FetchError,
    GeomatchError,
    IncompleteConfiguration,
    IncompleteJoinConfiguration,
    JoinError,
    PermanentFetchError,
    RowFailure,
    TableIndexError,
    TransientFetchError,
    UnknownColumn,
    UnknownJoinMethod,
    UnknownVariable,
    UnsupportedArity,
)
from .hooks import FetchEndEvent, FetchHooks, FetchStartEvent, RowCompleteEvent

__all__ = [
    'GeomatchConfig',
    'resolve_api_key',
    'GeomatchError',
    'ConfigurationError',
    'UnknownVariable',
    'UnknownColumn',
    'TableIndexError',
    'UnknownJoinMethod',
    'IncompleteConfiguration',
    'JoinError',
    'IncompleteJoinConfiguration',
    'DuplicateOutputColumn',
    'UnsupportedArity',
    'FetchError',
    'TransientFetchError',
    'PermanentFetchError',
    'AuthenticationError',
    'FetchAborted',
    'RowFailure',
    'FetchHooks',
    'FetchStartEvent',
    'RowCompleteEvent',
    'FetchEndEvent',
]
