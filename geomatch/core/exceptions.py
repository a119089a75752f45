"""
Custom exceptions for the geomatch toolkit.

Provides specific exception types for configuration, fetch and join
failures with helpful error messages and context.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


class GeomatchError(Exception):
    """Base exception for all geomatch errors.

    Attributes:
        message: Human-readable error description.
        row_index: Row that triggered the error (``None`` for non-row errors).
        field: Column or variable involved (``None`` if not field-specific).
    """

    def __init__(self, message: str, row_index: int | None = None, field: str | None = None):
        self.message = message
        self.row_index = row_index
        self.field = field

        error_parts = [message]
        if row_index is not None:
            error_parts.append(f"Row: {row_index}")
        if field is not None:
            error_parts.append(f"Field: {field}")

        super().__init__(" | ".join(error_parts))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(GeomatchError):
    """Raised when a table's configuration is invalid.

    Always surfaced before any network or join work begins.
    """

    pass


class UnknownVariable(ConfigurationError):
    """Raised by ``set`` for a variable name outside the recognized set."""

    pass


class UnknownColumn(ConfigurationError):
    """Raised when a referenced column does not exist in the table."""

    pass


class TableIndexError(ConfigurationError):
    """Raised when a table index is outside the loaded range."""

    pass


class UnknownJoinMethod(ConfigurationError):
    """Raised when a join method name is not ``left`` or ``inner``."""

    pass


class IncompleteConfiguration(ConfigurationError):
    """Raised when required variables are unset.

    Attributes:
        missing: Names of the unset variables, in declaration order.
    """

    def __init__(self, message: str, missing: Iterable[str] = (), **kwargs):
        self.missing = list(missing)
        super().__init__(message, **kwargs)


# ---------------------------------------------------------------------------
# Join
# ---------------------------------------------------------------------------


class JoinError(GeomatchError):
    """Base class for join failures. Raised before any output row exists."""

    pass


class IncompleteJoinConfiguration(IncompleteConfiguration, JoinError):
    """Raised when a joined table has no ``lat``/``lng`` mapping."""

    pass


class DuplicateOutputColumn(ConfigurationError, JoinError):
    """Raised when both sides of a join produce the same output column name."""

    pass


class UnsupportedArity(ConfigurationError, JoinError):
    """Raised when a join is asked to combine anything but exactly two tables."""

    pass


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------


class FetchError(GeomatchError):
    """Base class for geocoding failures."""

    pass


class TransientFetchError(FetchError):
    """Network error, timeout, rate limit or server-side failure. Retried.

    Attributes:
        status_code: HTTP status (``None`` for transport errors).
        retry_after: Seconds the service asked us to wait, if given.
        is_rate_limit: True when the service reported throttling.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retry_after: float | None = None,
        is_rate_limit: bool = False,
        **kwargs,
    ):
        self.status_code = status_code
        self.retry_after = retry_after
        self.is_rate_limit = is_rate_limit
        super().__init__(message, **kwargs)


class PermanentFetchError(FetchError):
    """Bad address, zero results or malformed response. Never retried."""

    pass


class AuthenticationError(PermanentFetchError):
    """The service rejected the API credential."""

    pass


class FetchAborted(FetchError):
    """Fatal failure that stops the whole fetch batch; no table is published."""

    pass


@dataclass
class RowFailure:
    """Per-row failure record attached to a fetch result."""

    row_index: int
    address: str | None
    error: BaseException
    error_type: str = ""

    def __post_init__(self) -> None:
        if not self.error_type:
            self.error_type = type(self.error).__name__

    def __str__(self) -> str:
        return f"RowFailure(row={self.row_index}, address={self.address!r}, {self.error_type}: {self.error})"
