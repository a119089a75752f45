"""
Unified configuration for the geomatch toolkit.

Consolidates the fetch, retry and logging options into a single,
well-documented configuration class with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
API_KEY_ENV = "API_KEY"

# Columns written by fetch
LAT_COLUMN = "lat"
LNG_COLUMN = "lng"


@dataclass
class GeomatchConfig:
    """
    Unified configuration for fetch and match runs.

    The API credential is not part of this object; see
    :func:`resolve_api_key`.
    """

    # === Pacing ===
    max_workers: int = 10
    """Maximum number of lookups in flight at once"""

    requests_per_second: float = 30.0
    """Ceiling on request starts across all workers (0 disables pacing)"""

    request_timeout: float = 10.0
    """Timeout for a single lookup in seconds"""

    # === Retries ===
    max_retries: int = 3
    """Maximum number of retries for transient failures"""

    retry_base_delay: float = 1.0
    """Initial backoff delay in seconds, doubled on every retry"""

    retry_max_delay: float = 30.0
    """Upper bound for a single backoff delay in seconds"""

    # === Output ===
    separator: str = "_"
    """Joins a table prefix to its output column names"""

    normalized_address_column: Optional[str] = None
    """If set, fetch also writes the service's formatted address to this column"""

    # === Service ===
    base_url: str = GOOGLE_GEOCODE_URL
    """Geocoding endpoint"""

    # === Logging ===
    enable_progress_bar: bool = True
    """Enable progress bar display during fetch"""

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"""

    log_dir: Optional[str] = None
    """Directory for log files (None = no file logging)"""

    def __post_init__(self):
        """Validate configuration values after initialization."""
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

        if self.requests_per_second < 0:
            raise ValueError(f"requests_per_second must be non-negative, got {self.requests_per_second}")

        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")

        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")

        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be non-negative, got {self.retry_base_delay}")

        if self.retry_max_delay < self.retry_base_delay:
            raise ValueError(
                f"retry_max_delay ({self.retry_max_delay}) must be >= retry_base_delay ({self.retry_base_delay})"
            )

        if self.normalized_address_column in (LAT_COLUMN, LNG_COLUMN):
            raise ValueError(
                f"normalized_address_column must not be '{LAT_COLUMN}' or '{LNG_COLUMN}', "
                f"got {self.normalized_address_column!r}"
            )

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"log_level must be a standard logging level, got {self.log_level}")

    @classmethod
    def for_development(cls) -> "GeomatchConfig":
        """Create configuration optimized for development."""
        return cls(
            max_workers=2,
            requests_per_second=5.0,
            max_retries=1,
            log_level="DEBUG",
        )

    @classmethod
    def for_production(cls) -> "GeomatchConfig":
        """Create configuration optimized for large batch runs."""
        return cls(
            max_workers=30,
            requests_per_second=30.0,
            max_retries=5,
            retry_max_delay=60.0,
            enable_progress_bar=False,
            log_level="INFO",
        )


def resolve_api_key(api_key: str | None = None, env_var: str = API_KEY_ENV) -> str:
    """Return the geocoding credential.

    An explicit ``api_key`` wins; otherwise ``env_var`` is read after loading
    any ``.env`` file. The key is opaque: only emptiness is checked.

    Raises:
        ConfigurationError: If no non-empty key is available.
    """
    if api_key is None:
        load_dotenv()
        api_key = os.environ.get(env_var)

    if not api_key or not api_key.strip():
        raise ConfigurationError(f"API key required (pass it explicitly or set {env_var})")

    return api_key
