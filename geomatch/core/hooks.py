"""Lifecycle hooks for fetch observability.

Typed event dataclasses + ``FetchHooks`` container.  Hook callables
are optional; ``_fire_hook`` logs and swallows hook errors so a broken
progress callback never aborts a geocoding batch.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from .config import GeomatchConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FetchStartEvent:
    """Fired once before the first lookup of a fetch."""

    num_rows: int
    config: GeomatchConfig


@dataclass(frozen=True)
class RowCompleteEvent:
    """Fired after each row's lookup finishes (success or failure)."""

    row_index: int
    address: str | None
    coordinates: tuple[float, float] | None
    error: BaseException | None
    attempts: int


@dataclass(frozen=True)
class FetchEndEvent:
    """Fired once when a fetch finishes, including when it is aborted."""

    num_rows: int
    total_failures: int
    elapsed_seconds: float
    aborted: bool = False


# ---------------------------------------------------------------------------
# FetchHooks container
# ---------------------------------------------------------------------------


@dataclass
class FetchHooks:
    """User-facing hook container, passed to ``FetchOrchestrator``.

    All fields are optional callables. Sync and async callables both work.
    """

    on_fetch_start: Optional[Callable[[FetchStartEvent], Any]] = None
    on_row_complete: Optional[Callable[[RowCompleteEvent], Any]] = None
    on_fetch_end: Optional[Callable[[FetchEndEvent], Any]] = None


# ---------------------------------------------------------------------------
# Fire helper
# ---------------------------------------------------------------------------


async def _fire_hook(hook: Optional[Callable], event: Any) -> None:
    """Call *hook* with *event*, awaiting if async.  Logs hook errors."""
    if hook is None:
        return
    try:
        result = hook(event)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.warning("Hook %s raised an exception", hook, exc_info=True)
