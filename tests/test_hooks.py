"""Tests for lifecycle hooks (FetchHooks + event dataclasses)."""

from __future__ import annotations

import dataclasses
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from geomatch.core.hooks import (
    FetchEndEvent,
    FetchHooks,
    FetchStartEvent,
    RowCompleteEvent,
    _fire_hook,
)

# ---------------------------------------------------------------------------
# _fire_hook unit tests
# ---------------------------------------------------------------------------


class TestFireHook:
    @pytest.mark.asyncio
    async def test_none_hook_is_noop(self):
        await _fire_hook(None, "event")

    @pytest.mark.asyncio
    async def test_sync_callback_called(self):
        mock = MagicMock()
        event = FetchStartEvent(num_rows=10, config=None)
        await _fire_hook(mock, event)
        mock.assert_called_once_with(event)

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self):
        mock = AsyncMock()
        event = FetchStartEvent(num_rows=10, config=None)
        await _fire_hook(mock, event)
        mock.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_exception_caught_and_logged(self, caplog):
        def bad_hook(event):
            raise ValueError("hook error")

        with caplog.at_level(logging.WARNING):
            await _fire_hook(bad_hook, "event")

        assert "raised an exception" in caplog.text

    @pytest.mark.asyncio
    async def test_async_exception_caught(self, caplog):
        async def bad_async_hook(event):
            raise RuntimeError("async hook error")

        with caplog.at_level(logging.WARNING):
            await _fire_hook(bad_async_hook, "event")

        assert "raised an exception" in caplog.text


# ---------------------------------------------------------------------------
# Event dataclasses
# ---------------------------------------------------------------------------


class TestEvents:
    def test_events_are_frozen(self):
        event = RowCompleteEvent(row_index=0, address="a", coordinates=(1.0, 2.0), error=None, attempts=1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.row_index = 1

    def test_end_event_defaults_not_aborted(self):
        event = FetchEndEvent(num_rows=3, total_failures=0, elapsed_seconds=0.1)
        assert event.aborted is False

    def test_hooks_default_empty(self):
        hooks = FetchHooks()
        assert hooks.on_fetch_start is None
        assert hooks.on_row_complete is None
        assert hooks.on_fetch_end is None
