"""
Session: the configuration context behind the command interface.

Owns the loaded tables, one :class:`FieldMap` per table index, and the
match options.  Every configuration command (``set``, ``add``,
``prefix``, ``method``, ``radius``, ``exclusive``) is a method here, and
``fetch`` / ``match`` read from it without keeping hidden state between
runs.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional

from .core.config import GeomatchConfig, resolve_api_key
from .core.exceptions import (
    ConfigurationError,
    TableIndexError,
    UnknownColumn,
)
from .core.hooks import FetchHooks
from .data.fields import ColumnKind, FieldMap, Variable
from .data.table import Table
from .fetch.orchestrator import FetchOrchestrator, FetchResult
from .geocoding.base import GeocodingClient, close_client
from .geocoding.google import GoogleGeocodingClient
from .join.engine import JoinEngine, JoinMethod
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


class Session:
    """
    Configuration context for a fetch/match workflow.

    Tables are addressed by the index they were added at.  ``fetch``
    replaces each table with its geocoded copy (the original Table object
    is left untouched) and points the table's ``lat``/``lng`` variables at
    the new columns, so ``match`` can follow directly.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[GeomatchConfig] = None,
        client_factory: Optional[Callable[[], GeocodingClient]] = None,
        hooks: Optional[FetchHooks] = None,
    ):
        """
        Args:
            api_key: Geocoding credential; falls back to ``API_KEY`` at fetch time.
            config: Fetch and retry options.
            client_factory: Builds the geocoding client for each fetch
                (defaults to :class:`GoogleGeocodingClient`).
            hooks: Lifecycle callbacks forwarded to every fetch.
        """
        self.config = config or GeomatchConfig()
        setup_logging(self.config.log_level, self.config.log_dir)
        self.hooks = hooks
        self._api_key = api_key
        self._client_factory = client_factory

        self.tables: List[Table] = []
        self.field_maps: Dict[int, FieldMap] = {}
        self.method = JoinMethod.LEFT
        self.radius: Optional[float] = None
        self.exclusive = True

    # -- tables ----------------------------------------------------------

    def add_table(self, table: Table, guess: bool = True) -> int:
        """Register a table and return its index.

        With ``guess``, variables are pre-filled from recognizable headers.
        """
        index = len(self.tables)
        self.tables.append(table)
        self.field_maps[index] = FieldMap.guess(table.columns) if guess else FieldMap()
        logger.debug("Added table %d with %d rows", index, table.height)
        return index

    def table(self, index: int) -> Table:
        self._check_index(index)
        return self.tables[index]

    def field_map(self, index: int) -> FieldMap:
        self._check_index(index)
        return self.field_maps[index]

    def list_columns(self, index: int) -> List[str]:
        return list(self.table(index).columns)

    # -- configuration commands -----------------------------------------

    def set(self, index: int, variable: str | Variable, column: str) -> None:
        """Assign ``column`` of table ``index`` to ``variable``."""
        field_map = self.field_map(index)
        var = Variable.parse(variable)
        self._check_column(index, column)
        field_map.set(var, column)

    def add(self, index: int, kind: str | ColumnKind, column: str) -> None:
        """Mark ``column`` of table ``index`` for output or comparison."""
        field_map = self.field_map(index)
        col_kind = ColumnKind.parse(kind)
        self._check_column(index, column)
        field_map.add_column(col_kind, column)

    def prefix(self, index: int, value: str) -> None:
        self.field_map(index).set_prefix(value)

    def set_method(self, method: str | JoinMethod) -> None:
        self.method = JoinMethod.parse(method)

    def set_radius(self, radius: float | str | None) -> None:
        """Enable nearest-neighbour fallback within ``radius`` miles (``None`` disables)."""
        if radius is None:
            self.radius = None
            return
        try:
            value = float(radius)
        except (TypeError, ValueError):
            raise ConfigurationError(f"radius must be a number, got '{radius}'") from None
        if value < 0:
            raise ConfigurationError(f"radius must be non-negative, got {value}")
        self.radius = value

    def set_exclusive(self, value: bool | str) -> None:
        if isinstance(value, bool):
            self.exclusive = value
            return
        text = str(value).strip().lower()
        if text not in ("true", "false"):
            raise ConfigurationError("val must be true or false")
        self.exclusive = text == "true"

    # -- inspection ------------------------------------------------------

    @property
    def ready_to_fetch(self) -> bool:
        return bool(self.tables) and all(fm.ready_to_fetch for fm in self.field_maps.values())

    @property
    def ready_to_match(self) -> bool:
        return bool(self.tables) and all(fm.ready_to_match for fm in self.field_maps.values())

    def describe(self) -> str:
        """Human-readable configuration dump. Never raises."""
        lines: List[str] = []
        for index, table in enumerate(self.tables):
            info = self.field_maps[index].describe()
            lines.append(f"{index}: {{")
            lines.append(f"\trows:\t{table.height}")
            lines.append(f"\tprefix:\t{info['prefix']}")
            for variable in Variable:
                lines.append(f"\t{variable.value}:\t{info[variable.value]}")
            lines.append(f"\toutput_columns:\t{', '.join(info['output_columns'])}")
            lines.append(f"\tcompare_columns:\t{', '.join(info['compare_columns'])}")
            lines.append("}")
        lines.append(f"Radius: {self.radius if self.radius is not None else 'exact'}")
        lines.append(f"MatchMode: {self.method.value}")
        lines.append(f"Exclusive: {str(self.exclusive).lower()}")
        return "\n".join(lines)

    # -- operations ------------------------------------------------------

    def fetch(self) -> List[FetchResult]:
        """Synchronous wrapper around :meth:`fetch_async`."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.fetch_async())
        raise RuntimeError(
            "Session.fetch() cannot be called from inside an async context. "
            "Use 'await session.fetch_async()' instead."
        )

    async def fetch_async(self) -> List[FetchResult]:
        """Geocode every loaded table, one new table per input table.

        All tables are checked before the first lookup, so a configuration
        error never leaves some tables fetched and others not.
        """
        for index, table in enumerate(self.tables):
            FetchOrchestrator.check_ready(table, self.field_maps[index], table_index=index)

        client = self._build_client()
        try:
            orchestrator = FetchOrchestrator(client, self.config, self.hooks)
            results = [
                await orchestrator.fetch_async(table, self.field_maps[index])
                for index, table in enumerate(self.tables)
            ]
        finally:
            await close_client(client)

        for index, result in enumerate(results):
            self.tables[index] = result.table
            self.field_maps[index] = result.field_map
        return results

    def match(self) -> Table:
        """Join the two loaded tables with the current method and options."""
        engine = JoinEngine(
            method=self.method,
            exclusive=self.exclusive,
            radius=self.radius,
            separator=self.config.separator,
        )
        return engine.join(self.tables, [self.field_maps[i] for i in range(len(self.tables))])

    # -- helpers ---------------------------------------------------------

    def _build_client(self) -> GeocodingClient:
        if self._client_factory is not None:
            return self._client_factory()
        return GoogleGeocodingClient(
            api_key=resolve_api_key(self._api_key),
            base_url=self.config.base_url,
            timeout=self.config.request_timeout,
        )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.tables):
            raise TableIndexError(f"Index out of bounds: {index} (loaded {len(self.tables)} tables)")

    def _check_column(self, index: int, column: str) -> None:
        if not self.tables[index].has_column(column):
            raise UnknownColumn(f"No column named {column}", field=column)
