"""FetchOrchestrator: geocodes every row of a table concurrently."""

from __future__ import annotations

import asyncio
import time as _time
from dataclasses import dataclass, field
from typing import List, Optional

from tqdm.auto import tqdm

from ..core.config import LAT_COLUMN, LNG_COLUMN, GeomatchConfig
from ..core.exceptions import IncompleteConfiguration, PermanentFetchError, RowFailure
from ..core.hooks import (
    FetchEndEvent,
    FetchHooks,
    FetchStartEvent,
    RowCompleteEvent,
    _fire_hook,
)
from ..data.fields import FETCH_VARIABLES, FieldMap, Variable
from ..data.table import Table
from ..geocoding.base import GeocodingClient, GeoResult, close_client
from ..geocoding.geocoder import Geocoder
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FetchResult:
    """Result from FetchOrchestrator.fetch() / fetch_async().

    Attributes:
        table: New table with ``lat``/``lng`` appended, input row order.
        field_map: Copy of the input mapping with ``lat``/``lng`` pointing
            at the new columns.
        failures: One record per row that could not be geocoded.
    """

    table: Table
    field_map: FieldMap
    failures: List[RowFailure] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def has_failures(self) -> bool:
        return len(self.failures) > 0

    @property
    def success_rate(self) -> float:
        """Fraction of rows that received coordinates."""
        total = self.table.height
        if total == 0:
            return 1.0
        return 1.0 - len(self.failures) / total


def format_address(table: Table, field_map: FieldMap, row: int) -> Optional[str]:
    """Single-line query for ``row``: ``addr1[, addr2], city, state[, zipcode]``.

    Returns ``None`` when the street, city or state cell is blank.
    """
    def cell(variable: Variable) -> str:
        column = field_map.get(variable)
        if column is None:
            return ""
        return table.cell(row, column).strip()

    addr1, city, state = cell(Variable.ADDR1), cell(Variable.CITY), cell(Variable.STATE)
    if not (addr1 and city and state):
        return None

    parts = [addr1, cell(Variable.ADDR2), city, state, cell(Variable.ZIPCODE)]
    return ", ".join(p for p in parts if p)


class FetchOrchestrator:
    """Geocodes a table with a bounded worker pool.

    Workers share one rate limiter (inside a per-run :class:`Geocoder`) and
    write into a results list indexed by row, so the output table keeps
    the input order whatever order lookups complete in.
    """

    def __init__(
        self,
        client: GeocodingClient,
        config: Optional[GeomatchConfig] = None,
        hooks: Optional[FetchHooks] = None,
    ):
        self.client = client
        self.config = config or GeomatchConfig()
        self.hooks = hooks or FetchHooks()

    # -- primary API -----------------------------------------------------

    def fetch(self, table: Table, field_map: FieldMap) -> FetchResult:
        """Synchronous entry point.

        Runs the fetch on a fresh event loop and closes the client before
        that loop ends, so the orchestrator can be called again.  Raises
        ``RuntimeError`` if called from inside a running event loop (use
        ``await orchestrator.fetch_async(...)`` in that case).
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self._fetch_and_close(table, field_map))
        raise RuntimeError(
            "FetchOrchestrator.fetch() cannot be called from inside an async context. "
            "Use 'await orchestrator.fetch_async(...)' instead."
        )

    async def _fetch_and_close(self, table: Table, field_map: FieldMap) -> FetchResult:
        try:
            return await self.fetch_async(table, field_map)
        finally:
            await close_client(self.client)

    async def fetch_async(self, table: Table, field_map: FieldMap) -> FetchResult:
        """Geocode every row of ``table``.

        Raises:
            IncompleteConfiguration: If ``addr1``, ``city``, ``state`` or
                ``zipcode`` is unset.  No lookup is issued.
            UnknownColumn: If a mapped column is missing from ``table``.
            FetchAborted: If the service rejects the credential.  Pending
                lookups are cancelled and no table is returned.
        """
        self.check_ready(table, field_map)

        num_rows = table.height
        addresses = [format_address(table, field_map, idx) for idx in range(num_rows)]
        geocoder = Geocoder(self.client, self.config)
        semaphore = asyncio.Semaphore(self.config.max_workers)
        results: List[Optional[GeoResult]] = [None] * num_rows

        logger.info(
            "Fetching %d coords (%d workers, %.1f req/s)",
            num_rows, self.config.max_workers, self.config.requests_per_second,
        )
        await _fire_hook(self.hooks.on_fetch_start, FetchStartEvent(num_rows=num_rows, config=self.config))

        bar = tqdm(total=num_rows, desc="Fetching", unit="row", disable=not self.config.enable_progress_bar)
        start = _time.monotonic()

        async def process_row(idx: int) -> None:
            address = addresses[idx]
            if address is None:
                result = GeoResult(
                    error=PermanentFetchError("Blank street, city or state", row_index=idx),
                )
            else:
                async with semaphore:
                    result = await geocoder.geocode(address)

            results[idx] = result
            bar.update(1)
            await _fire_hook(self.hooks.on_row_complete, RowCompleteEvent(
                row_index=idx,
                address=address,
                coordinates=result.coordinates,
                error=result.error,
                attempts=result.attempts,
            ))

        tasks = [asyncio.create_task(process_row(idx)) for idx in range(num_rows)]
        aborted = True
        try:
            await asyncio.gather(*tasks)
            aborted = False
        finally:
            if aborted:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
            bar.close()
            failed = sum(1 for r in results if r is not None and not r.ok)
            await _fire_hook(self.hooks.on_fetch_end, FetchEndEvent(
                num_rows=num_rows,
                total_failures=failed,
                elapsed_seconds=_time.monotonic() - start,
                aborted=aborted,
            ))

        return self._assemble(table, field_map, addresses, results)

    # -- helpers ---------------------------------------------------------

    @staticmethod
    def check_ready(table: Table, field_map: FieldMap, table_index: Optional[int] = None) -> None:
        """Raise unless ``field_map`` can drive a fetch of ``table``.

        ``table_index`` only labels the error message.
        """
        missing = field_map.missing(FETCH_VARIABLES)
        if missing:
            names = [v.value for v in missing]
            where = f" (table {table_index})" if table_index is not None else ""
            raise IncompleteConfiguration(
                f"Invalid config for fetch{where}, unset: {', '.join(names)}",
                missing=names,
            )
        field_map.validate(table)

    def _assemble(
        self,
        table: Table,
        field_map: FieldMap,
        addresses: List[Optional[str]],
        results: List[Optional[GeoResult]],
    ) -> FetchResult:
        names = [LAT_COLUMN, LNG_COLUMN]
        norm_column = self.config.normalized_address_column
        if norm_column:
            names.append(norm_column)

        values: List[List[str]] = []
        failures: List[RowFailure] = []
        for idx, result in enumerate(results):
            if result.ok:
                lat, lng = result.coordinates
                cells = [str(lat), str(lng)]
            else:
                cells = ["", ""]
                failures.append(RowFailure(row_index=idx, address=addresses[idx], error=result.error))
            if norm_column:
                cells.append(result.formatted_address)
            values.append(cells)

        enriched = table.with_columns(names, values)

        out_map = field_map.copy()
        out_map.set(Variable.LAT, LAT_COLUMN)
        out_map.set(Variable.LNG, LNG_COLUMN)

        total = table.height
        logger.info("Fetch complete: %d/%d rows geocoded", total - len(failures), total)
        if failures:
            logger.warning("%d rows failed geocoding", len(failures))
            for failure in failures[:5]:
                logger.warning("  Row %d: %s", failure.row_index, failure.error)

        return FetchResult(table=enriched, field_map=out_map, failures=failures)
