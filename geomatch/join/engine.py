"""JoinEngine: matches two geocoded tables on their coordinates."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, utils as rf_utils

from ..core.exceptions import (
    ConfigurationError,
    DuplicateOutputColumn,
    IncompleteJoinConfiguration,
    UnknownJoinMethod,
    UnsupportedArity,
)
from ..data.fields import MATCH_VARIABLES, FieldMap, Variable
from ..data.table import Table
from ..utils.logger import get_logger

logger = get_logger(__name__)

EARTH_RADIUS_MILES = 3958.8

MatchKey = Tuple[float, float]


class JoinMethod(str, Enum):
    """How unmatched left rows are treated."""

    LEFT = "left"
    INNER = "inner"

    @classmethod
    def parse(cls, name: str | JoinMethod) -> JoinMethod:
        if isinstance(name, JoinMethod):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise UnknownJoinMethod(f"Invalid match mode '{name}'. Valid: left, inner") from None


def parse_key(lat: str, lng: str) -> Optional[MatchKey]:
    """Normalize a pair of cells to floats; blank, invalid, NaN or infinite gives ``None``."""
    try:
        key = (float(lat.strip()), float(lng.strip()))
    except ValueError:
        return None
    if not (math.isfinite(key[0]) and math.isfinite(key[1])):
        return None
    return key


def haversine(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2)
    # Rounding can push a just past 1 for near-antipodal points
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass
class _Side:
    table: Table
    field_map: FieldMap
    keys: List[Optional[MatchKey]]
    output_idx: List[int]
    compare_idx: List[int]

    def output_row(self, row: int) -> List[str]:
        cells = self.table.rows[row]
        return [cells[i] for i in self.output_idx]

    def compare_row(self, row: int) -> List[str]:
        cells = self.table.rows[row]
        return [cells[i] for i in self.compare_idx]


class JoinEngine:
    """Combines exactly two tables into one output table.

    Rows match when their parsed ``(lat, lng)`` pairs are exactly equal.
    Among several candidates the first in right-table order wins, unless
    both sides declare compare columns, in which case the candidate whose
    compare cells are closest (``rapidfuzz`` token-sort distance) wins.

    Args:
        method: ``LEFT`` keeps every left row; ``INNER`` keeps matches only.
        exclusive: A right row can be matched at most once.
        radius: If set (miles), a left row without an exact match takes the
            nearest unmatched right row within this distance.
        separator: Joins a table prefix to its column names.
    """

    def __init__(
        self,
        method: JoinMethod | str = JoinMethod.LEFT,
        exclusive: bool = True,
        radius: Optional[float] = None,
        separator: str = "_",
    ):
        if radius is not None and radius < 0:
            raise ConfigurationError(f"radius must be non-negative, got {radius}")
        self.method = JoinMethod.parse(method)
        self.exclusive = exclusive
        self.radius = radius
        self.separator = separator

    # -- primary API -----------------------------------------------------

    def join(self, tables: Sequence[Table], field_maps: Sequence[FieldMap]) -> Table:
        """Join ``tables[0]`` (left) with ``tables[1]`` (right).

        Raises:
            UnsupportedArity: Unless exactly two tables and two maps are given.
            IncompleteJoinConfiguration: If either map lacks ``lat``/``lng``.
            UnknownColumn: If a mapped column is missing from its table.
            DuplicateOutputColumn: If both sides produce the same output name.
            ConfigurationError: If no output columns were selected.
        """
        left, right, headers = self._prepare(tables, field_maps)

        consumed: set[int] = set()
        index: Dict[MatchKey, List[int]] = {}
        for row, key in enumerate(right.keys):
            if key is not None:
                index.setdefault(key, []).append(row)

        blank_right = [""] * len(right.output_idx)
        rows: List[List[str]] = []
        matched = 0

        for row in range(left.table.height):
            match = self._find_match(row, left, right, index, consumed)
            if match is not None:
                matched += 1
                if self.exclusive:
                    consumed.add(match)
                rows.append(left.output_row(row) + right.output_row(match))
            elif self.method is JoinMethod.LEFT:
                rows.append(left.output_row(row) + blank_right)

        logger.info(
            "Match complete (%s): %d/%d left rows matched, %d output rows",
            self.method.value, matched, left.table.height, len(rows),
        )
        return Table(headers, rows)

    # -- validation ------------------------------------------------------

    def _prepare(
        self, tables: Sequence[Table], field_maps: Sequence[FieldMap]
    ) -> Tuple[_Side, _Side, List[str]]:
        if len(tables) != 2:
            raise UnsupportedArity(f"Matching requires exactly 2 tables, got {len(tables)}")
        if len(field_maps) != len(tables):
            raise UnsupportedArity(
                f"Got {len(field_maps)} field maps for {len(tables)} tables"
            )

        for idx, field_map in enumerate(field_maps):
            missing = field_map.missing(MATCH_VARIABLES)
            if missing:
                names = [v.value for v in missing]
                raise IncompleteJoinConfiguration(
                    f"Invalid config for match, table {idx} unset: {', '.join(names)}",
                    missing=names,
                )

        for table, field_map in zip(tables, field_maps):
            field_map.validate(table)

        headers: List[str] = []
        seen: set[str] = set()
        for field_map in field_maps:
            for name in field_map.output_headers(self.separator):
                if name in seen:
                    raise DuplicateOutputColumn(f"Output column '{name}' produced twice; set a prefix", field=name)
                seen.add(name)
                headers.append(name)

        if not headers:
            raise ConfigurationError("No output columns supplied")

        left, right = (self._side(t, f) for t, f in zip(tables, field_maps))
        return left, right, headers

    @staticmethod
    def _side(table: Table, field_map: FieldMap) -> _Side:
        lat_idx = table.column_index(field_map.get(Variable.LAT))
        lng_idx = table.column_index(field_map.get(Variable.LNG))
        return _Side(
            table=table,
            field_map=field_map,
            keys=[parse_key(r[lat_idx], r[lng_idx]) for r in table.rows],
            output_idx=[table.column_index(c) for c in field_map.output_columns],
            compare_idx=[table.column_index(c) for c in field_map.compare_columns],
        )

    # -- matching --------------------------------------------------------

    def _find_match(
        self,
        row: int,
        left: _Side,
        right: _Side,
        index: Dict[MatchKey, List[int]],
        consumed: set[int],
    ) -> Optional[int]:
        key = left.keys[row]
        if key is None:
            return None

        candidates = [c for c in index.get(key, []) if c not in consumed]
        if len(candidates) == 1:
            return candidates[0]
        if candidates:
            return self._break_tie(row, left, right, candidates)

        if self.radius is not None:
            return self._nearest(key, right, consumed)
        return None

    @staticmethod
    def _break_tie(row: int, left: _Side, right: _Side, candidates: List[int]) -> int:
        if not (left.compare_idx and right.compare_idx):
            return candidates[0]

        source = left.compare_row(row)
        best, best_dist = candidates[0], None
        for candidate in candidates:
            dist = 0
            for value in right.compare_row(candidate):
                col_dist = min(
                    100 - fuzz.token_sort_ratio(src, value, processor=rf_utils.default_process)
                    for src in source
                )
                dist += col_dist ** 2
            if best_dist is None or dist < best_dist:
                best, best_dist = candidate, dist
        return best

    def _nearest(self, key: MatchKey, right: _Side, consumed: set[int]) -> Optional[int]:
        best, best_dist = None, None
        for candidate, other in enumerate(right.keys):
            if other is None or candidate in consumed:
                continue
            dist = haversine(key[0], key[1], other[0], other[1])
            if best_dist is None or dist < best_dist:
                best, best_dist = candidate, dist

        if best is None or best_dist > self.radius:
            return None
        return best
