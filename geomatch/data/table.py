"""Immutable in-memory table of string cells."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import pandas as pd


@dataclass(frozen=True)
class Table:
    """One loaded file: ordered unique column names and ordered rows.

    Every row has exactly ``len(columns)`` cells, in column order. Tables
    are never mutated; operations that add columns return a new Table.
    """

    columns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...] = ()

    def __init__(self, columns: Iterable[str], rows: Iterable[Sequence[Any]] = ()):
        cols = tuple(str(c) for c in columns)
        data = tuple(tuple("" if cell is None else str(cell) for cell in row) for row in rows)

        seen: set[str] = set()
        dupes: list[str] = []
        for c in cols:
            if c in seen:
                dupes.append(c)
            seen.add(c)
        if dupes:
            raise ValueError(f"Duplicate column names: {dupes}")

        for idx, row in enumerate(data):
            if len(row) != len(cols):
                raise ValueError(f"Row {idx} has {len(row)} cells, expected {len(cols)}")

        object.__setattr__(self, "columns", cols)
        object.__setattr__(self, "rows", data)

    # -- shape -----------------------------------------------------------

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return len(self.columns)

    def __len__(self) -> int:
        return len(self.rows)

    # -- access ----------------------------------------------------------

    def has_column(self, name: str) -> bool:
        return name in self.columns

    def column_index(self, name: str) -> int:
        """Position of ``name``; raises ``KeyError`` if absent."""
        try:
            return self.columns.index(name)
        except ValueError:
            raise KeyError(f"No column named {name}") from None

    def column(self, name: str) -> list[str]:
        idx = self.column_index(name)
        return [row[idx] for row in self.rows]

    def cell(self, row: int, name: str) -> str:
        return self.rows[row][self.column_index(name)]

    # -- derivation ------------------------------------------------------

    def with_columns(self, names: Sequence[str], values: Sequence[Sequence[str]],
                     replace: bool = True) -> Table:
        """Return a new Table with ``names`` appended.

        ``values[i]`` holds the new cells for row ``i``. With ``replace``,
        existing columns sharing a new name are dropped first.
        """
        if len(values) != self.height:
            raise ValueError(f"Expected {self.height} value rows, got {len(values)}")

        keep = [i for i, c in enumerate(self.columns) if not (replace and c in names)]
        columns = [self.columns[i] for i in keep] + list(names)
        rows = [
            [row[i] for i in keep] + list(extra)
            for row, extra in zip(self.rows, values)
        ]
        return Table(columns, rows)

    # -- pandas boundary -------------------------------------------------

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> Table:
        """Build a Table from a DataFrame; NaN cells become empty strings."""
        frame = df.astype(object).where(pd.notna(df), "")
        return cls([str(c) for c in frame.columns], frame.itertuples(index=False, name=None))

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.rows), columns=list(self.columns), dtype=str)

    def __repr__(self) -> str:
        return f"Table(columns={list(self.columns)}, rows={self.height})"
