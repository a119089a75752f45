"""Per-table field mapping.

A :class:`FieldMap` records which column holds each semantic
:class:`Variable`, an optional output prefix, and the ordered lists of
columns marked for output or comparison.  It is built incrementally by
the command layer (see :class:`~geomatch.session.Session`) and read
by fetch and match.

Column existence is checked against the owning table: by the session at
command time, and again by :meth:`FieldMap.validate` right before a fetch
or join uses the mapping.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..core.exceptions import ConfigurationError, UnknownColumn, UnknownVariable
from .table import Table

UNSET = "unset"


class Variable(str, Enum):
    """Semantic variables a column can be assigned to."""

    ADDR1 = "addr1"
    ADDR2 = "addr2"
    CITY = "city"
    STATE = "state"
    ZIPCODE = "zipcode"
    LAT = "lat"
    LNG = "lng"

    @classmethod
    def parse(cls, name: str | Variable) -> Variable:
        if isinstance(name, Variable):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            valid = ", ".join(v.value for v in cls)
            raise UnknownVariable(f"Unknown variable '{name}'. Valid: {valid}", field=str(name)) from None


class ColumnKind(str, Enum):
    """Purpose of an extra column added with ``add``."""

    OUTPUT = "output"
    COMPARE = "compare"

    @classmethod
    def parse(cls, name: str | ColumnKind) -> ColumnKind:
        if isinstance(name, ColumnKind):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise ConfigurationError(f"Invalid column type '{name}'. Valid: output, compare") from None


FETCH_VARIABLES = (Variable.ADDR1, Variable.CITY, Variable.STATE, Variable.ZIPCODE)
MATCH_VARIABLES = (Variable.LAT, Variable.LNG)

# Normalized header -> variable, used by FieldMap.guess
_HEADER_ALIASES: Dict[str, Variable] = {
    "addr1": Variable.ADDR1,
    "address": Variable.ADDR1,
    "addr": Variable.ADDR1,
    "addr2": Variable.ADDR2,
    "address2": Variable.ADDR2,
    "city": Variable.CITY,
    "state": Variable.STATE,
    "zipcode": Variable.ZIPCODE,
    "zip": Variable.ZIPCODE,
    "postalcode": Variable.ZIPCODE,
    "lat": Variable.LAT,
    "latitude": Variable.LAT,
    "lng": Variable.LNG,
    "longitude": Variable.LNG,
}


@dataclass
class FieldMap:
    """Configuration for one table."""

    columns: Dict[Variable, str] = field(default_factory=dict)
    prefix: Optional[str] = None
    output_columns: List[str] = field(default_factory=list)
    compare_columns: List[str] = field(default_factory=list)

    @classmethod
    def guess(cls, columns: Iterable[str]) -> FieldMap:
        """Pre-fill variables from recognizable header names.

        Headers are compared lower-cased with spaces removed; the last
        matching header wins.
        """
        field_map = cls()
        for header in columns:
            key = header.strip().lower().replace(" ", "")
            variable = _HEADER_ALIASES.get(key)
            if variable is not None:
                field_map.columns[variable] = header
        return field_map

    # -- mutation --------------------------------------------------------

    def set(self, variable: str | Variable, column: str) -> Variable:
        var = Variable.parse(variable)
        self.columns[var] = column
        return var

    def unset(self, variable: str | Variable) -> None:
        self.columns.pop(Variable.parse(variable), None)

    def add_column(self, kind: str | ColumnKind, column: str) -> None:
        target = self.output_columns if ColumnKind.parse(kind) is ColumnKind.OUTPUT else self.compare_columns
        if column not in target:
            target.append(column)

    def set_prefix(self, value: Optional[str]) -> None:
        self.prefix = value or None

    # -- queries ---------------------------------------------------------

    def get(self, variable: str | Variable) -> Optional[str]:
        return self.columns.get(Variable.parse(variable))

    def missing(self, variables: Sequence[Variable]) -> List[Variable]:
        return [v for v in variables if v not in self.columns]

    @property
    def ready_to_fetch(self) -> bool:
        return not self.missing(FETCH_VARIABLES)

    @property
    def ready_to_match(self) -> bool:
        return not self.missing(MATCH_VARIABLES)

    def referenced_columns(self) -> List[str]:
        refs = [self.columns[v] for v in Variable if v in self.columns]
        return refs + self.output_columns + self.compare_columns

    def validate(self, table: Table) -> None:
        """Raise :class:`UnknownColumn` for the first reference missing from ``table``."""
        for name in self.referenced_columns():
            if not table.has_column(name):
                raise UnknownColumn(f"No column named {name}", field=name)

    def output_name(self, column: str, separator: str = "_") -> str:
        if self.prefix:
            return f"{self.prefix}{separator}{column}"
        return column

    def output_headers(self, separator: str = "_") -> List[str]:
        return [self.output_name(c, separator) for c in self.output_columns]

    def describe(self) -> Dict[str, Any]:
        """Snapshot for display. Never raises; unset variables read ``"unset"``."""
        info: Dict[str, Any] = {"prefix": self.prefix or ""}
        for variable in Variable:
            info[variable.value] = self.columns.get(variable, UNSET)
        info["output_columns"] = list(self.output_columns)
        info["compare_columns"] = list(self.compare_columns)
        return info

    def copy(self) -> FieldMap:
        return copy.deepcopy(self)
