"""Tests for the immutable Table container."""

from __future__ import annotations

import dataclasses

import pandas as pd
import pytest

from geomatch.data.table import Table


class TestTableConstruction:
    def test_cells_are_strings(self):
        table = Table(["a", "b"], [[1, None], [2.5, "x"]])
        assert table.rows == (("1", ""), ("2.5", "x"))

    def test_shape(self):
        table = Table(["a", "b", "c"], [["1", "2", "3"]])
        assert table.height == 1
        assert table.width == 3
        assert len(table) == 1

    def test_empty_table(self):
        table = Table(["a"])
        assert table.height == 0
        assert table.rows == ()

    def test_duplicate_columns_rejected(self):
        with pytest.raises(ValueError, match="Duplicate column"):
            Table(["a", "a"], [])

    def test_ragged_row_rejected(self):
        with pytest.raises(ValueError, match="Row 1 has 1 cells"):
            Table(["a", "b"], [["1", "2"], ["3"]])

    def test_frozen(self):
        table = Table(["a"], [["1"]])
        with pytest.raises(dataclasses.FrozenInstanceError):
            table.columns = ("b",)


class TestTableAccess:
    def test_column_index(self):
        table = Table(["a", "b"], [])
        assert table.column_index("b") == 1

    def test_missing_column_raises_key_error(self):
        table = Table(["a"], [])
        with pytest.raises(KeyError, match="No column named z"):
            table.column_index("z")

    def test_column_and_cell(self):
        table = Table(["name", "city"], [["A", "Paris"], ["B", "Rome"]])
        assert table.column("city") == ["Paris", "Rome"]
        assert table.cell(1, "name") == "B"
        assert table.has_column("name")
        assert not table.has_column("zip")


class TestWithColumns:
    def test_appends_new_columns(self):
        table = Table(["a"], [["1"], ["2"]])
        out = table.with_columns(["lat", "lng"], [["1.0", "2.0"], ["", ""]])
        assert out.columns == ("a", "lat", "lng")
        assert out.rows == (("1", "1.0", "2.0"), ("2", "", ""))

    def test_original_untouched(self):
        table = Table(["a"], [["1"]])
        table.with_columns(["lat"], [["5"]])
        assert table.columns == ("a",)
        assert table.rows == (("1",),)

    def test_replaces_existing_column(self):
        table = Table(["lat", "a"], [["old", "1"]])
        out = table.with_columns(["lat"], [["new"]])
        assert out.columns == ("a", "lat")
        assert out.rows == (("1", "new"),)

    def test_value_count_mismatch(self):
        table = Table(["a"], [["1"], ["2"]])
        with pytest.raises(ValueError, match="Expected 2 value rows"):
            table.with_columns(["lat"], [["1"]])


class TestDataFrameBoundary:
    def test_from_dataframe_blanks_nan(self):
        df = pd.DataFrame({"a": [1.0, None], "b": ["x", "y"]})
        table = Table.from_dataframe(df)
        assert table.columns == ("a", "b")
        assert table.rows == (("1.0", "x"), ("", "y"))

    def test_to_dataframe(self):
        table = Table(["a", "b"], [["1", "x"]])
        df = table.to_dataframe()
        assert list(df.columns) == ["a", "b"]
        assert df.iloc[0]["b"] == "x"

    def test_repr(self):
        assert repr(Table(["a"], [["1"], ["2"]])) == "Table(columns=['a'], rows=2)"
