"""Tests for input normalization and column type inference."""

from unittest.mock import patch

import pytest

from .. import normalize
from ..errors import InvalidShape, UnknownColumn
from ..normalize import (
    NormalizedTable,
    from_elements,
    from_mapping,
    from_matrix,
    from_records,
    from_rows,
    infer_column_types,
)
from ..types import ColumnType, TableSubtype


class TestFromRows:
    """Tests for positional rows with explicit names and types."""

    def test_basic(self):
        table = from_rows([[1, "a"], [2, "b"]], ["n", "s"], ["integer", "string"])

        assert table.rows == [[1, "a"], [2, "b"]]
        assert table.column_names == ["n", "s"]
        assert table.column_types == [ColumnType.INTEGER, ColumnType.STRING]
        assert table.subtype == TableSubtype.TABLE_DISPLAY

    def test_types_length_mismatch(self):
        with pytest.raises(InvalidShape) as exc_info:
            from_rows([[1, 2]], ["a", "b"], ["integer"])
        assert exc_info.value.row_index == 0
        assert "length of types" in str(exc_info.value)

    def test_leading_empty_rows_are_skipped_for_width_check(self):
        with pytest.raises(InvalidShape) as exc_info:
            from_rows([[], [1, 2, 3]], ["a", "b"], ["integer", "integer"])
        assert exc_info.value.row_index == 1

    def test_empty_rows_padded_to_width(self):
        table = from_rows([[], [1, 2], []], ["a", "b"], ["integer", "integer"])
        assert table.rows == [[None, None], [1, 2], [None, None]]

    def test_all_rows_empty(self):
        table = from_rows([[], []], ["a", "b"], ["integer", "string"])
        assert table.rows == [[None, None], [None, None]]

    def test_names_and_types_must_match_without_rows(self):
        with pytest.raises(InvalidShape, match="column names"):
            from_rows([], ["a", "b"], ["integer"])

    def test_ragged_rows(self):
        with pytest.raises(InvalidShape, match="expected 2"):
            from_rows([[1, 2], [3]], ["a", "b"], ["integer", "integer"])

    def test_name_count_mismatch(self):
        with pytest.raises(InvalidShape):
            from_rows([[1, 2]], ["a"], ["integer", "integer"])

    def test_invalid_shape_is_value_error(self):
        with pytest.raises(ValueError):
            from_rows([[1, 2]], ["a", "b"], ["integer"])

    def test_wide_integers_canonicalized(self):
        table = from_rows([[2 ** 40]], ["big"], ["int64"])
        assert table.rows == [[str(2 ** 40)]]

    def test_no_rows(self):
        table = from_rows([], ["a"], ["string"])
        assert table.rows == []
        assert table.column_names == ["a"]


class TestFromRecords:
    """Tests for row-mapping input."""

    def test_columns_from_first_row(self):
        table = from_records([{"a": 1, "b": "x"}, {"b": "y", "a": 2}])

        assert table.column_names == ["a", "b"]
        assert table.rows == [[1, "x"], [2, "y"]]
        assert table.subtype == TableSubtype.LIST_OF_MAPS

    def test_missing_keys_become_none(self):
        table = from_records([{"a": 1, "b": "x"}, {"a": 2}])
        assert table.rows == [[1, "x"], [2, None]]

    def test_extra_keys_dropped(self):
        table = from_records([{"a": 1}, {"a": 2, "z": 99}])
        assert table.column_names == ["a"]
        assert table.rows == [[1], [2]]

    def test_types_inferred(self):
        table = from_records([
            {"i": 1, "d": 1, "s": 1, "n": None},
            {"i": 2, "d": 2.5, "s": "x", "n": None},
        ])
        assert table.column_types == [
            ColumnType.INTEGER,
            ColumnType.DOUBLE,
            ColumnType.STRING,
            None,
        ]

    def test_int64_column_values_are_strings(self):
        big = 2 ** 40
        table = from_records([{"v": 1}, {"v": big}])

        assert table.column_types == [ColumnType.INT64]
        assert table.rows == [[1], [str(big)]]

    def test_non_mapping_row(self):
        with pytest.raises(InvalidShape) as exc_info:
            from_records([{"a": 1}, [1]])
        assert exc_info.value.row_index == 1

    def test_empty(self):
        table = from_records([])
        assert table.rows == []
        assert table.column_names == []
        assert table.column_types == []


class TestFromMapping:
    """Tests for single-mapping input."""

    def test_key_value_table(self):
        table = from_mapping({"x": 1, 2: "two"})

        assert table.column_names == ["Key", "Value"]
        assert table.rows == [["x", 1], ["2", "two"]]
        assert table.column_types == [ColumnType.STRING, None]
        assert table.subtype == TableSubtype.DICTIONARY


class TestFromMatrix:
    """Tests for bare matrix input."""

    def test_generated_names_and_inferred_types(self):
        table = from_matrix([[1, "a", None], [2.5, "b", None]])

        assert table.column_names == ["c0", "c1", "c2"]
        assert table.column_types == [ColumnType.DOUBLE, ColumnType.STRING, None]
        assert table.subtype == TableSubtype.MATRIX

    def test_ragged(self):
        with pytest.raises(InvalidShape):
            from_matrix([[1, 2], [3]])


class TestFromElements:
    """Tests for element-grid input."""

    def test_reads_by_column_then_row(self):
        calls = []

        def element(col, row):
            calls.append((col, row))
            return row * 10 + col

        table = from_elements(2, 2, ["a", "b"], element)

        assert table.rows == [[0, 1], [10, 11]]
        assert table.column_names == ["a", "b"]
        assert table.subtype == TableSubtype.LIST_OF_MAPS
        assert (1, 0) in calls

    def test_too_few_names(self):
        with pytest.raises(InvalidShape):
            from_elements(1, 3, ["a"], lambda col, row: None)


class TestInferColumnTypes:
    """Tests for the single-pass inference loop."""

    def test_string_column_stops_being_checked(self):
        rows = [["x", 1], [object(), 2], [3, 3]]

        with patch.object(normalize, "infer_type", wraps=normalize.infer_type) as spy:
            types = infer_column_types(["s", "n"], rows)

        assert types == [ColumnType.STRING, ColumnType.INTEGER]
        # Two cells in the first row, then only the second column.
        assert spy.call_count == 4

    def test_nulls_do_not_widen(self):
        types = infer_column_types(["a"], [[None], [1], [None]])
        assert types == [ColumnType.INTEGER]


class TestNormalizedTable:
    """Tests for NormalizedTable lookups."""

    def test_duplicate_names(self):
        with pytest.raises(InvalidShape, match="unique"):
            NormalizedTable([], ["a", "a"], [None, None], TableSubtype.MATRIX)

    def test_index_of(self):
        table = NormalizedTable([], ["a", "b"], [None, None], TableSubtype.MATRIX)

        assert table.index_of("b") == 1
        assert table.has_column("a")
        assert not table.has_column("z")

    def test_unknown_column(self):
        table = NormalizedTable([], ["a"], [None], TableSubtype.MATRIX)

        with pytest.raises(UnknownColumn) as exc_info:
            table.index_of("z")
        assert str(exc_info.value) == "Column 'z' doesn't exist"
        assert isinstance(exc_info.value, KeyError)
