"""Tests for TableDisplay construction, decorators and model updates."""

from unittest.mock import MagicMock

import pytest

from ..comm import InMemoryComm
from ..errors import DecoratorEvaluationError, InvalidShape, UnknownColumn
from ..formats import Alignment, TimeUnit, ValueStringFormat, data_bars_renderer, decimal_format
from ..highlighters import ValueHighlighter, heatmap_highlighter
from ..table_display import TableDisplay
from ..types import ColumnType, TableSubtype
from ..widget import WIDGET_VIEW_MIMETYPE, WidgetState
from .conftest import last_update


class TestConstruction:
    """Tests for building a table from the accepted input shapes."""

    def test_opens_comm_with_full_model(self, table, comm):
        assert table.state == WidgetState.LIVE
        model = comm.opened["state"]["model"]
        assert model["values"] == [["alpha", 1, 0.5], ["beta", 2, 1.5], ["gamma", 3, 2.5]]
        assert comm.sent == []

    def test_positional_rows(self, comm):
        table = TableDisplay([[1, "a"]], ["n", "s"], ["integer", "string"], comm=comm)

        assert table.subtype == TableSubtype.TABLE_DISPLAY
        assert table.types == [ColumnType.INTEGER, ColumnType.STRING]

    def test_leading_empty_row_renders(self, comm):
        table = TableDisplay([[], [1, 2]], ["a", "b"], ["integer", "integer"], comm=comm)

        assert table.values == [[None, None], [1, 2]]
        assert "text/plain" in table._repr_mimebundle_()

    def test_names_and_types_mismatch_without_rows(self, comm):
        with pytest.raises(InvalidShape):
            TableDisplay([], ["a", "b"], ["integer"], comm=comm)
        assert comm.opened is None

    def test_positional_rows_need_types(self, comm):
        with pytest.raises(InvalidShape):
            TableDisplay([[1]], ["n"], comm=comm)

    def test_mapping(self, comm):
        table = TableDisplay({"a": 1}, comm=comm)

        assert table.subtype == TableSubtype.DICTIONARY
        assert table.values_as_dictionary() == {"a": 1}

    def test_matrix(self, comm):
        table = TableDisplay([[1, 2], [3, 4]], comm=comm)

        assert table.subtype == TableSubtype.MATRIX
        assert table.column_names == ["c0", "c1"]
        assert table.values_as_matrix() == [[1, 2], [3, 4]]

    def test_classmethods(self, comm):
        table = TableDisplay.from_elements(1, 2, ["x", "y"], lambda col, row: col, comm=comm)
        assert table.values_as_rows() == [{"x": 0, "y": 1}]

    def test_empty(self, comm):
        table = TableDisplay(comm=comm)
        assert len(table) == 0
        assert table.column_names == []

    def test_mixed_rows_rejected(self, comm):
        with pytest.raises(InvalidShape):
            TableDisplay([{"a": 1}, [1]], comm=comm)

    def test_scalar_rejected(self, comm):
        with pytest.raises(InvalidShape):
            TableDisplay("not a table", comm=comm)

    def test_invalid_input_never_opens_comm(self, comm):
        with pytest.raises(InvalidShape):
            TableDisplay([[1, 2], [3]], comm=comm)
        assert comm.opened is None

    def test_default_comm_from_factory(self):
        table = TableDisplay([{"a": 1}])
        assert isinstance(table.comm, InMemoryComm)
        assert table.comm.is_open


class TestFormatDecorators:
    """Tests for string formats, renderers and alignment."""

    def test_string_format_for_type(self, table, comm):
        table.set_string_format_for_type("double", decimal_format(2))

        assert len(comm.sent) == 1
        assert last_update(comm) == {
            "stringFormatForType": {
                "double": {"type": "decimal", "minDecimals": 2, "maxDecimals": 2}
            }
        }

    def test_string_format_for_times(self, table, comm):
        table.set_string_format_for_times(TimeUnit.DAYS)

        assert table.string_format_for_times == TimeUnit.DAYS
        assert last_update(comm)["stringFormatForType"]["time"]["unit"] == "DAYS"

    def test_formatter_callable(self, table, comm):
        table.set_string_format_for_column(
            "count", lambda value, row, col, t: f"#{value}@{row}:{col}"
        )

        fmt = table.string_format_for_column["count"]
        assert isinstance(fmt, ValueStringFormat)
        assert fmt.values == ["#1@0:1", "#2@1:1", "#3@2:1"]
        assert last_update(comm) == {
            "stringFormatForColumn": {
                "count": {"type": "value", "values": {"count": ["#1@0:1", "#2@1:1", "#3@2:1"]}}
            }
        }

    def test_formatter_object_with_apply(self, table):
        class Upper:
            def __init__(self):
                self.apply = MagicMock(side_effect=lambda value, row, col, t: value.upper())

        formatter = Upper()
        table.set_string_format_for_column("name", formatter)

        assert formatter.apply.call_count == 3
        formatter.apply.assert_any_call("beta", 1, 0, table)
        assert table.string_format_for_column["name"].values == ["ALPHA", "BETA", "GAMMA"]

    def test_failing_formatter_leaves_state(self, table, comm):
        table.set_string_format_for_column("name", decimal_format(1))
        before = dict(table.string_format_for_column)
        sent_before = len(comm.sent)

        def broken(value, row, col, t):
            if row == 1:
                raise RuntimeError("boom")
            return str(value)

        with pytest.raises(DecoratorEvaluationError) as exc_info:
            table.set_string_format_for_column("name", broken)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert "Can not create format" in str(exc_info.value)
        assert table.string_format_for_column == before
        assert len(comm.sent) == sent_before

    def test_unknown_column(self, table, comm):
        with pytest.raises(UnknownColumn):
            table.set_string_format_for_column("missing", decimal_format())
        with pytest.raises(UnknownColumn):
            table.set_column_visible("missing", False)
        assert comm.sent == []

    def test_by_column_wins_over_by_type(self, table):
        by_type = decimal_format(1)
        by_column = decimal_format(3)
        table.set_string_format_for_type(ColumnType.DOUBLE, by_type)
        assert table.string_format_for("score") is by_type

        table.set_string_format_for_column("score", by_column)
        assert table.string_format_for("score") is by_column
        assert table.string_format_for("name") is None

    def test_alignment_resolution(self, table, comm):
        table.set_alignment_provider_for_type(ColumnType.INTEGER, "C")
        table.set_alignment_provider_for_column("count", Alignment.LEFT)

        assert table.alignment_for("count") == Alignment.LEFT
        assert last_update(comm) == {"alignmentForColumn": {"count": "L"}}

    def test_renderers(self, table, comm):
        table.set_renderer_for_type(ColumnType.DOUBLE, data_bars_renderer())
        table.set_renderer_for_column("count", data_bars_renderer(False))

        assert table.renderer_for("score").include_text is True
        assert table.renderer_for("count").include_text is False
        assert last_update(comm) == {
            "rendererForColumn": {"count": {"type": "DataBars", "includeText": False}}
        }

    def test_unknown_type_label(self, table):
        with pytest.raises(ValueError):
            table.set_string_format_for_type("float128", decimal_format())


class TestLayoutDecorators:
    """Tests for frozen, visible and ordered columns and display options."""

    def test_each_mutator_sends_one_update(self, table, comm):
        table.set_column_frozen("name")
        table.set_column_frozen_right("score")
        table.set_column_visible("count", False)
        table.set_column_order(["score", "name"])
        table.set_headers_vertical(True)
        table.set_has_index(True)
        table.set_time_zone("UTC")
        table.set_header_font_size(10)

        updates = [m["state"]["updateData"] for m in comm.sent]
        assert updates == [
            {"columnsFrozen": {"name": True}},
            {"columnsFrozenRight": {"score": True}},
            {"columnsVisible": {"count": False}},
            {"columnOrder": ["score", "name"]},
            {"headersVertical": True},
            {"hasIndex": "true"},
            {"timeZone": "UTC"},
            {"headerFontSize": 10},
        ]

    def test_column_order_validates_names(self, table):
        with pytest.raises(UnknownColumn):
            table.set_column_order(["name", "nope"])
        assert table.column_order == []


class TestCellDecorators:
    """Tests for highlighters, tooltips, font colours and row filters."""

    def test_highlighter_object(self, table, comm):
        table.add_cell_highlighter(heatmap_highlighter("score"))

        assert len(table.cell_highlighters) == 1
        assert last_update(comm)["cellHighlighters"][0]["type"] == "HeatmapHighlighter"

    def test_highlighter_object_unknown_column(self, table):
        with pytest.raises(UnknownColumn):
            table.add_cell_highlighter(heatmap_highlighter("missing"))

    def test_highlighter_callable(self, table, comm):
        def provider(row, col, t):
            if col == 1 and row == 0:
                return "#FF0000"
            return None

        table.add_cell_highlighter(provider)

        assert len(comm.sent) == 1
        highlighters = table.cell_highlighters
        assert len(highlighters) == 1
        assert isinstance(highlighters[0], ValueHighlighter)
        assert highlighters[0].col_name == "count"
        assert last_update(comm)["cellHighlighters"][0]["colors"] == ["#FF0000", None, None]

    def test_highlighters_accumulate_and_clear(self, table, comm):
        table.add_cell_highlighter(heatmap_highlighter("score"))
        table.add_cell_highlighter(heatmap_highlighter("count"))
        assert len(table.cell_highlighters) == 2

        table.remove_all_cell_highlighters()
        assert table.cell_highlighters == []
        assert last_update(comm) == {"cellHighlighters": []}

    def test_failing_highlighter(self, table, comm):
        table.add_cell_highlighter(heatmap_highlighter("score"))
        sent_before = len(comm.sent)

        with pytest.raises(DecoratorEvaluationError, match="set cell highlighter"):
            table.add_cell_highlighter(lambda row, col, t: 1 / 0)

        assert len(table.cell_highlighters) == 1
        assert len(comm.sent) == sent_before

    def test_highlighter_bad_colour(self, table):
        with pytest.raises(DecoratorEvaluationError):
            table.add_cell_highlighter(lambda row, col, t: "not-a-colour")

    def test_tooltip_grid(self, table, comm):
        table.set_tooltip(lambda row, col, t: f"{row},{col}")

        assert table.tooltips[2] == ["2,0", "2,1", "2,2"]
        assert last_update(comm)["tooltips"][0] == ["0,0", "0,1", "0,2"]

    def test_tooltip_replaces_previous(self, table):
        table.set_tooltip(lambda row, col, t: "first")
        table.set_tooltip(lambda row, col, t: "second")
        assert len(table.tooltips) == 3
        assert table.tooltips[0][0] == "second"

    def test_failing_tooltip(self, table, comm):
        with pytest.raises(DecoratorEvaluationError, match="set tooltip"):
            table.set_tooltip(MagicMock(side_effect=KeyError("x")))
        assert table.tooltips == []
        assert comm.sent == []

    def test_font_color(self, table, comm):
        table.set_font_color_provider(lambda row, col, t: "#00FF00" if col == 0 else None)

        assert last_update(comm)["fontColor"][1] == ["#00FF00", None, None]

    def test_row_filter(self, table, comm):
        table.set_row_filter(lambda row, rows: rows[row][1] != 2)

        assert table.filtered_indices == [0, 2]
        assert table.filtered_values == [["alpha", 1, 0.5], ["gamma", 3, 2.5]]
        assert last_update(comm) == {
            "filteredValues": [["alpha", 1, 0.5], ["gamma", 3, 2.5]]
        }

    def test_failing_row_filter_keeps_previous(self, table):
        table.set_row_filter(lambda row, rows: row == 0)

        with pytest.raises(DecoratorEvaluationError, match="set row filter"):
            table.set_row_filter(lambda row, rows: rows[row][5])

        assert table.filtered_indices == [0]


class TestCells:
    """Tests for cell updates."""

    def test_update_cell_pushes_values(self, table, comm):
        table.update_cell(1, "count", 2 ** 40)

        assert table.values[1][1] == str(2 ** 40)
        assert last_update(comm)["values"][1] == ["beta", str(2 ** 40), 1.5]
        # Types are fixed at construction
        assert table.types[1] == ColumnType.INTEGER

    @pytest.mark.parametrize("row", [-1, 3, True])
    def test_update_cell_row_out_of_range(self, table, comm, row):
        with pytest.raises(IndexError):
            table.update_cell(row, "count", 99)

        assert [r[1] for r in table.values] == [1, 2, 3]
        assert comm.sent == []

    def test_update_cell_unknown_column(self, table):
        with pytest.raises(UnknownColumn):
            table.update_cell(0, "missing", 1)

    def test_apply_cell_edit_is_silent(self, table, comm):
        table.apply_cell_edit(0, "name", "edited")

        assert table.values[0][0] == "edited"
        assert comm.sent == []


class TestActionsRegistration:
    """Tests for double-click and context-menu registration."""

    def test_double_click_tag_then_callable(self, table, comm):
        table.set_double_click_action("open_row")
        assert last_update(comm) == {"doubleClickTag": "open_row", "hasDoubleClickAction": False}

        table.set_double_click_action(lambda row, col, t: None)
        assert table.double_click_tag is None
        assert table.has_double_click_action
        assert last_update(comm) == {"doubleClickTag": None, "hasDoubleClickAction": True}

    def test_double_click_rejects_non_callable(self, table):
        with pytest.raises(TypeError):
            table.set_double_click_action(42)

    def test_context_menu_tag_xor_callable(self, table, comm):
        table.add_context_menu_item("Run", "run_tag")
        table.add_context_menu_item("Show", lambda row, col, t: None)
        table.add_context_menu_item("Run", lambda row, col, t: None)

        assert table.context_menu_items == ["Show", "Run"]
        assert table.context_menu_tags == {}
        assert last_update(comm) == {"contextMenuItems": ["Show", "Run"], "contextMenuTags": {}}


class TestUpdatesBeforeLive:
    """Tests for mutations while the comm is not open."""

    def test_update_dropped_until_live(self):
        comm = InMemoryComm()
        table = TableDisplay([{"a": 1}], comm=comm)

        # Force the widget back to uninitialized to check the guard
        table._state = WidgetState.UNINITIALIZED
        table.set_data_font_size(20)

        assert comm.sent == []
        assert table.data_font_size == 20


class TestSizeGuard:
    """Tests for the row limit."""

    def test_within_limit(self, table):
        assert table.too_many_rows is False

    def test_over_limit(self, small_limits, comm):
        table = TableDisplay([{"a": i} for i in range(4)], comm=comm, config=small_limits)

        assert table.too_many_rows is True
        assert "this table has 4 rows" in table.row_limit_msg

    @pytest.mark.parametrize("template", ["{rows} of {total}", "{rows", "{0}"])
    def test_bad_template_rejected(self, small_limits, comm, template):
        table = TableDisplay([{"a": i} for i in range(4)], comm=comm, config=small_limits)

        with pytest.raises(ValueError):
            table.set_row_limit_msg(template)

        assert "this table has 4 rows" in table.row_limit_msg
        table.send_model()
        assert comm.sent[-1]["state"]["model"]["tooManyRows"] is True

    def test_custom_message(self, small_limits, comm):
        table = TableDisplay([{"a": i} for i in range(4)], comm=comm, config=small_limits)
        table.set_row_limit_msg("{rows} > {limit}")

        assert table.row_limit_msg == "4 > 3"
        assert small_limits.limits.row_limit_msg != "{rows} > {limit}"


class TestRepresentation:
    """Tests for notebook and terminal representations."""

    def test_mimebundle(self, table, comm):
        bundle = table._repr_mimebundle_()

        assert bundle[WIDGET_VIEW_MIMETYPE]["model_id"] == comm.comm_id
        assert "alpha" in bundle["text/plain"]

    def test_repr(self, table):
        assert repr(table) == (
            "TableDisplay(rows=3, columns=['name', 'count', 'score'], subtype=ListOfMaps)"
        )


class TestInvariants:
    """End-to-end properties of built and decorated tables."""

    def test_row_lengths_match_columns(self, comm):
        table = TableDisplay([{"a": 1, "b": "x"}, {"a": 2}, {"c": 3}], comm=comm)

        assert table.column_names == ["a", "b"]
        assert all(len(row) == len(table.column_names) == len(table.types) for row in table.values)

    def test_key_value_table(self, comm):
        table = TableDisplay({"k1": 10, "k2": 20}, comm=comm)

        assert table.column_names == ["Key", "Value"]
        assert table.subtype == TableSubtype.DICTIONARY
        assert table.values == [["k1", 10], ["k2", 20]]

    def test_all_null_column_untyped(self, comm):
        table = TableDisplay([{"a": None, "b": 1}, {"a": None, "b": 2}], comm=comm)
        assert table.types == [None, ColumnType.INTEGER]

    def test_noop_filter_keeps_all_rows(self, table):
        table.set_row_filter(lambda row, rows: True)
        assert table.filtered_values == table.values

    def test_max_int64_is_a_string_on_the_wire(self, comm):
        table = TableDisplay([{"v": 9223372036854775807}], comm=comm)

        assert table.types == [ColumnType.INT64]
        assert comm.opened["state"]["model"]["values"] == [["9223372036854775807"]]

    def test_callable_then_tag(self, table):
        table.set_double_click_action(lambda row, col, t: None)
        table.set_double_click_action("open_row")

        assert table.double_click_tag == "open_row"
        assert table.has_double_click_action is False

    def test_filter_failure_before_any_filter(self, table):
        with pytest.raises(DecoratorEvaluationError):
            table.set_row_filter(lambda row, rows: 1 / 0)
        assert table.filtered_values is None
