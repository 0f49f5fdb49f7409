"""TableDisplay: a table widget kept in sync with its front-end view.

A TableDisplay is built from raw data, normalized and typed, and only then
opened on its comm with the complete model, so the view never sees a
partially typed table. After that every mutator sends exactly one update
carrying the field it changed; listeners run from inbound messages are
followed by a full model resend, since they may have changed anything.

Usage:
    from tabledisplay import TableDisplay

    table = TableDisplay([{"a": 1, "b": "x"}, {"a": 2}])
    table.add_cell_highlighter(lambda row, col, t: "red" if row == 0 else None)
    table.set_row_filter(lambda row, rows: rows[row][0] > 1)
    table.set_double_click_action(lambda row, col, t: t.update_cell(row, "b", "clicked"))
"""

import dataclasses
import logging
from collections.abc import Mapping as MappingABC
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from . import serializer
from .actions import TableActionDetails, TableDisplayActions
from .colors import ColorTriplet
from .comm import Comm
from .config import TableDisplayConfig, get_default_config
from .errors import InteractionHandlerError, InvalidShape
from .evaluators import (
    CellAction,
    CellColorProvider,
    CellTextProvider,
    RowPredicate,
    as_callable,
    filter_rows,
    font_color_grid,
    format_column,
    highlight_cells,
    tooltip_grid,
)
from .formats import Alignment, CellRenderer, StringFormat, TimeStringFormat, TimeUnit, time_format
from .highlighters import CellHighlighter
from .normalize import (
    NormalizedTable,
    from_elements,
    from_mapping,
    from_matrix,
    from_records,
    from_rows,
)
from .preview import build_preview, render_text
from .types import ColumnType, TableSubtype, canonical_value, coerce_column_type
from .widget import Widget

logger = logging.getLogger(__name__)

Action = Union[str, Callable[..., Any]]


def _normalize(data: Any, columns: Optional[Sequence[str]], types: Optional[Sequence[Any]]) -> NormalizedTable:
    """Pick the normalizer matching the shape of ``data``."""
    if isinstance(data, NormalizedTable):
        return data
    if columns is not None or types is not None:
        if columns is None or types is None:
            raise InvalidShape("Positional rows need both column names and types")
        return from_rows(data, columns, types)
    if isinstance(data, MappingABC):
        return from_mapping(data)
    if isinstance(data, (str, bytes)) or not isinstance(data, Iterable):
        raise InvalidShape(f"Unsupported input: {type(data).__name__}")

    rows = list(data)
    if all(isinstance(row, MappingABC) for row in rows):
        return from_records(rows)
    if all(isinstance(row, Sequence) and not isinstance(row, (str, bytes)) for row in rows):
        return from_matrix(rows)
    raise InvalidShape("Rows must be all mappings or all sequences")


def _column_type(label: Any) -> ColumnType:
    column_type = coerce_column_type(label)
    if column_type is None:
        raise ValueError("Column type is required")
    return column_type


class TableDisplay(Widget):
    """Interactive table widget.

    Accepted inputs:
        TableDisplay(rows, columns, types)   positional rows
        TableDisplay([{...}, {...}])         row mappings, types inferred
        TableDisplay({"k": v, ...})          Key/Value table
        TableDisplay([[...], [...]])         matrix, columns c0..cN

    Raises:
        InvalidShape: If the input cannot be normalized. No comm is opened.
    """

    def __init__(
        self,
        data: Any = None,
        columns: Optional[Sequence[str]] = None,
        types: Optional[Sequence[Any]] = None,
        *,
        comm: Optional[Comm] = None,
        config: Optional[TableDisplayConfig] = None,
    ):
        super().__init__(comm=comm)
        self._table = _normalize([] if data is None else data, columns, types)
        self._config = config or get_default_config()

        self._string_format_for_type: Dict[ColumnType, StringFormat] = {}
        self._string_format_for_column: Dict[str, StringFormat] = {}
        self._renderer_for_type: Dict[ColumnType, CellRenderer] = {}
        self._renderer_for_column: Dict[str, CellRenderer] = {}
        self._alignment_for_type: Dict[ColumnType, Alignment] = {}
        self._alignment_for_column: Dict[str, Alignment] = {}
        self._columns_frozen: Dict[str, bool] = {}
        self._columns_frozen_right: Dict[str, bool] = {}
        self._columns_visible: Dict[str, bool] = {}
        self._column_order: List[str] = []
        self._cell_highlighters: List[CellHighlighter] = []
        self._tooltips: List[List[Optional[str]]] = []
        self._data_font_size: Optional[int] = None
        self._header_font_size: Optional[int] = None
        self._font_color: List[List[Optional[ColorTriplet]]] = []
        self._filtered_indices: Optional[List[int]] = None
        self._headers_vertical: Optional[bool] = None
        self._has_index: Optional[str] = None
        self._time_zone: Optional[str] = None

        self._double_click_listener: Optional[Callable[..., Any]] = None
        self._double_click_tag: Optional[str] = None
        self._context_menu_listeners: Dict[str, Callable[..., Any]] = {}
        self._context_menu_tags: Dict[str, str] = {}
        self._details: Optional[TableActionDetails] = None
        self._actions = TableDisplayActions(self)

        if self.too_many_rows:
            logger.info(self.row_limit_msg)
        self.open_comm()

    # ==================== Construction helpers ====================

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]], columns: Sequence[str],
                  types: Sequence[Any], **kwargs) -> "TableDisplay":
        return cls(from_rows(rows, columns, types), **kwargs)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]], **kwargs) -> "TableDisplay":
        return cls(from_records(records), **kwargs)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any], **kwargs) -> "TableDisplay":
        return cls(from_mapping(mapping), **kwargs)

    @classmethod
    def from_matrix(cls, rows: Sequence[Sequence[Any]], **kwargs) -> "TableDisplay":
        return cls(from_matrix(rows), **kwargs)

    @classmethod
    def from_elements(cls, row_count: int, column_count: int, column_names: Sequence[str],
                      element: Callable[[int, int], Any], **kwargs) -> "TableDisplay":
        """Build from an accessor called as ``element(column, row)``."""
        return cls(from_elements(row_count, column_count, column_names, element), **kwargs)

    # ==================== Canonical data ====================

    @property
    def values(self) -> List[List[Any]]:
        return self._table.rows

    @property
    def column_names(self) -> List[str]:
        return self._table.column_names

    @property
    def types(self) -> List[Optional[ColumnType]]:
        return self._table.column_types

    @property
    def subtype(self) -> TableSubtype:
        return self._table.subtype

    @property
    def config(self) -> TableDisplayConfig:
        return self._config

    def values_as_rows(self) -> List[Dict[str, Any]]:
        """Rows as mappings from column name to value."""
        names = self.column_names
        return [dict(zip(names, row)) for row in self.values]

    def values_as_matrix(self) -> List[List[Any]]:
        return self.values

    def values_as_dictionary(self) -> Dict[str, Any]:
        """First column as keys, second as values."""
        return {str(row[0]): row[1] for row in self.values if len(row) >= 2}

    def update_cell(self, row: int, column: str, value: Any) -> None:
        """Replace one cell value and push the values to the view.

        Column types are not recomputed.

        Raises:
            UnknownColumn: If ``column`` is not a column of this table.
            IndexError: If ``row`` is out of range.
        """
        with self._lock:
            self._set_cell(row, column, value)
            self.send_model_update(serializer.serialize_values(self.values))

    def apply_cell_edit(self, row: int, column: str, value: Any) -> None:
        """Record a cell edit made in the view (not echoed back)."""
        with self._lock:
            self._set_cell(row, column, value)

    def _set_cell(self, row: int, column: str, value: Any) -> None:
        if isinstance(row, bool) or not isinstance(row, int) or not 0 <= row < len(self.values):
            raise IndexError(f"Row {row!r} is outside the table ({len(self.values)} rows)")
        index = self._table.index_of(column)
        self.values[row][index] = canonical_value(value)

    # ==================== Size guard ====================

    @property
    def too_many_rows(self) -> bool:
        return len(self.values) > self._config.limits.rows_limit

    @property
    def row_limit_msg(self) -> str:
        return self._config.limits.format_message(len(self.values))

    def set_row_limit_msg(self, template: str) -> None:
        """Override the advisory template for this table only.

        Raises:
            ValueError: If the template does not format with the ``{limit}``,
                ``{rows}`` and ``{preview}`` placeholders.
        """
        limits = dataclasses.replace(self._config.limits, row_limit_msg=template)
        self._config = dataclasses.replace(self._config, limits=limits)

    # ==================== String formats ====================

    @property
    def string_format_for_type(self) -> Dict[ColumnType, StringFormat]:
        return self._string_format_for_type

    @property
    def string_format_for_column(self) -> Dict[str, StringFormat]:
        return self._string_format_for_column

    @property
    def string_format_for_times(self) -> Optional[TimeUnit]:
        fmt = self._string_format_for_type.get(ColumnType.TIME)
        if isinstance(fmt, TimeStringFormat):
            return fmt.unit
        return None

    def set_string_format_for_times(self, unit: TimeUnit) -> None:
        self.set_string_format_for_type(ColumnType.TIME, time_format(unit))

    def set_string_format_for_type(self, column_type: Any, fmt: StringFormat) -> None:
        with self._lock:
            self._string_format_for_type[_column_type(column_type)] = fmt
            self.send_model_update(
                serializer.serialize_string_format_for_type(self._string_format_for_type)
            )

    def set_string_format_for_column(
        self, column: str, fmt: Union[StringFormat, Callable[..., Any]]
    ) -> None:
        """Set a static format, or evaluate a formatter over the column.

        A formatter is called as ``formatter(value, row, column_index, table)``
        once per row; the resulting strings are what the view shows.

        Raises:
            UnknownColumn: If the column does not exist.
            DecoratorEvaluationError: If the formatter raises.
        """
        with self._lock:
            index = self._table.index_of(column)
            if not isinstance(fmt, StringFormat):
                fmt = format_column(self.values, column, index, fmt, self)
            self._string_format_for_column[column] = fmt
            self.send_model_update(
                serializer.serialize_string_format_for_column(self._string_format_for_column)
            )

    def string_format_for(self, column: str) -> Optional[StringFormat]:
        """Format that applies to a column; by-column wins over by-type."""
        return self._resolve(column, self._string_format_for_column, self._string_format_for_type)

    # ==================== Renderers and alignment ====================

    @property
    def renderer_for_type(self) -> Dict[ColumnType, CellRenderer]:
        return self._renderer_for_type

    @property
    def renderer_for_column(self) -> Dict[str, CellRenderer]:
        return self._renderer_for_column

    def set_renderer_for_type(self, column_type: Any, renderer: CellRenderer) -> None:
        with self._lock:
            self._renderer_for_type[_column_type(column_type)] = renderer
            self.send_model_update(serializer.serialize_renderer_for_type(self._renderer_for_type))

    def set_renderer_for_column(self, column: str, renderer: CellRenderer) -> None:
        with self._lock:
            self._table.index_of(column)
            self._renderer_for_column[column] = renderer
            self.send_model_update(
                serializer.serialize_renderer_for_column(self._renderer_for_column)
            )

    def renderer_for(self, column: str) -> Optional[CellRenderer]:
        return self._resolve(column, self._renderer_for_column, self._renderer_for_type)

    @property
    def alignment_for_type(self) -> Dict[ColumnType, Alignment]:
        return self._alignment_for_type

    @property
    def alignment_for_column(self) -> Dict[str, Alignment]:
        return self._alignment_for_column

    def set_alignment_provider_for_type(self, column_type: Any, alignment: Any) -> None:
        with self._lock:
            self._alignment_for_type[_column_type(column_type)] = Alignment(alignment)
            self.send_model_update(
                serializer.serialize_alignment_for_type(self._alignment_for_type)
            )

    def set_alignment_provider_for_column(self, column: str, alignment: Any) -> None:
        with self._lock:
            self._table.index_of(column)
            self._alignment_for_column[column] = Alignment(alignment)
            self.send_model_update(
                serializer.serialize_alignment_for_column(self._alignment_for_column)
            )

    def alignment_for(self, column: str) -> Optional[Alignment]:
        return self._resolve(column, self._alignment_for_column, self._alignment_for_type)

    def _resolve(self, column: str, by_column: Mapping[str, Any],
                 by_type: Mapping[ColumnType, Any]) -> Any:
        if column in by_column:
            return by_column[column]
        column_type = self.types[self._table.index_of(column)] if self.types else None
        if column_type is None:
            return None
        return by_type.get(column_type)

    # ==================== Column layout ====================

    @property
    def columns_frozen(self) -> Dict[str, bool]:
        return self._columns_frozen

    @property
    def columns_frozen_right(self) -> Dict[str, bool]:
        return self._columns_frozen_right

    @property
    def columns_visible(self) -> Dict[str, bool]:
        return self._columns_visible

    @property
    def column_order(self) -> List[str]:
        return self._column_order

    def set_column_frozen(self, column: str, frozen: bool = True) -> None:
        with self._lock:
            self._table.index_of(column)
            self._columns_frozen[column] = frozen
            self.send_model_update(serializer.serialize_columns_frozen(self._columns_frozen))

    def set_column_frozen_right(self, column: str, frozen: bool = True) -> None:
        with self._lock:
            self._table.index_of(column)
            self._columns_frozen_right[column] = frozen
            self.send_model_update(
                serializer.serialize_columns_frozen_right(self._columns_frozen_right)
            )

    def set_column_visible(self, column: str, visible: bool = True) -> None:
        with self._lock:
            self._table.index_of(column)
            self._columns_visible[column] = visible
            self.send_model_update(serializer.serialize_columns_visible(self._columns_visible))

    def set_column_order(self, columns: Sequence[str]) -> None:
        with self._lock:
            for column in columns:
                self._table.index_of(column)
            self._column_order = list(columns)
            self.send_model_update(serializer.serialize_column_order(self._column_order))

    # ==================== Highlighters ====================

    @property
    def cell_highlighters(self) -> List[CellHighlighter]:
        return self._cell_highlighters

    def add_cell_highlighter(self, highlighter: Union[CellHighlighter, CellColorProvider]) -> None:
        """Add a highlighter object, or evaluate a colour provider.

        A provider is called as ``provider(row, column_index, table)`` for
        every cell and yields one value highlighter per column that got at
        least one colour.

        Raises:
            UnknownColumn: If a highlighter object targets a missing column.
            DecoratorEvaluationError: If the provider raises or returns
                something that is not a colour.
        """
        with self._lock:
            if isinstance(highlighter, CellHighlighter):
                self._table.index_of(highlighter.col_name)
                added = [highlighter]
            else:
                added = highlight_cells(self.values, self.column_names, highlighter, self)
            self._cell_highlighters.extend(added)
            self.send_model_update(
                serializer.serialize_cell_highlighters(self._cell_highlighters)
            )

    def remove_all_cell_highlighters(self) -> None:
        with self._lock:
            self._cell_highlighters.clear()
            self.send_model_update(
                serializer.serialize_cell_highlighters(self._cell_highlighters)
            )

    # ==================== Tooltips and fonts ====================

    @property
    def tooltips(self) -> List[List[Optional[str]]]:
        return self._tooltips

    def set_tooltip(self, provider: CellTextProvider) -> None:
        """Evaluate ``provider(row, column_index, table)`` for every cell."""
        with self._lock:
            self._tooltips = tooltip_grid(self.values, provider, self)
            self.send_model_update(serializer.serialize_tooltips(self._tooltips))

    @property
    def data_font_size(self) -> Optional[int]:
        return self._data_font_size

    def set_data_font_size(self, size: Optional[int]) -> None:
        with self._lock:
            self._data_font_size = size
            self.send_model_update(serializer.serialize_data_font_size(size))

    @property
    def header_font_size(self) -> Optional[int]:
        return self._header_font_size

    def set_header_font_size(self, size: Optional[int]) -> None:
        with self._lock:
            self._header_font_size = size
            self.send_model_update(serializer.serialize_header_font_size(size))

    @property
    def font_color(self) -> List[List[Optional[ColorTriplet]]]:
        return self._font_color

    def set_font_color_provider(self, provider: CellColorProvider) -> None:
        """Evaluate ``provider(row, column_index, table)`` for every cell."""
        with self._lock:
            self._font_color = font_color_grid(self.values, provider, self)
            self.send_model_update(serializer.serialize_font_color(self._font_color))

    # ==================== Row filter ====================

    @property
    def filtered_indices(self) -> Optional[List[int]]:
        return self._filtered_indices

    @property
    def filtered_values(self) -> Optional[List[List[Any]]]:
        """Rows accepted by the row filter, or None if no filter is set."""
        if self._filtered_indices is None:
            return None
        return [self.values[i] for i in self._filtered_indices]

    def set_row_filter(self, predicate: RowPredicate) -> None:
        """Evaluate ``predicate(row, rows)`` once per row.

        Raises:
            DecoratorEvaluationError: If the predicate raises; the previous
                filtered view is kept.
        """
        with self._lock:
            self._filtered_indices = filter_rows(self.values, predicate)
            self.send_model_update(serializer.serialize_filtered_values(self.filtered_values))

    # ==================== Display options ====================

    @property
    def headers_vertical(self) -> Optional[bool]:
        return self._headers_vertical

    def set_headers_vertical(self, vertical: bool) -> None:
        with self._lock:
            self._headers_vertical = vertical
            self.send_model_update(serializer.serialize_headers_vertical(vertical))

    @property
    def has_index(self) -> Optional[str]:
        return self._has_index

    def set_has_index(self, has_index: Any) -> None:
        if isinstance(has_index, bool):
            has_index = "true" if has_index else "false"
        with self._lock:
            self._has_index = has_index
            self.send_model_update(serializer.serialize_has_index(has_index))

    @property
    def time_zone(self) -> Optional[str]:
        return self._time_zone

    def set_time_zone(self, time_zone: Optional[str]) -> None:
        with self._lock:
            self._time_zone = time_zone
            self.send_model_update(serializer.serialize_time_zone(time_zone))

    # ==================== Interactions ====================

    @property
    def double_click_tag(self) -> Optional[str]:
        return self._double_click_tag

    @property
    def has_double_click_action(self) -> bool:
        return self._double_click_listener is not None

    def set_double_click_action(self, action: Action) -> None:
        """Set a tag (resolved by the view) or a callable listener.

        The two are mutually exclusive; setting one clears the other. A
        listener is called as ``listener(row, column_index, table)``.
        """
        with self._lock:
            if isinstance(action, str):
                self._double_click_listener = None
                self._double_click_tag = action
            else:
                self._double_click_listener = as_callable(action)
                self._double_click_tag = None
            self.send_model_update(serializer.serialize_double_click_action(
                self._double_click_tag, self.has_double_click_action
            ))

    @property
    def context_menu_items(self) -> List[str]:
        return list(self._context_menu_listeners)

    @property
    def context_menu_tags(self) -> Dict[str, str]:
        return self._context_menu_tags

    def add_context_menu_item(self, name: str, action: Action) -> None:
        """Register a context-menu entry as a tag or a callable.

        A callable is called as ``action(row, column_index, table)``. A name
        holds either a tag or a callable, never both.
        """
        with self._lock:
            if isinstance(action, str):
                self._context_menu_listeners.pop(name, None)
                self._context_menu_tags[name] = action
            else:
                self._context_menu_tags.pop(name, None)
                self._context_menu_listeners[name] = as_callable(action)
            self.send_model_update(serializer.serialize_context_menu(
                self.context_menu_items, self._context_menu_tags
            ))

    @property
    def details(self) -> Optional[TableActionDetails]:
        return self._details

    @details.setter
    def details(self, details: Optional[TableActionDetails]) -> None:
        with self._lock:
            self._details = details

    def fire_double_click(self, row: int, column: int) -> None:
        """Run the double-click listener, then resend the full model.

        Does nothing when only a tag is set.

        Raises:
            InteractionHandlerError: If the listener raises.
        """
        with self._lock:
            listener = self._double_click_listener
            if listener is None:
                return
            try:
                listener(row, column, self)
            except Exception as e:
                raise InteractionHandlerError("doubleClick", e) from e
            self.send_model()

    def fire_context_menu_click(self, name: str, row: int, column: int) -> None:
        """Run the named context-menu callable, then resend the full model.

        Unknown names and tag entries are ignored.

        Raises:
            InteractionHandlerError: If the callable raises.
        """
        with self._lock:
            listener: Optional[CellAction] = self._context_menu_listeners.get(name)
            if listener is None:
                logger.debug(f"No context menu callable named {name!r}")
                return
            try:
                listener(row, column, self)
            except Exception as e:
                raise InteractionHandlerError("contextMenu", e, name=name) from e
            self.send_model()

    # ==================== Widget ====================

    def serialize_model(self) -> Dict[str, Any]:
        with self._lock:
            return serializer.to_model(self)

    def handle_message(self, data: Dict[str, Any]) -> None:
        self._actions.dispatch(data)

    def __rich__(self):
        return build_preview(self)

    def _plain_text(self) -> str:
        return render_text(self)

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return (
            f"TableDisplay(rows={len(self.values)}, columns={self.column_names}, "
            f"subtype={self.subtype.value})"
        )


__all__ = ["TableDisplay"]
