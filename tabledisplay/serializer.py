"""JSON-ready serialization of the table model.

Each model field has its own serializer returning ``{field_name: value}``,
so a mutator can push exactly the field it changed. ``to_model`` assembles
the full model, leaving out every field that is unset; an absent field means
"unset", not "empty".
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from .colors import ColorTriplet, color_to_json
from .formats import Alignment, CellRenderer, StringFormat
from .highlighters import CellHighlighter
from .types import ColumnType, canonical_value

if TYPE_CHECKING:
    from .table_display import TableDisplay

logger = logging.getLogger(__name__)

# Model field names understood by the front end
VALUES = "values"
COLUMN_NAMES = "columnNames"
TYPES = "types"
SUBTYPE = "subtype"
STRING_FORMAT_FOR_COLUMN = "stringFormatForColumn"
STRING_FORMAT_FOR_TYPE = "stringFormatForType"
RENDERER_FOR_COLUMN = "rendererForColumn"
RENDERER_FOR_TYPE = "rendererForType"
ALIGNMENT_FOR_COLUMN = "alignmentForColumn"
ALIGNMENT_FOR_TYPE = "alignmentForType"
COLUMNS_FROZEN = "columnsFrozen"
COLUMNS_FROZEN_RIGHT = "columnsFrozenRight"
COLUMNS_VISIBLE = "columnsVisible"
COLUMN_ORDER = "columnOrder"
CELL_HIGHLIGHTERS = "cellHighlighters"
TOOLTIPS = "tooltips"
DATA_FONT_SIZE = "dataFontSize"
HEADER_FONT_SIZE = "headerFontSize"
FONT_COLOR = "fontColor"
FILTERED_VALUES = "filteredValues"
HEADERS_VERTICAL = "headersVertical"
HAS_INDEX = "hasIndex"
TIME_ZONE = "timeZone"
DOUBLE_CLICK_TAG = "doubleClickTag"
HAS_DOUBLE_CLICK_ACTION = "hasDoubleClickAction"
CONTEXT_MENU_ITEMS = "contextMenuItems"
CONTEXT_MENU_TAGS = "contextMenuTags"
TOO_MANY_ROWS = "tooManyRows"
ROW_LENGTH = "rowLength"
ROW_LIMIT_MSG = "rowLimitMsg"


def _zone_name(value: datetime) -> Optional[str]:
    tz = value.tzinfo
    if tz is None:
        return None
    return getattr(tz, "key", None) or value.tzname()


def encode_value(value: Any) -> Any:
    """Convert one cell value to its wire form.

    Wide integers become decimal strings, datetimes become Date objects
    (naive datetimes are read as UTC), Decimals become floats and anything
    without a JSON form falls back to ``str()``.
    """
    if value is None or isinstance(value, (bool, str, float)):
        return value
    if isinstance(value, int):
        return canonical_value(value)
    if isinstance(value, datetime):
        instant = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return {
            "type": "Date",
            "timestamp": int(instant.timestamp() * 1000),
            "tz": _zone_name(value),
        }
    if isinstance(value, date):
        midnight = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return {"type": "Date", "timestamp": int(midnight.timestamp() * 1000), "tz": None}
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, ColorTriplet):
        return color_to_json(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): encode_value(v) for k, v in value.items()}
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return str(value)


def _encode_rows(rows: Sequence[Sequence[Any]]) -> List[List[Any]]:
    return [[encode_value(v) for v in row] for row in rows]


def serialize_values(rows: Sequence[Sequence[Any]]) -> Dict[str, Any]:
    return {VALUES: _encode_rows(rows)}


def serialize_types(types: Sequence[Optional[ColumnType]]) -> Dict[str, Any]:
    return {TYPES: [t.value if t is not None else None for t in types]}


def serialize_string_format_for_type(formats: Mapping[ColumnType, StringFormat]) -> Dict[str, Any]:
    return {STRING_FORMAT_FOR_TYPE: {t.value: f.to_dict() for t, f in formats.items()}}


def serialize_string_format_for_column(formats: Mapping[str, StringFormat]) -> Dict[str, Any]:
    return {STRING_FORMAT_FOR_COLUMN: {c: f.to_dict() for c, f in formats.items()}}


def serialize_renderer_for_type(renderers: Mapping[ColumnType, CellRenderer]) -> Dict[str, Any]:
    return {RENDERER_FOR_TYPE: {t.value: r.to_dict() for t, r in renderers.items()}}


def serialize_renderer_for_column(renderers: Mapping[str, CellRenderer]) -> Dict[str, Any]:
    return {RENDERER_FOR_COLUMN: {c: r.to_dict() for c, r in renderers.items()}}


def serialize_alignment_for_type(alignments: Mapping[ColumnType, Alignment]) -> Dict[str, Any]:
    return {ALIGNMENT_FOR_TYPE: {t.value: a.value for t, a in alignments.items()}}


def serialize_alignment_for_column(alignments: Mapping[str, Alignment]) -> Dict[str, Any]:
    return {ALIGNMENT_FOR_COLUMN: {c: a.value for c, a in alignments.items()}}


def serialize_columns_frozen(frozen: Mapping[str, bool]) -> Dict[str, Any]:
    return {COLUMNS_FROZEN: dict(frozen)}


def serialize_columns_frozen_right(frozen: Mapping[str, bool]) -> Dict[str, Any]:
    return {COLUMNS_FROZEN_RIGHT: dict(frozen)}


def serialize_columns_visible(visible: Mapping[str, bool]) -> Dict[str, Any]:
    return {COLUMNS_VISIBLE: dict(visible)}


def serialize_column_order(order: Sequence[str]) -> Dict[str, Any]:
    return {COLUMN_ORDER: list(order)}


def serialize_cell_highlighters(highlighters: Sequence[CellHighlighter]) -> Dict[str, Any]:
    return {CELL_HIGHLIGHTERS: [h.to_dict() for h in highlighters]}


def serialize_tooltips(tooltips: Sequence[Sequence[Optional[str]]]) -> Dict[str, Any]:
    return {TOOLTIPS: [list(row) for row in tooltips]}


def serialize_data_font_size(size: Optional[int]) -> Dict[str, Any]:
    return {DATA_FONT_SIZE: size}


def serialize_header_font_size(size: Optional[int]) -> Dict[str, Any]:
    return {HEADER_FONT_SIZE: size}


def serialize_font_color(colors: Sequence[Sequence[Optional[ColorTriplet]]]) -> Dict[str, Any]:
    return {FONT_COLOR: [[color_to_json(c) for c in row] for row in colors]}


def serialize_filtered_values(rows: Optional[Sequence[Sequence[Any]]]) -> Dict[str, Any]:
    return {FILTERED_VALUES: None if rows is None else _encode_rows(rows)}


def serialize_headers_vertical(vertical: Optional[bool]) -> Dict[str, Any]:
    return {HEADERS_VERTICAL: vertical}


def serialize_has_index(has_index: Optional[str]) -> Dict[str, Any]:
    return {HAS_INDEX: has_index}


def serialize_time_zone(time_zone: Optional[str]) -> Dict[str, Any]:
    return {TIME_ZONE: time_zone}


def serialize_double_click_action(tag: Optional[str], has_action: bool) -> Dict[str, Any]:
    return {DOUBLE_CLICK_TAG: tag, HAS_DOUBLE_CLICK_ACTION: has_action}


def serialize_context_menu(items: Sequence[str], tags: Mapping[str, str]) -> Dict[str, Any]:
    return {CONTEXT_MENU_ITEMS: list(items), CONTEXT_MENU_TAGS: dict(tags)}


def serialize_row_limit(row_length: int, message: str) -> Dict[str, Any]:
    return {TOO_MANY_ROWS: True, ROW_LENGTH: row_length, ROW_LIMIT_MSG: message}


def to_model(table: "TableDisplay") -> Dict[str, Any]:
    """Serialize the complete model of a table.

    The core fields are always present; every other field only when set.
    """
    model: Dict[str, Any] = {}
    model.update(serialize_values(table.values))
    model[COLUMN_NAMES] = list(table.column_names)
    model.update(serialize_types(table.types))
    model[SUBTYPE] = table.subtype.value

    optional_maps = [
        (table.string_format_for_column, serialize_string_format_for_column),
        (table.string_format_for_type, serialize_string_format_for_type),
        (table.renderer_for_column, serialize_renderer_for_column),
        (table.renderer_for_type, serialize_renderer_for_type),
        (table.alignment_for_column, serialize_alignment_for_column),
        (table.alignment_for_type, serialize_alignment_for_type),
        (table.columns_frozen, serialize_columns_frozen),
        (table.columns_frozen_right, serialize_columns_frozen_right),
        (table.columns_visible, serialize_columns_visible),
        (table.column_order, serialize_column_order),
        (table.cell_highlighters, serialize_cell_highlighters),
        (table.tooltips, serialize_tooltips),
        (table.font_color, serialize_font_color),
    ]
    for value, serialize in optional_maps:
        if value:
            model.update(serialize(value))

    optional_scalars = [
        (table.data_font_size, serialize_data_font_size),
        (table.header_font_size, serialize_header_font_size),
        (table.filtered_values, serialize_filtered_values),
        (table.headers_vertical, serialize_headers_vertical),
        (table.has_index, serialize_has_index),
        (table.time_zone, serialize_time_zone),
    ]
    for value, serialize in optional_scalars:
        if value is not None:
            model.update(serialize(value))

    if table.double_click_tag is not None or table.has_double_click_action:
        model.update(serialize_double_click_action(
            table.double_click_tag, table.has_double_click_action
        ))
    if table.context_menu_items or table.context_menu_tags:
        model.update(serialize_context_menu(table.context_menu_items, table.context_menu_tags))
    if table.too_many_rows:
        model.update(serialize_row_limit(len(table.values), table.row_limit_msg))

    logger.debug(f"Serialized model with fields: {sorted(model)}")
    return model


__all__ = [
    "encode_value",
    "serialize_values",
    "serialize_types",
    "serialize_string_format_for_type",
    "serialize_string_format_for_column",
    "serialize_renderer_for_type",
    "serialize_renderer_for_column",
    "serialize_alignment_for_type",
    "serialize_alignment_for_column",
    "serialize_columns_frozen",
    "serialize_columns_frozen_right",
    "serialize_columns_visible",
    "serialize_column_order",
    "serialize_cell_highlighters",
    "serialize_tooltips",
    "serialize_data_font_size",
    "serialize_header_font_size",
    "serialize_font_color",
    "serialize_filtered_values",
    "serialize_headers_vertical",
    "serialize_has_index",
    "serialize_time_zone",
    "serialize_double_click_action",
    "serialize_context_menu",
    "serialize_row_limit",
    "to_model",
]
