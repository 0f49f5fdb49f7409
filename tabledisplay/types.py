"""Column type tags and per-value type inference.

Type tags are the strings the front end understands. Python integers have no
fixed width, so they are classified by magnitude: anything that does not fit
a signed 32-bit slot is tagged ``int64`` or ``bigint`` and travels as a
decimal string, because the wire format's number type cannot carry it
losslessly.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ColumnType(str, Enum):
    """Type tags for table columns."""
    STRING = "string"
    INTEGER = "integer"
    INT64 = "int64"
    BIGINT = "bigint"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    TIME = "time"
    OBJECT = "object"


class TableSubtype(str, Enum):
    """Which input shape a table was built from."""
    TABLE_DISPLAY = "TableDisplay"
    LIST_OF_MAPS = "ListOfMaps"
    MATRIX = "Matrix"
    DICTIONARY = "Dictionary"


# Ordering inside the integer family; widening picks the larger.
_INTEGER_RANK = {
    ColumnType.INTEGER: 0,
    ColumnType.INT64: 1,
    ColumnType.BIGINT: 2,
}

# Tags whose values are carried as decimal strings on the wire.
STRING_ENCODED_TYPES = frozenset({ColumnType.INT64, ColumnType.BIGINT})


def infer_type(value: Any) -> Optional[ColumnType]:
    """Return the type tag for a single cell value, or None for None."""
    if value is None:
        return None
    # bool is a subclass of int
    if isinstance(value, bool):
        return ColumnType.BOOLEAN
    if isinstance(value, int):
        if INT32_MIN <= value <= INT32_MAX:
            return ColumnType.INTEGER
        if INT64_MIN <= value <= INT64_MAX:
            return ColumnType.INT64
        return ColumnType.BIGINT
    if isinstance(value, (float, Decimal)):
        return ColumnType.DOUBLE
    if isinstance(value, str):
        return ColumnType.STRING
    if isinstance(value, (datetime, date)):
        return ColumnType.TIME
    return ColumnType.OBJECT


def widen_type(current: Optional[ColumnType], observed: ColumnType) -> ColumnType:
    """Combine the tracked column type with a newly observed cell type.

    Once a column is ``string`` it stays ``string``.
    """
    if current is None or current == observed:
        return observed
    if current == ColumnType.STRING:
        return current
    if current in _INTEGER_RANK and observed in _INTEGER_RANK:
        if _INTEGER_RANK[observed] > _INTEGER_RANK[current]:
            return observed
        return current
    numeric = set(_INTEGER_RANK) | {ColumnType.DOUBLE}
    if current in numeric and observed in numeric:
        return ColumnType.DOUBLE
    return ColumnType.STRING


def canonical_value(value: Any) -> Any:
    """Convert 64-bit-or-larger integers to decimal strings.

    Every other value, including None, passes through unchanged.
    """
    if infer_type(value) in STRING_ENCODED_TYPES:
        return str(value)
    return value


def coerce_column_type(label: Any) -> Optional[ColumnType]:
    """Accept a ColumnType, its string value, or None."""
    if label is None or isinstance(label, ColumnType):
        return label
    try:
        return ColumnType(str(label).lower())
    except ValueError:
        raise ValueError(f"Unknown column type: {label!r}")


__all__ = [
    "ColumnType",
    "TableSubtype",
    "STRING_ENCODED_TYPES",
    "infer_type",
    "widen_type",
    "canonical_value",
    "coerce_column_type",
]
