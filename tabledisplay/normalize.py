"""Normalization of raw input into canonical rows, columns and types.

Three input shapes are accepted:

1. Positional rows with explicit column names and type labels.
2. A collection of row mappings (``ListOfMaps``). Columns come from the
   first row's keys, in order; later rows may omit keys (the cell becomes
   None) or carry extra keys (dropped).
3. A single mapping, shown as a two-column ``Key``/``Value`` table.

Bare matrices and element grids are converted into one of the shapes above.

Usage:
    from tabledisplay.normalize import from_records

    table = from_records([{"a": 1, "b": "x"}, {"a": 2}])
    table.column_names   # ["a", "b"]
    table.column_types   # [ColumnType.INTEGER, ColumnType.STRING]
    table.rows           # [[1, "x"], [2, None]]
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import InvalidShape, UnknownColumn
from .types import (
    ColumnType,
    TableSubtype,
    canonical_value,
    coerce_column_type,
    infer_type,
    widen_type,
)

logger = logging.getLogger(__name__)

DICTIONARY_COLUMNS = ["Key", "Value"]


@dataclass
class NormalizedTable:
    """Canonical table representation.

    Attributes:
        rows: Row values; every row has one cell per column.
        column_names: Unique column names in display order.
        column_types: Type tag per column (None when undetermined).
        subtype: Input shape the table was built from.
    """
    rows: List[List[Any]]
    column_names: List[str]
    column_types: List[Optional[ColumnType]]
    subtype: TableSubtype
    _index: Dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        self._index = {name: i for i, name in enumerate(self.column_names)}
        if len(self._index) != len(self.column_names):
            raise InvalidShape(f"Column names must be unique: {self.column_names}")

    def index_of(self, column: str) -> int:
        """Return the position of a column, raising UnknownColumn if absent."""
        try:
            return self._index[column]
        except KeyError:
            raise UnknownColumn(column) from None

    def has_column(self, column: str) -> bool:
        return column in self._index


def infer_column_types(
    column_names: Sequence[str],
    rows: Iterable[Sequence[Any]],
) -> List[Optional[ColumnType]]:
    """Infer one type tag per column in a single pass over the rows.

    Every column starts undetermined. Each non-null cell widens its column's
    tracked type; a column that reaches ``string`` is dropped from further
    checks. A column that is null in every row stays None.

    Args:
        column_names: Column names, used only for ordering and logging.
        rows: Raw (not yet canonicalized) positional rows aligned to the
            columns.

    Returns:
        Type tags parallel to ``column_names``.
    """
    tracker: List[Optional[ColumnType]] = [None] * len(column_names)
    to_check = list(range(len(column_names)))

    for row in rows:
        if not to_check:
            break
        settled = []
        for col in to_check:
            observed = infer_type(row[col])
            if observed is None:
                continue
            tracker[col] = widen_type(tracker[col], observed)
            if tracker[col] == ColumnType.STRING:
                settled.append(col)
        for col in settled:
            to_check.remove(col)

    logger.debug(f"Inferred column types: {dict(zip(column_names, tracker))}")
    return tracker


def _canonical_rows(rows: Iterable[Sequence[Any]]) -> List[List[Any]]:
    return [[canonical_value(v) for v in row] for row in rows]


def from_rows(
    rows: Sequence[Sequence[Any]],
    column_names: Sequence[str],
    column_types: Sequence[Any],
) -> NormalizedTable:
    """Build a table from positional rows with explicit names and types.

    Empty rows are kept as rows of None, one per column.

    Raises:
        InvalidShape: If the first non-empty row does not have one value per
            type label, a later row differs in length from it, or the number
            of column names differs from the number of type labels.
    """
    rows = [list(row) for row in rows]
    types = [coerce_column_type(t) for t in column_types]
    width = len(types)

    seen_values = False
    for i, row in enumerate(rows):
        if not row:
            rows[i] = [None] * width
            continue
        if len(row) != width:
            if not seen_values:
                raise InvalidShape(
                    "The length of types should be same as number of columns", row_index=i
                )
            raise InvalidShape(f"Row has {len(row)} values, expected {width}", row_index=i)
        seen_values = True

    if len(column_names) != width:
        raise InvalidShape(
            f"Got {len(column_names)} column names for {width} column types"
        )

    return NormalizedTable(
        rows=_canonical_rows(rows),
        column_names=list(column_names),
        column_types=types,
        subtype=TableSubtype.TABLE_DISPLAY,
    )


def from_records(records: Iterable[Mapping[str, Any]]) -> NormalizedTable:
    """Build a table from row mappings, inferring column types.

    Keys that are not in the first row are dropped.

    Raises:
        InvalidShape: If any row is not a mapping.
    """
    records = list(records)
    for i, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise InvalidShape(
                f"Expected a mapping, got {type(record).__name__}", row_index=i
            )

    column_names: List[str] = list(records[0].keys()) if records else []
    known = set(column_names)
    for i, record in enumerate(records[1:], start=1):
        extra = [k for k in record.keys() if k not in known]
        if extra:
            logger.debug(f"Row {i}: dropping keys not in first row: {extra}")

    raw = [[record.get(name) for name in column_names] for record in records]
    types = infer_column_types(column_names, raw)

    return NormalizedTable(
        rows=_canonical_rows(raw),
        column_names=column_names,
        column_types=types,
        subtype=TableSubtype.LIST_OF_MAPS,
    )


def from_mapping(mapping: Mapping[Any, Any]) -> NormalizedTable:
    """Build a two-column Key/Value table, one row per entry."""
    rows = [[str(key), value] for key, value in mapping.items()]
    return NormalizedTable(
        rows=_canonical_rows(rows),
        column_names=list(DICTIONARY_COLUMNS),
        column_types=[ColumnType.STRING, None],
        subtype=TableSubtype.DICTIONARY,
    )


def from_matrix(rows: Sequence[Sequence[Any]]) -> NormalizedTable:
    """Build a table from unnamed positional rows.

    Columns are named ``c0``, ``c1``, ... and typed with the same inference
    used for row mappings.

    Raises:
        InvalidShape: If rows differ in length.
    """
    rows = [list(row) for row in rows]
    width = len(rows[0]) if rows else 0
    for i, row in enumerate(rows):
        if len(row) != width:
            raise InvalidShape(f"Row has {len(row)} values, expected {width}", row_index=i)

    column_names = [f"c{i}" for i in range(width)]
    types = infer_column_types(column_names, rows)
    return NormalizedTable(
        rows=_canonical_rows(rows),
        column_names=column_names,
        column_types=types,
        subtype=TableSubtype.MATRIX,
    )


def records_from_elements(
    row_count: int,
    column_count: int,
    column_names: Sequence[str],
    element: Callable[[int, int], Any],
) -> List[Dict[str, Any]]:
    """Convert an element accessor into row mappings.

    Args:
        row_count: Number of rows to read.
        column_count: Number of columns to read.
        column_names: Names for the first ``column_count`` columns.
        element: Called as ``element(column_index, row_index)``.
    """
    if len(column_names) < column_count:
        raise InvalidShape(
            f"Got {len(column_names)} column names for {column_count} columns"
        )
    records = []
    for row in range(row_count):
        records.append({column_names[col]: element(col, row) for col in range(column_count)})
    return records


def from_elements(
    row_count: int,
    column_count: int,
    column_names: Sequence[str],
    element: Callable[[int, int], Any],
) -> NormalizedTable:
    """Build a table by reading cells through an accessor function."""
    return from_records(records_from_elements(row_count, column_count, column_names, element))


__all__ = [
    "DICTIONARY_COLUMNS",
    "NormalizedTable",
    "infer_column_types",
    "from_rows",
    "from_records",
    "from_mapping",
    "from_matrix",
    "records_from_elements",
    "from_elements",
]
