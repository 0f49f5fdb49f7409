"""Full-table evaluation of user callables.

Every decorator that takes a callable runs it over the whole table once, at
assignment time, and keeps only the results. The loops here build the
complete result before returning so that a callable raising halfway through
never leaves half-built state behind: the caller either gets every result or
a ``DecoratorEvaluationError``.

Callables may be plain functions or objects with an ``apply`` method; both
are reduced to a single callable by ``as_callable``.
"""

import logging
from typing import Any, Callable, List, Optional, Protocol, Sequence, runtime_checkable

from .colors import ColorTriplet, to_color
from .errors import DecoratorEvaluationError
from .formats import ValueStringFormat
from .highlighters import ValueHighlighter

logger = logging.getLogger(__name__)


@runtime_checkable
class CellValueFormatter(Protocol):
    """``(value, row, column, table) -> str``"""

    def __call__(self, value: Any, row: int, column: int, table: Any) -> str:
        ...


@runtime_checkable
class CellColorProvider(Protocol):
    """``(row, column, table) -> colour or None``"""

    def __call__(self, row: int, column: int, table: Any) -> Any:
        ...


@runtime_checkable
class CellTextProvider(Protocol):
    """``(row, column, table) -> str``"""

    def __call__(self, row: int, column: int, table: Any) -> Optional[str]:
        ...


@runtime_checkable
class RowPredicate(Protocol):
    """``(row, rows) -> bool``"""

    def __call__(self, row: int, rows: Sequence[Sequence[Any]]) -> bool:
        ...


@runtime_checkable
class CellAction(Protocol):
    """``(row, column, table) -> Any``; used by double-click and context menu."""

    def __call__(self, row: int, column: int, table: Any) -> Any:
        ...


def as_callable(fn: Any) -> Callable[..., Any]:
    """Accept a function or an object exposing ``apply``."""
    if callable(fn):
        return fn
    apply = getattr(fn, "apply", None)
    if callable(apply):
        return apply
    raise TypeError(f"Expected a callable or an object with apply(), got {type(fn).__name__}")


def _as_text(result: Any) -> Optional[str]:
    if result is None or isinstance(result, str):
        return result
    return str(result)


def format_column(
    rows: Sequence[Sequence[Any]],
    column_name: str,
    column_index: int,
    formatter: CellValueFormatter,
    table: Any,
) -> ValueStringFormat:
    """Run a formatter over every row of one column."""
    fn = as_callable(formatter)
    try:
        values = [
            _as_text(fn(row[column_index], i, column_index, table))
            for i, row in enumerate(rows)
        ]
    except Exception as e:
        raise DecoratorEvaluationError("create format", e) from e
    return ValueStringFormat(column=column_name, values=values)


def highlight_cells(
    rows: Sequence[Sequence[Any]],
    column_names: Sequence[str],
    provider: CellColorProvider,
    table: Any,
) -> List[ValueHighlighter]:
    """Evaluate a colour provider over every cell, column by column.

    Returns one ValueHighlighter per column that got at least one colour;
    columns where every cell came back None are left out.
    """
    fn = as_callable(provider)
    highlighters = []
    try:
        for col, name in enumerate(column_names):
            colors = [to_color(fn(row, col, table)) for row in range(len(rows))]
            if any(c is not None for c in colors):
                highlighters.append(ValueHighlighter(col_name=name, colors=colors))
    except Exception as e:
        raise DecoratorEvaluationError("set cell highlighter", e) from e
    logger.debug(f"Highlighter produced entries for {len(highlighters)} column(s)")
    return highlighters


def tooltip_grid(
    rows: Sequence[Sequence[Any]],
    provider: CellTextProvider,
    table: Any,
) -> List[List[Optional[str]]]:
    """One tooltip per cell, row-major."""
    fn = as_callable(provider)
    try:
        return [
            [_as_text(fn(r, c, table)) for c in range(len(row))]
            for r, row in enumerate(rows)
        ]
    except Exception as e:
        raise DecoratorEvaluationError("set tooltip", e) from e


def font_color_grid(
    rows: Sequence[Sequence[Any]],
    provider: CellColorProvider,
    table: Any,
) -> List[List[Optional[ColorTriplet]]]:
    """One font colour per cell, row-major."""
    fn = as_callable(provider)
    try:
        return [
            [to_color(fn(r, c, table)) for c in range(len(row))]
            for r, row in enumerate(rows)
        ]
    except Exception as e:
        raise DecoratorEvaluationError("set font color", e) from e


def filter_rows(rows: Sequence[Sequence[Any]], predicate: RowPredicate) -> List[int]:
    """Indices of the rows the predicate accepts, in order."""
    fn = as_callable(predicate)
    try:
        return [i for i in range(len(rows)) if fn(i, rows)]
    except Exception as e:
        raise DecoratorEvaluationError("set row filter", e) from e


__all__ = [
    "CellValueFormatter",
    "CellColorProvider",
    "CellTextProvider",
    "RowPredicate",
    "CellAction",
    "as_callable",
    "format_column",
    "highlight_cells",
    "tooltip_grid",
    "font_color_grid",
    "filter_rows",
]
