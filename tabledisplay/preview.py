"""Terminal preview of a table.

Builds a rich Table that applies the same decorations the front end would:
column order and visibility, alignment, string formats, highlighter
backgrounds and font colours. Used for ``__rich__`` and for the plain-text
part of the notebook mime bundle when no front end is attached.
"""

import io
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from rich.console import Console
from rich.style import Style
from rich.table import Table
from rich.text import Text

from .colors import ColorTriplet, color_to_style
from .formats import Alignment
from .types import ColumnType

if TYPE_CHECKING:
    from .table_display import TableDisplay

NUMERIC_TYPES = {ColumnType.INTEGER, ColumnType.INT64, ColumnType.BIGINT, ColumnType.DOUBLE}


def _visible_columns(table: "TableDisplay") -> List[int]:
    names = list(table.column_names)
    ordered = [c for c in table.column_order if c in names]
    ordered += [c for c in names if c not in ordered]
    return [
        names.index(c) for c in ordered
        if table.columns_visible.get(c, True)
    ]


def _justify(table: "TableDisplay", col: int) -> str:
    alignment = table.alignment_for(table.column_names[col])
    if alignment is not None:
        return alignment.justify
    if table.types and table.types[col] in NUMERIC_TYPES:
        return Alignment.RIGHT.justify
    return Alignment.LEFT.justify


def build_preview(table: "TableDisplay", max_rows: Optional[int] = None) -> Table:
    """Build a rich Table for the given table display.

    Args:
        table: The table to render.
        max_rows: Render at most this many rows. Tables over the row limit
            are cut to the preview size regardless.
    """
    values = table.values
    indices = table.filtered_indices
    if indices is None:
        indices = list(range(len(values)))
    if table.too_many_rows:
        indices = indices[:table.config.limits.row_limit_to_index]
    if max_rows is not None:
        indices = indices[:max_rows]

    backgrounds: Dict[Tuple[int, int], ColorTriplet] = {}
    for highlighter in table.cell_highlighters:
        backgrounds.update(highlighter.cell_colors(values, table.column_names))
    font_colors = table.font_color

    columns = _visible_columns(table)
    preview = Table(
        show_header=True,
        header_style="bold",
        caption=table.row_limit_msg if table.too_many_rows else None,
    )
    for col in columns:
        preview.add_column(str(table.column_names[col]), justify=_justify(table, col))

    formats = [table.string_format_for(table.column_names[col]) for col in columns]
    for row in indices:
        cells = []
        for fmt, col in zip(formats, columns):
            value = values[row][col]
            if fmt is not None:
                text = fmt.format(value, row)
            else:
                text = "" if value is None else str(value)
            foreground = None
            if row < len(font_colors) and col < len(font_colors[row]):
                foreground = color_to_style(font_colors[row][col])
            style = Style(
                color=foreground,
                bgcolor=color_to_style(backgrounds.get((row, col))),
            )
            cells.append(Text(text, style=style))
        preview.add_row(*cells)

    return preview


def render_text(table: "TableDisplay", width: int = 120, max_rows: Optional[int] = 50) -> str:
    """Render the preview as plain text (no ANSI codes)."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=width, force_terminal=False, color_system=None)
    console.print(build_preview(table, max_rows=max_rows))
    return buffer.getvalue()


__all__ = ["build_preview", "render_text"]
