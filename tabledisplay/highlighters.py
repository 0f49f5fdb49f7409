"""Cell highlighters.

A highlighter targets one column and colours cell backgrounds, either just
that column (``SINGLE_COLUMN``) or the whole row (``FULL_ROW``). Heatmap and
unique-entries highlighters are computed by the front end from the data;
``ValueHighlighter`` carries one precomputed colour per row and is what a
user callable is turned into.

Each highlighter can also compute its colours locally so the terminal
preview shows the same result.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rich.color import blend_rgb

from .colors import ColorTriplet, color_to_json, to_color

DEFAULT_MIN_COLOR = ColorTriplet(247, 106, 106)
DEFAULT_MAX_COLOR = ColorTriplet(100, 189, 122)

# Palette cycled through by UniqueEntriesHighlighter in the preview.
UNIQUE_PALETTE = [
    ColorTriplet(230, 159, 0),
    ColorTriplet(86, 180, 233),
    ColorTriplet(0, 158, 115),
    ColorTriplet(240, 228, 66),
    ColorTriplet(0, 114, 178),
    ColorTriplet(213, 94, 0),
    ColorTriplet(204, 121, 167),
]

CellColors = Dict[Tuple[int, int], ColorTriplet]


class HighlightStyle(str, Enum):
    """Which cells a highlighter colours."""
    SINGLE_COLUMN = "SINGLE_COLUMN"
    FULL_ROW = "FULL_ROW"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


@dataclass
class CellHighlighter:
    """Base class for cell highlighters."""
    col_name: str
    style: HighlightStyle = HighlightStyle.SINGLE_COLUMN
    type: str = field(default="", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "colName": self.col_name, "style": self.style.value}

    def row_colors(self, column_values: Sequence[Any]) -> List[Optional[ColorTriplet]]:
        """One colour (or None) per row, given the target column's values."""
        return [None] * len(column_values)

    def cell_colors(self, rows: Sequence[Sequence[Any]], column_names: Sequence[str]) -> CellColors:
        """Background colours keyed by ``(row, column)`` for the preview."""
        if self.col_name not in column_names:
            return {}
        target = list(column_names).index(self.col_name)
        colors = self.row_colors([row[target] for row in rows])
        result: CellColors = {}
        for row_index, color in enumerate(colors):
            if color is None:
                continue
            if self.style == HighlightStyle.FULL_ROW:
                for col in range(len(column_names)):
                    result[(row_index, col)] = color
            else:
                result[(row_index, target)] = color
        return result


@dataclass
class HeatmapHighlighter(CellHighlighter):
    """Linear two-colour gradient between ``min_val`` and ``max_val``.

    Bounds left as None are taken from the column's data.
    """
    min_val: Optional[float] = None
    max_val: Optional[float] = None
    min_color: Optional[ColorTriplet] = None
    max_color: Optional[ColorTriplet] = None

    def __post_init__(self):
        self.type = "HeatmapHighlighter"
        self.style = HighlightStyle(self.style)
        self.min_color = to_color(self.min_color) or DEFAULT_MIN_COLOR
        self.max_color = to_color(self.max_color) or DEFAULT_MAX_COLOR

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update({
            "minVal": self.min_val,
            "maxVal": self.max_val,
            "minColor": color_to_json(self.min_color),
            "maxColor": color_to_json(self.max_color),
        })
        return d

    def _bounds(self, numbers: List[float]) -> Tuple[float, float]:
        low = self.min_val if self.min_val is not None else min(numbers)
        high = self.max_val if self.max_val is not None else max(numbers)
        return float(low), float(high)

    def _gradient(self, value: float, low: float, high: float,
                  start: ColorTriplet, end: ColorTriplet) -> ColorTriplet:
        if high <= low:
            return end
        fade = min(max((value - low) / (high - low), 0.0), 1.0)
        return blend_rgb(start, end, fade)

    def row_colors(self, column_values: Sequence[Any]) -> List[Optional[ColorTriplet]]:
        numbers = [float(v) for v in column_values if _is_number(v)]
        if not numbers:
            return [None] * len(column_values)
        low, high = self._bounds(numbers)
        return [
            self._gradient(float(v), low, high, self.min_color, self.max_color)
            if _is_number(v) else None
            for v in column_values
        ]


@dataclass
class ThreeColorHeatmapHighlighter(HeatmapHighlighter):
    """Gradient through a middle colour at ``mid_val``."""
    mid_val: Optional[float] = None
    mid_color: Optional[ColorTriplet] = None

    def __post_init__(self):
        super().__post_init__()
        self.type = "ThreeColorHeatmapHighlighter"
        self.mid_color = to_color(self.mid_color)
        if self.mid_color is None:
            self.mid_color = blend_rgb(self.min_color, self.max_color, 0.5)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update({
            "midVal": self.mid_val,
            "midColor": color_to_json(self.mid_color),
        })
        return d

    def row_colors(self, column_values: Sequence[Any]) -> List[Optional[ColorTriplet]]:
        numbers = [float(v) for v in column_values if _is_number(v)]
        if not numbers:
            return [None] * len(column_values)
        low, high = self._bounds(numbers)
        mid = float(self.mid_val) if self.mid_val is not None else (low + high) / 2
        colors: List[Optional[ColorTriplet]] = []
        for v in column_values:
            if not _is_number(v):
                colors.append(None)
            elif float(v) <= mid:
                colors.append(self._gradient(float(v), low, mid, self.min_color, self.mid_color))
            else:
                colors.append(self._gradient(float(v), mid, high, self.mid_color, self.max_color))
        return colors


@dataclass
class UniqueEntriesHighlighter(CellHighlighter):
    """Gives each distinct value in the column its own colour."""

    def __post_init__(self):
        self.type = "UniqueEntriesHighlighter"
        self.style = HighlightStyle(self.style)

    def row_colors(self, column_values: Sequence[Any]) -> List[Optional[ColorTriplet]]:
        assigned: Dict[str, ColorTriplet] = {}
        colors: List[Optional[ColorTriplet]] = []
        for v in column_values:
            if v is None:
                colors.append(None)
                continue
            key = repr(v)
            if key not in assigned:
                assigned[key] = UNIQUE_PALETTE[len(assigned) % len(UNIQUE_PALETTE)]
            colors.append(assigned[key])
        return colors


@dataclass
class ValueHighlighter(CellHighlighter):
    """Precomputed colour per row for one column."""
    colors: List[Optional[ColorTriplet]] = field(default_factory=list)

    def __post_init__(self):
        self.type = "ValueHighlighter"
        self.style = HighlightStyle(self.style)
        self.colors = [to_color(c) for c in self.colors]

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["colors"] = [color_to_json(c) for c in self.colors]
        return d

    def row_colors(self, column_values: Sequence[Any]) -> List[Optional[ColorTriplet]]:
        return [
            self.colors[i] if i < len(self.colors) else None
            for i in range(len(column_values))
        ]


def heatmap_highlighter(
    col_name: str,
    style: HighlightStyle = HighlightStyle.SINGLE_COLUMN,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
    min_color: Any = None,
    max_color: Any = None,
) -> HeatmapHighlighter:
    return HeatmapHighlighter(
        col_name=col_name,
        style=style,
        min_val=min_val,
        max_val=max_val,
        min_color=min_color,
        max_color=max_color,
    )


def three_color_heatmap_highlighter(
    col_name: str,
    style: HighlightStyle = HighlightStyle.SINGLE_COLUMN,
    min_val: Optional[float] = None,
    mid_val: Optional[float] = None,
    max_val: Optional[float] = None,
    min_color: Any = None,
    mid_color: Any = None,
    max_color: Any = None,
) -> ThreeColorHeatmapHighlighter:
    return ThreeColorHeatmapHighlighter(
        col_name=col_name,
        style=style,
        min_val=min_val,
        max_val=max_val,
        min_color=min_color,
        max_color=max_color,
        mid_val=mid_val,
        mid_color=mid_color,
    )


def unique_entries_highlighter(
    col_name: str,
    style: HighlightStyle = HighlightStyle.SINGLE_COLUMN,
) -> UniqueEntriesHighlighter:
    return UniqueEntriesHighlighter(col_name=col_name, style=style)


__all__ = [
    "HighlightStyle",
    "CellHighlighter",
    "HeatmapHighlighter",
    "ThreeColorHeatmapHighlighter",
    "UniqueEntriesHighlighter",
    "ValueHighlighter",
    "heatmap_highlighter",
    "three_color_heatmap_highlighter",
    "unique_entries_highlighter",
]
