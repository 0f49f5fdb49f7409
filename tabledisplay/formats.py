"""Static cell decorations: string formats, renderers and alignment.

These are assigned per column type or per column name and carried to the
front end as-is; none of them is evaluated per cell on the kernel side. The
one exception is ``ValueStringFormat``, which holds strings computed ahead of
time from a user callable (see ``evaluators.format_column``).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class TimeUnit(str, Enum):
    """Granularity used when showing time values."""
    NANOSECONDS = "NANOSECONDS"
    MICROSECONDS = "MICROSECONDS"
    MILLISECONDS = "MILLISECONDS"
    SECONDS = "SECONDS"
    MINUTES = "MINUTES"
    HOURS = "HOURS"
    DAYS = "DAYS"


_TIME_PATTERNS = {
    TimeUnit.DAYS: "%Y%m%d",
    TimeUnit.HOURS: "%Y%m%d %H",
    TimeUnit.MINUTES: "%H:%M",
    TimeUnit.SECONDS: "%H:%M:%S",
    TimeUnit.MILLISECONDS: "%H:%M:%S.%f",
    TimeUnit.MICROSECONDS: "%H:%M:%S.%f",
    TimeUnit.NANOSECONDS: "%H:%M:%S.%f",
}


class Alignment(str, Enum):
    """Horizontal alignment of cell content."""
    LEFT = "L"
    CENTER = "C"
    RIGHT = "R"

    @property
    def justify(self) -> str:
        """Equivalent rich justify method."""
        return {"L": "left", "C": "center", "R": "right"}[self.value]


# =============================================================================
# String formats
# =============================================================================

@dataclass
class StringFormat:
    """Base class for string formats."""
    type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}

    def format(self, value: Any, row: int) -> str:
        """Text for ``value`` at ``row``, used by the terminal preview."""
        return "" if value is None else str(value)


@dataclass
class DecimalStringFormat(StringFormat):
    """Show numbers with a bounded number of decimals."""
    type: str = "decimal"
    min_decimals: int = 4
    max_decimals: int = 4

    def __post_init__(self):
        if self.min_decimals < 0 or self.max_decimals < self.min_decimals:
            raise ValueError("Decimals must satisfy 0 <= min_decimals <= max_decimals")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "minDecimals": self.min_decimals,
            "maxDecimals": self.max_decimals,
        }

    def format(self, value: Any, row: int) -> str:
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            return super().format(value, row)
        text = f"{value:.{self.max_decimals}f}"
        if self.max_decimals > self.min_decimals and "." in text:
            whole, frac = text.split(".")
            frac = frac.rstrip("0").ljust(self.min_decimals, "0")
            text = f"{whole}.{frac}" if frac else whole
        return text


@dataclass
class TimeStringFormat(StringFormat):
    """Show time values at a given granularity."""
    type: str = "time"
    unit: TimeUnit = TimeUnit.MILLISECONDS
    human_friendly: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "unit": self.unit.value,
            "humanFriendly": self.human_friendly,
        }

    def format(self, value: Any, row: int) -> str:
        if not isinstance(value, (datetime, date)):
            return super().format(value, row)
        if not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        text = value.strftime(_TIME_PATTERNS[self.unit])
        if self.unit == TimeUnit.MILLISECONDS:
            text = text[:-3]
        return text


@dataclass
class ImageStringFormat(StringFormat):
    """Cell content is an image (base64 or URL)."""
    type: str = "image"


@dataclass
class HtmlStringFormat(StringFormat):
    """Cell content is raw HTML."""
    type: str = "html"


@dataclass
class ValueStringFormat(StringFormat):
    """Precomputed display strings for every row of one column."""
    type: str = "value"
    column: str = ""
    values: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "values": {self.column: list(self.values)}}

    def format(self, value: Any, row: int) -> str:
        if 0 <= row < len(self.values) and self.values[row] is not None:
            return self.values[row]
        return super().format(value, row)


def decimal_format(min_decimals: int = 4, max_decimals: Optional[int] = None) -> DecimalStringFormat:
    """Decimal format; ``max_decimals`` defaults to ``min_decimals``."""
    if max_decimals is None:
        max_decimals = min_decimals
    return DecimalStringFormat(min_decimals=min_decimals, max_decimals=max_decimals)


def time_format(unit: TimeUnit = TimeUnit.MILLISECONDS, human_friendly: bool = False) -> TimeStringFormat:
    return TimeStringFormat(unit=TimeUnit(unit), human_friendly=human_friendly)


def image_format() -> ImageStringFormat:
    return ImageStringFormat()


def html_format() -> HtmlStringFormat:
    return HtmlStringFormat()


# =============================================================================
# Cell renderers
# =============================================================================

@dataclass
class CellRenderer:
    """Base class for cell renderers."""
    type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass
class DataBarsRenderer(CellRenderer):
    """Draws a horizontal bar proportional to the cell value."""
    type: str = "DataBars"
    include_text: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "includeText": self.include_text}


def data_bars_renderer(include_text: bool = True) -> DataBarsRenderer:
    return DataBarsRenderer(include_text=include_text)


__all__ = [
    "TimeUnit",
    "Alignment",
    "StringFormat",
    "DecimalStringFormat",
    "TimeStringFormat",
    "ImageStringFormat",
    "HtmlStringFormat",
    "ValueStringFormat",
    "decimal_format",
    "time_format",
    "image_format",
    "html_format",
    "CellRenderer",
    "DataBarsRenderer",
    "data_bars_renderer",
]
