"""Colour handling for highlighters and font colours.

Colours are accepted in any form rich understands (``"red"``, ``"#FF5500"``,
``"rgb(255,85,0)"``, a ``rich.color.Color``) or as an ``(r, g, b)`` tuple,
and are stored as ``ColorTriplet``. On the wire they are ``#RRGGBB`` strings.
"""

from typing import Any, Optional

from rich.color import Color, ColorParseError
from rich.color_triplet import ColorTriplet


def to_color(value: Any) -> Optional[ColorTriplet]:
    """Convert a user-supplied colour to a ColorTriplet.

    None means "no colour" and is returned unchanged.

    Raises:
        ValueError: If a string cannot be parsed as a colour.
        TypeError: If the value is not a supported colour form.
    """
    if value is None or isinstance(value, ColorTriplet):
        return value
    if isinstance(value, Color):
        return value.get_truecolor()
    if isinstance(value, str):
        try:
            return Color.parse(value).get_truecolor()
        except ColorParseError as e:
            raise ValueError(f"Invalid colour {value!r}: {e}") from e
    if isinstance(value, (tuple, list)) and len(value) == 3:
        red, green, blue = (int(c) for c in value)
        for component in (red, green, blue):
            if not 0 <= component <= 255:
                raise ValueError(f"Colour component out of range: {value!r}")
        return ColorTriplet(red, green, blue)
    raise TypeError(f"Unsupported colour value: {value!r}")


def color_to_json(color: Optional[ColorTriplet]) -> Optional[str]:
    """Serialize a colour as ``#RRGGBB`` (None stays None)."""
    if color is None:
        return None
    return "#{:02X}{:02X}{:02X}".format(*color)


def color_to_style(color: Optional[ColorTriplet]) -> Optional[str]:
    """Rich style colour name for a triplet, used by the terminal preview."""
    if color is None:
        return None
    return color.hex


__all__ = ["ColorTriplet", "to_color", "color_to_json", "color_to_style"]
