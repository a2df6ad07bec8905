"""Value validators for imgbot options.

Each validator takes the raw string given on the command line and returns
a typed value, or raises OptionValueError with a reason that is shown to
the user as-is.
"""

from __future__ import annotations

import math
import re
from typing import NamedTuple

from PIL import ImageColor

FORMATS = ("png", "jpg", "jpeg", "webp", "gif")
AXES = ("x", "y")

# Largest integer a double holds exactly
MAX_SAFE_INTEGER = 2**53 - 1


class OptionValueError(ValueError):
    """Raised when an option value cannot be converted."""


class Box(NamedTuple):
    """Edge offsets in pixels, CSS order."""

    top: int
    right: int
    bottom: int
    left: int


def integer(s: str) -> int:
    """Parse a non-negative whole number.

    Examples:
        >>> integer("42")
        42
        >>> integer("-1")
        Traceback (most recent call last):
        ...
        imgbot.validators.OptionValueError: '-1' is not a positive integer.
    """
    text = s.strip()
    if not re.fullmatch(r"\+?[0-9]+", text) or int(text) > MAX_SAFE_INTEGER:
        raise OptionValueError(f"'{s}' is not a positive integer.")
    return int(text)


def number(s: str) -> float:
    """Parse any finite number (negative and fractional allowed)."""
    try:
        value = float(s)
    except ValueError:
        raise OptionValueError(f"'{s}' is not a number.") from None
    if not math.isfinite(value):
        raise OptionValueError(f"'{s}' is not a number.")
    return value


def percentage(s: str) -> int:
    """Parse an integer in [0, 100]."""
    value = integer(s)
    if value > 100:
        raise OptionValueError(f"'{s}' is not a percentage.")
    return value


def axis(s: str) -> str:
    a = s.lower()
    if a not in AXES:
        raise OptionValueError(f"'{s}' is not a valid axis.")
    return a


def image_format(s: str) -> str:
    f = s.lower()
    if f not in FORMATS:
        available = ", ".join(f"'{name}'" for name in FORMATS)
        raise OptionValueError(
            f"'{s}' is not a valid format. Available formats are: {available}."
        )
    return f


def color(s: str) -> tuple[int, int, int, int]:
    """Parse color string to RGBA tuple.

    Accepts "transparent" and anything Pillow's ImageColor understands:
    names, #RGB, #RRGGBB, #RRGGBBAA, rgb(), hsl() and friends.

    Returns:
        (R, G, B, A) tuple with values 0-255
    """
    if s.strip().lower() == "transparent":
        return (0, 0, 0, 0)

    try:
        rgb = ImageColor.getrgb(s.strip())
    except ValueError:
        raise OptionValueError(f"'{s}' is not a valid color.") from None
    if len(rgb) == 3:
        return (*rgb, 255)
    return rgb


def box(s: str) -> Box:
    """Parse a box specification.

    Supports (whitespace or ';' separated):
        - "5": uniform, all sides 5
        - "3 4": 3 top/bottom, 4 left/right
        - "1 2 3 4": top, right, bottom, left

    Examples:
        >>> box("3 4")
        Box(top=3, right=4, bottom=3, left=4)
    """
    parts = [p for p in re.split(r"[\s;]+", s) if p]
    try:
        sides = [integer(p) for p in parts]
    except OptionValueError:
        sides = None

    if sides is not None:
        if len(sides) == 1:
            return Box(*(sides * 4))
        if len(sides) == 2:
            vertical, horizontal = sides
            return Box(vertical, horizontal, vertical, horizontal)
        if len(sides) == 4:
            return Box(*sides)

    raise OptionValueError(
        f"'{s}' is not a valid box specification. "
        "Format is either 'top right bottom left', 'y x', or 'all'."
    )
