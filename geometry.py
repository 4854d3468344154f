# geometry.py
from __future__ import annotations

import math
import re
from typing import Any, NamedTuple, Optional, Tuple

OPERATORS = ("%", "@", "^", "!", ">", "<")

# [W][xX ][H][op]; offsets (+X+Y) are not part of the grammar.
_GEOMETRY_RE = re.compile(
    r"\A\s*(?P<w>\d+)?(?:[xX ](?P<h>\d+)?)?\s*(?P<op>[%@^!<>])?\s*\Z"
)

DEFAULT_RIGHT_ANGLE_FUDGE = 1e-4


class GeometryBox(NamedTuple):
    width: Optional[int]
    height: Optional[int]
    operator: Optional[str] = None


# ---------------- parsing / formatting ----------------

def parse_geometry(s: Any) -> Optional[GeometryBox]:
    """Parse an ImageMagick-style geometry string.

    Returns None for anything outside the grammar, including strings with
    offsets and strings carrying neither a width nor a height.
    """
    if not isinstance(s, str):
        return None
    m = _GEOMETRY_RE.match(s)
    if m is None:
        return None
    w, h = m.group("w"), m.group("h")
    if w is None and h is None:
        return None
    return GeometryBox(
        int(w) if w is not None else None,
        int(h) if h is not None else None,
        m.group("op"),
    )


def format_geometry(box: GeometryBox) -> str:
    width, height, op = box
    out = "" if width is None else str(int(width))
    if height is not None:
        out += f"x{int(height)}"
    return out + (op or "")


def normalize_geometry(s: Any) -> Optional[str]:
    box = parse_geometry(s)
    return None if box is None else format_geometry(box)


# ---------------- rotation math ----------------

def rotated_bounding_width(width: float, height: float, rotation: float) -> float:
    """Width of the axis-aligned bounding box of a rotated width x height rectangle."""
    a = math.radians(rotation)
    return width * abs(math.cos(a)) + height * abs(math.sin(a))


def rotated_fit_size(
    width: float,
    height: float,
    length: int,
    rotation: float,
    fudge: float = DEFAULT_RIGHT_ANGLE_FUDGE,
) -> Tuple[Optional[int], Optional[int]]:
    """Return (w, h) such that a w x h image rotated by `rotation` is `length` wide.

    Rotations within `fudge` degrees of a right angle give (length, None),
    rotations within `fudge` of the 45 degree family give (None, length);
    the missing side follows the aspect ratio. Otherwise both sides are a
    uniformly scaled width x height, with w nudged by one so that its parity
    matches `length` while the rotated box stays within length - 1.
    """
    length = int(length)
    if abs(((rotation + 45.0) % 90.0) - 45.0) < fudge:
        return length, None
    if abs((rotation % 90.0) - 45.0) < fudge:
        return None, length
    if width == 0 and height == 0:
        raise ValueError("cannot fit a 0x0 rectangle")

    # The rotated bounding box is rendered as ceil(l) + 2 wide, so aim for
    # l <= length - 1 and keep w the same parity as length.
    scale = (length - 1) / rotated_bounding_width(width, height, rotation)
    w = math.floor(scale * width)
    h = math.floor(scale * height)
    if w % 2 != length % 2:
        if rotated_bounding_width(w + 1, h, rotation) <= length - 1:
            w += 1
        else:
            w -= 1
    return w, h
