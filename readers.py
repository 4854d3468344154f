# readers.py
"""Type-directed readers that turn raw spec values into canonical ones.

Every reader has the shape ``reader(key, value, strict) -> (key, value)``
and raises ``ParseFailure`` when it cannot make sense of the value.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Sequence, Tuple

from errors import ParseFailure
from geometry import GeometryBox, format_geometry, parse_geometry

Spec = Tuple[str, Any]
ReaderFn = Callable[[str, Any, bool], Spec]

_NUMBER_RE = re.compile(r"\A\s*[-+]?(?:\d+\.?\d*|\.\d+)\s*\Z")
_SCALE_RE = re.compile(r"\A\s*([-+]?(?:\d+\.?\d*|\.\d+))\s*%\s*\Z")


class ReaderKind(Enum):
    NUMBER = "number"
    SCALE = "scale"
    GEOMETRY = "geometry"
    BOOLEAN = "boolean"
    VALUE = "value"
    CHOICE = "choice"


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _to_number(s: str) -> Any:
    s = s.strip()
    if "." in s:
        return float(s)
    return int(s)


def _fmt_number(n: Any) -> str:
    if isinstance(n, float) and n.is_integer():
        n = int(n)
    return str(n)


# ---------------- readers ----------------

def read_number(key: str, value: Any, strict: bool = True) -> Spec:
    if _is_number(value):
        return key, value
    if isinstance(value, str) and _NUMBER_RE.match(value):
        return key, _to_number(value)
    if strict:
        raise ParseFailure(f"cannot parse {key} value")
    return key, value


def read_scale(key: str, value: Any, strict: bool = True) -> Spec:
    # A bare number is read as a percentage.
    if _is_number(value):
        return key, f"{_fmt_number(value)}%"
    if isinstance(value, str):
        m = _SCALE_RE.match(value)
        if m:
            return key, f"{_fmt_number(_to_number(m.group(1)))}%"
    if strict:
        raise ParseFailure(f"cannot parse {key} value")
    return key, value


def read_boolean(key: str, value: Any, strict: bool = True) -> Spec:
    return key, value


read_value = read_boolean


def read_geometry(key: str, value: Any, strict: bool = True) -> Spec:
    if _is_number(value):
        return key, format_geometry(GeometryBox(int(value), None, None))
    if isinstance(value, str):
        if parse_geometry(value) is not None or not strict:
            return key, value
    elif isinstance(value, (list, tuple)) and len(value) in (2, 3):
        w, h = value[0], value[1]
        op = value[2] if len(value) == 3 else None
        try:
            box = GeometryBox(
                None if w is None else int(w),
                None if h is None else int(h),
                op or None,
            )
        except (TypeError, ValueError):
            box = None
        if box is not None and parse_geometry(format_geometry(box)) is not None:
            return key, format_geometry(box)
    # only strings are passed on unparsed
    raise ParseFailure(f"cannot parse {key} value")


def read_choice(key: str, value: Any, strict: bool = True, *, choices: Sequence[Any] = ()) -> Spec:
    if value in choices:
        return key, value
    raise ParseFailure(f"{value} is not a valid value of option {key}")


_READERS: Dict[ReaderKind, ReaderFn] = {
    ReaderKind.NUMBER: read_number,
    ReaderKind.SCALE: read_scale,
    ReaderKind.GEOMETRY: read_geometry,
    ReaderKind.BOOLEAN: read_boolean,
    ReaderKind.VALUE: read_value,
}


@dataclass(frozen=True)
class Reader:
    """Reader type of a capability entry; `choices` only matters for CHOICE."""
    kind: ReaderKind
    choices: Tuple[Any, ...] = ()

    def resolve(self) -> ReaderFn:
        if self.kind is ReaderKind.CHOICE:
            return partial(read_choice, choices=self.choices)
        return _READERS[self.kind]


NUMBER = Reader(ReaderKind.NUMBER)
SCALE = Reader(ReaderKind.SCALE)
GEOMETRY = Reader(ReaderKind.GEOMETRY)
BOOLEAN = Reader(ReaderKind.BOOLEAN)
VALUE = Reader(ReaderKind.VALUE)


def choice(*choices: Any) -> Reader:
    return Reader(ReaderKind.CHOICE, tuple(choices))
