# history.py
"""Accumulated transform history.

The history is an ordered list of ``(key, value)`` pairs. Keys may repeat;
every entry is replayed by the backend, so nothing is folded here.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple

TransformSpec = Tuple[str, Any]


class _Absent:
    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


# Value slot of a spec given without a value (boolean features).
ABSENT = _Absent()


def _norm_key(key: str) -> str:
    return str(key).strip().lower().lstrip(":").replace("_", "-")


def as_specs(*specs: Any, **kwspecs: Any) -> List[TransformSpec]:
    """Build a spec list from ``(key, value)`` tuples, ``(key,)`` tuples,
    bare key strings and keyword arguments (``sepia_tone=`` -> ``sepia-tone``).
    """
    out: List[TransformSpec] = []
    for spec in specs:
        if isinstance(spec, str):
            out.append((_norm_key(spec), ABSENT))
        elif len(spec) == 1:
            out.append((_norm_key(spec[0]), ABSENT))
        elif len(spec) == 2:
            out.append((_norm_key(spec[0]), spec[1]))
        else:
            raise TypeError(f"spec must be (key,) or (key, value), got {spec!r}")
    for key, value in kwspecs.items():
        out.append((_norm_key(key), value))
    return out


def delete_key(transforms: Iterable[TransformSpec], key: str) -> List[TransformSpec]:
    return [(k, v) for k, v in transforms if k != key]


def merge(existing: Sequence[TransformSpec], new_specs: Iterable[TransformSpec]) -> List[TransformSpec]:
    """Append `new_specs` to `existing`; a None value deletes every entry of its key."""
    out = list(existing)
    for key, value in new_specs:
        if value is None:
            out = delete_key(out, key)
        else:
            out.append((key, value))
    return out


def keys(transforms: Iterable[TransformSpec]) -> Set[str]:
    return {k for k, _ in transforms}


def latest(transforms: Sequence[TransformSpec], key: str, default: Any = None) -> Any:
    for k, v in reversed(transforms):
        if k == key:
            return v
    return default


def _degrees(v: Any) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return 0.0


def accumulated_rotation(transforms: Iterable[TransformSpec], start: float = 0.0) -> float:
    total = start
    for k, v in transforms:
        if k == "rotate":
            total += _degrees(v)
    return total % 360.0


def requested_rotation(specs: Iterable[TransformSpec]) -> Optional[float]:
    """Sum of the rotate values among `specs`, None when there is none."""
    found = [_degrees(v) for k, v in specs if k == "rotate" and v is not None]
    return sum(found) if found else None
