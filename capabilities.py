# capabilities.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Set

import history
from errors import MissingValue, UnsupportedFeature
from history import ABSENT, TransformSpec
from readers import BOOLEAN, GEOMETRY, NUMBER, SCALE, VALUE, Reader, ReaderFn, ReaderKind, choice


@dataclass(frozen=True)
class CapabilityEntry:
    key: str
    description: str
    reader: Reader
    read: ReaderFn

    @property
    def is_boolean(self) -> bool:
        return self.reader.kind is ReaderKind.BOOLEAN


class CapabilityTable:
    """Feature keys one backend understands, with their value readers."""

    def __init__(self, backend: str) -> None:
        self.backend = backend
        self._entries: Dict[str, CapabilityEntry] = {}

    def register(self, key: str, description: str, reader: Reader) -> None:
        key = key.strip().lower()
        self._entries[key] = CapabilityEntry(key, description, reader, reader.resolve())

    def keys(self) -> List[str]:
        return sorted(self._entries.keys())

    def entry(self, key: str) -> CapabilityEntry:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def describe(self) -> List[str]:
        lines = []
        for key in self.keys():
            e = self._entries[key]
            kind = e.reader.kind.value
            if e.reader.choices:
                kind += " (" + "|".join(str(c) for c in e.reader.choices) + ")"
            lines.append(f"{key:<20} {kind:<30} {e.description}")
        return lines


# =============== Registry ===============
class CapabilityRegistry:
    def __init__(self) -> None:
        self._by_name: Dict[str, CapabilityTable] = {}

    def register(self, table: CapabilityTable) -> None:
        self._by_name[table.backend.strip().lower()] = table

    def names(self) -> List[str]:
        return sorted(self._by_name.keys())

    def table(self, backend: str) -> CapabilityTable:
        key = backend.strip().lower()
        if key not in self._by_name:
            msg = f"Unknown backend '{backend}'. Available: {', '.join(self.names()) or '(none)'}"
            raise KeyError(msg)
        return self._by_name[key]


CAPABILITIES = CapabilityRegistry()


def _table(backend: str, rows: Iterable[tuple]) -> CapabilityTable:
    t = CapabilityTable(backend)
    for key, description, reader in rows:
        t.register(key, description, reader)
    return t


# =============== Operations ===============

def unsupported_features(specs: Iterable[TransformSpec], backend: str) -> Set[str]:
    table = CAPABILITIES.table(backend)
    return {k for k, _ in specs if k not in table}


def validate(image: Any, new_specs: List[TransformSpec], backend: str) -> None:
    """Raise UnsupportedFeature unless `backend` can replay the whole history.

    Accumulated keys that `new_specs` deletes are not held against it.
    """
    requested = unsupported_features([s for s in new_specs if s[1] is not None], backend)
    if requested:
        raise UnsupportedFeature(
            f"unsupported feature(s): {', '.join(sorted(requested))}", requested
        )
    surviving = history.merge(image.transforms, [s for s in new_specs if s[1] is None])
    accumulated = unsupported_features(surviving, backend)
    if accumulated:
        raise UnsupportedFeature(
            f"cannot replay accumulated feature(s): {', '.join(sorted(accumulated))}",
            accumulated,
        )


def fill_omitted_values(specs: Iterable[TransformSpec], backend: str) -> List[TransformSpec]:
    """Give boolean features without a value an explicit True."""
    table = CAPABILITIES.table(backend)
    out: List[TransformSpec] = []
    for key, value in specs:
        if value is ABSENT and key in table:
            if not table.entry(key).is_boolean:
                raise MissingValue(f"{key} requires a value")
            value = True
        elif value is ABSENT:
            value = True
        out.append((key, value))
    return out


def normalize(specs: Iterable[TransformSpec], backend: str, strict: bool = True) -> List[TransformSpec]:
    """Run every spec through its reader; deletions pass through untouched."""
    table = CAPABILITIES.table(backend)
    out: List[TransformSpec] = []
    for key, value in specs:
        if value is None:
            out.append((key, None))
            continue
        out.append(table.entry(key).read(key, value, strict))
    return out


# =============== Tables ===============

NATIVE_FEATURES = [
    ("resize", "Resize to a geometry (WxH, W, xH, N%, WxH!, WxH^)", GEOMETRY),
    ("rotate", "Rotate clockwise by degrees (cumulative)", NUMBER),
    ("scale", "Scale the displayed size by a percentage", SCALE),
    ("background", "Background color shown behind transparent or rotated areas", VALUE),
    ("flip", "Mirror horizontally", BOOLEAN),
]

COLORSPACES = (
    "CMY", "CMYK", "Gray", "HCL", "HSB", "HSI", "HSL", "HWB", "Lab", "LinearGray",
    "Luv", "OHTA", "Rec601YCbCr", "Rec709YCbCr", "RGB", "scRGB", "sRGB", "XYZ",
    "YCbCr", "YIQ", "YPbPr", "YUV",
)

IMAGE_TYPES = (
    "Bilevel", "Grayscale", "GrayscaleAlpha", "Palette", "PaletteAlpha",
    "TrueColor", "TrueColorAlpha", "ColorSeparation", "ColorSeparationAlpha", "Optimize",
)

CONVERT_FEATURES = [
    ("resize", "Resize to a geometry", GEOMETRY),
    ("rotate", "Rotate clockwise by degrees", NUMBER),
    ("scale", "Scale by a percentage without resampling", SCALE),
    ("sample", "Resize by pixel sampling", GEOMETRY),
    ("thumbnail", "Resize and strip profiles", GEOMETRY),
    ("background", "Background color", VALUE),
    ("flip", "Mirror vertically", BOOLEAN),
    ("flop", "Mirror horizontally", BOOLEAN),
    ("transpose", "Flip along the top-left diagonal", BOOLEAN),
    ("transverse", "Flip along the top-right diagonal", BOOLEAN),
    ("auto-orient", "Rotate according to the EXIF orientation", BOOLEAN),
    ("trim", "Trim edges of the background color", BOOLEAN),
    ("blur", "Gaussian-like blur, radius x sigma", GEOMETRY),
    ("sharpen", "Sharpen, radius x sigma", GEOMETRY),
    ("unsharp", "Unsharp mask, radius x sigma + gain + threshold", VALUE),
    ("charcoal", "Charcoal drawing effect", NUMBER),
    ("edge", "Edge detection with the given radius", NUMBER),
    ("emboss", "Emboss with the given radius", NUMBER),
    ("implode", "Implode by the given factor", NUMBER),
    ("swirl", "Swirl by degrees", NUMBER),
    ("despeckle", "Reduce speckles", BOOLEAN),
    ("gamma", "Gamma correction", NUMBER),
    ("level", "Black point, white point and gamma", VALUE),
    ("brightness-contrast", "Brightness x contrast", VALUE),
    ("modulate", "Brightness, saturation, hue percentages", VALUE),
    ("sepia-tone", "Sepia tone at a threshold percentage", SCALE),
    ("negate", "Invert colors", BOOLEAN),
    ("normalize", "Stretch the intensity range", BOOLEAN),
    ("equalize", "Histogram equalization", BOOLEAN),
    ("monochrome", "Two-color black and white", BOOLEAN),
    ("posterize", "Reduce to N levels per channel", NUMBER),
    ("colorspace", "Convert to a colorspace", choice(*COLORSPACES)),
    ("type", "Image type", choice(*IMAGE_TYPES)),
    ("quality", "Compression quality", NUMBER),
    ("strip", "Strip profiles and comments", BOOLEAN),
]


CAPABILITIES.register(_table("native", NATIVE_FEATURES))
CAPABILITIES.register(_table("convert", CONVERT_FEATURES))
