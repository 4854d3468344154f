# settings.py
from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Tuple

from geometry import DEFAULT_RIGHT_ANGLE_FUDGE

DEFAULT_BACKENDS: Tuple[str, ...] = ("native", "convert")
DEFAULT_VIEWPORT: Tuple[int, int] = (800, 600)


def _parse_size(s: str) -> Tuple[int, int]:
    w, _, h = s.lower().partition("x")
    return int(w), int(h)


def _parse_bool(s: str) -> bool:
    return s.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class TransformConfig:
    """Knobs for one `transform` call.

    backends:          priority order; the first capable backend wins
    strict:            readers reject unparseable values instead of passing them on
    viewport:          (w, h) used by the fit-* resize intents
    viewport_provider: host callable returning the current (w, h); wins over `viewport`
    """
    backends: Tuple[str, ...] = DEFAULT_BACKENDS
    strict: bool = True
    viewport: Tuple[int, int] = DEFAULT_VIEWPORT
    viewport_provider: Optional[Callable[[], Tuple[int, int]]] = None
    right_angle_fudge: float = DEFAULT_RIGHT_ANGLE_FUDGE
    convert_bin: str = dataclasses.field(
        default_factory=lambda: os.environ.get("IMGXFORM_CONVERT_BIN") or "convert"
    )
    convert_timeout: Optional[float] = 30.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TransformConfig":
        env = os.environ if environ is None else environ
        kwargs = {}
        if env.get("IMGXFORM_BACKENDS"):
            kwargs["backends"] = tuple(
                b.strip().lower() for b in env["IMGXFORM_BACKENDS"].split(",") if b.strip()
            )
        if env.get("IMGXFORM_STRICT"):
            kwargs["strict"] = _parse_bool(env["IMGXFORM_STRICT"])
        if env.get("IMGXFORM_VIEWPORT"):
            kwargs["viewport"] = _parse_size(env["IMGXFORM_VIEWPORT"])
        if env.get("IMGXFORM_CONVERT_BIN"):
            kwargs["convert_bin"] = env["IMGXFORM_CONVERT_BIN"]
        if env.get("IMGXFORM_CONVERT_TIMEOUT"):
            kwargs["convert_timeout"] = float(env["IMGXFORM_CONVERT_TIMEOUT"])
        return cls(**kwargs)

    def with_backend(self, name: str) -> "TransformConfig":
        return dataclasses.replace(self, backends=(name.strip().lower(),))

    def current_viewport(self) -> Tuple[int, int]:
        if self.viewport_provider is not None:
            w, h = self.viewport_provider()
        else:
            w, h = self.viewport
        w, h = int(w), int(h)
        if w <= 0 or h <= 0:
            raise ValueError(f"viewport must be positive, got {w}x{h}")
        return w, h
