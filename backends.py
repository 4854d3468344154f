# backends.py
from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import history
from errors import BackendExecutionError, InvalidGeometryOperator, UnimplementedOperator
from geometry import GeometryBox, parse_geometry
from history import TransformSpec
from images import ImageDescriptor, ensure_original_size
from settings import TransformConfig

log = logging.getLogger(__name__)


# =============== Registry ===============
class BackendRegistry:
    def __init__(self) -> None:
        self._by_name: Dict[str, type[BaseBackend]] = {}

    def register(self, name: str, cls: type["BaseBackend"]) -> None:
        key = name.strip().lower()
        self._by_name[key] = cls

    def names(self) -> List[str]:
        return sorted(self._by_name.keys())

    def create(self, name: str, **kwargs) -> "BaseBackend":
        key = name.strip().lower()
        if key not in self._by_name:
            msg = f"Unknown backend '{name}'. Available: {', '.join(self.names()) or '(none)'}"
            raise KeyError(msg)
        return self._by_name[key](**kwargs)


BACKENDS = BackendRegistry()


# =============== Base ===============
@dataclass
class BaseBackend:
    def execute(
        self,
        image: ImageDescriptor,
        transforms: List[TransformSpec],
        config: TransformConfig,
    ) -> ImageDescriptor:
        """Re-derive `image` from its source and the complete `transforms` list.

        Raises a RecoverableError when this backend cannot do it.
        """
        raise NotImplementedError


# =============== In-process ===============

def _current_size(
    width: Optional[int], height: Optional[int], original: Tuple[int, int]
) -> Tuple[float, float]:
    ow, oh = original
    if width is None and height is None:
        return ow, oh
    if height is None:
        return width, width * oh / ow
    if width is None:
        return height * ow / oh, height
    return width, height


def apply_geometry(
    box: GeometryBox,
    width: Optional[int],
    height: Optional[int],
    original: Tuple[int, int],
) -> Tuple[Optional[int], Optional[int]]:
    """New (width, height) overrides after resizing to `box`.

    None means "follow the aspect ratio".
    """
    w, h, op = box
    cw, ch = _current_size(width, height, original)

    if op == "%":
        pw = w if w is not None else h
        ph = h if h is not None else w
        return round(cw * pw / 100.0), round(ch * ph / 100.0)
    if op == "!":
        return (w if w is not None else round(cw)), (h if h is not None else round(ch))
    if op is None or op == "^":
        if w is not None and h is not None:
            pick = min if op is None else max
            s = pick(w / cw, h / ch)
            return round(cw * s), round(ch * s)
        return w, h
    if op in ("@", ">", "<"):
        raise UnimplementedOperator(f"geometry operator '{op}' is not implemented")
    raise InvalidGeometryOperator(f"invalid geometry operator: {op!r}")


@dataclass
class NativeBackend(BaseBackend):
    """Interprets the history into display properties on the descriptor."""

    def execute(self, image, transforms, config):
        try:
            original = ensure_original_size(image)
        except ValueError as e:
            raise BackendExecutionError(str(e)) from e
        width: Optional[int] = None
        height: Optional[int] = None
        rotation = 0.0
        background = None
        scale: Optional[float] = None
        flip = False

        for key, value in transforms:
            if key == "resize":
                box = parse_geometry(value)
                if box is None:
                    raise BackendExecutionError(f"cannot interpret resize value {value!r}")
                width, height = apply_geometry(box, width, height, original)
            elif key == "rotate":
                try:
                    rotation = (rotation + float(value)) % 360.0
                except (TypeError, ValueError):
                    raise BackendExecutionError(f"cannot interpret rotate value {value!r}")
            elif key == "scale":
                try:
                    pct = float(str(value).strip().rstrip("%"))
                except ValueError:
                    raise BackendExecutionError(f"cannot interpret scale value {value!r}")
                scale = (1.0 if scale is None else scale) * pct / 100.0
            elif key == "background":
                background = value
            elif key == "flip":
                if value:
                    flip = not flip
            else:
                raise BackendExecutionError(f"no handler for feature {key}")

        image.width_override = width
        image.height_override = height
        image.rotation = rotation
        image.background = background
        image.scale = scale
        image.flip = flip
        image.derived_bytes = None
        return image


# =============== Subprocess (ImageMagick convert) ===============

def build_arguments(transforms: List[TransformSpec]) -> List[str]:
    """`(-option [value])*` for every accumulated spec; booleans are bare flags."""
    args: List[str] = []
    for key, value in transforms:
        if value is True:
            args.append(f"-{key}")
        elif value is False:
            continue
        else:
            args.extend([f"-{key}", str(value)])
    return args


@dataclass
class ConvertBackend(BaseBackend):
    """Runs the external convert tool and captures the new image from stdout."""

    def command(self, image: ImageDescriptor, transforms: List[TransformSpec], config: TransformConfig) -> List[str]:
        src = image.source_path or "-"
        out = f"{image.format_type}:-" if image.format_type else "-"
        return [config.convert_bin, src, *build_arguments(transforms), out]

    def execute(self, image, transforms, config):
        if image.source is None:
            raise BackendExecutionError("image has no source")
        cmd = self.command(image, transforms, config)
        stdin = image.source if isinstance(image.source, bytes) else None
        log.debug("running %s", shlex.join(cmd))

        try:
            creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0)
            proc = subprocess.run(
                cmd,
                input=stdin,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=config.convert_timeout,
                creationflags=creationflags,
            )
        except OSError as e:
            raise BackendExecutionError(f"cannot run {config.convert_bin}: {e}")
        except subprocess.TimeoutExpired:
            log.warning("%s timed out after %ss", config.convert_bin, config.convert_timeout)
            raise BackendExecutionError(f"{config.convert_bin} timed out after {config.convert_timeout}s")

        if proc.returncode != 0:
            err = proc.stderr.decode(errors="ignore").strip()
            log.warning("%s exited with status %d", config.convert_bin, proc.returncode)
            raise BackendExecutionError(
                f"{config.convert_bin} exited with status {proc.returncode}" + (f": {err}" if err else ""),
                returncode=proc.returncode,
                log=err,
            )

        image.derived_bytes = proc.stdout
        image.width_override = None
        image.height_override = None
        image.scale = None
        image.flip = False
        image.rotation = history.accumulated_rotation(transforms)
        image.background = history.latest(transforms, "background")
        return image


# =============== Registration Calls ===============
BACKENDS.register("native", NativeBackend)
BACKENDS.register("convert", ConvertBackend)
