# images.py
from __future__ import annotations

import io
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, ImageOps, UnidentifiedImageError

from history import TransformSpec

Source = Union[str, bytes]


# ------------------------------------------------------------
# Descriptor
# ------------------------------------------------------------
@dataclass
class ImageDescriptor:
    """An image plus everything the transform pipeline has done to it.

    The descriptor is mutated in place by `dispatch.transform`; callers must
    not share one descriptor between concurrent transform calls.
    """
    source: Optional[Source] = None
    original_size: Optional[Tuple[int, int]] = None
    width_override: Optional[int] = None
    height_override: Optional[int] = None
    rotation: float = 0.0
    background: Optional[Any] = None
    scale: Optional[float] = None
    flip: bool = False
    transforms: List[TransformSpec] = field(default_factory=list)
    backend_tag: Optional[str] = None
    derived_bytes: Optional[bytes] = None
    format_type: Optional[str] = None

    @classmethod
    def from_source(cls, src: Any, **kwargs: Any) -> "ImageDescriptor":
        return cls(source=load_source(src), **kwargs)

    @property
    def source_path(self) -> Optional[str]:
        return self.source if isinstance(self.source, str) else None


# ------------------------------------------------------------
# Path + URL handling (quotes, file:// URIs, Windows quirks)
# ------------------------------------------------------------
def _sanitize_path(p: Any) -> str:
    """
    Accepts:
      - r'C:\\path\\file.png'
      - '"C:\\path\\file.png"' or "'C:\\path\\file.png'"
      - file:///C:/path/file.png
      - file:///C:/path/My%20File.png
    Returns a normal filesystem path string.
    """
    if p is None:
        return ""
    s = str(p).strip()

    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()

    if s.lower().startswith("file:"):
        u = urlparse(s)
        s = unquote(u.path)
        # Windows: /C:/... -> C:/...
        if os.name == "nt" and len(s) >= 3 and s[0] == "/" and s[2] == ":":
            s = s[1:]

    return s.replace("/", os.sep)


def _is_url(s: str) -> bool:
    return urlparse(s).scheme.lower() in ("http", "https")


_DOWNLOAD_LOCK = threading.Lock()
_DOWNLOADS: Dict[str, bytes] = {}


def _download_bytes(url: str, timeout: float = 15.0) -> bytes:
    headers = {"User-Agent": "imgxform/0.1"}
    r = requests.get(url, headers=headers, timeout=timeout)
    r.raise_for_status()
    return r.content


def load_source(src: Any) -> Source:
    """Resolve `src` into a descriptor source.

    Bytes are kept as they are, http(s) URLs are downloaded once into bytes,
    anything else is treated as a filesystem path (quotes and file:// URIs ok).
    """
    if isinstance(src, (bytes, bytearray)):
        return bytes(src)
    if src is None or not str(src).strip():
        raise ValueError("image source is empty.")

    s = str(src).strip()
    if _is_url(s):
        with _DOWNLOAD_LOCK:
            cached = _DOWNLOADS.get(s)
        if cached is None:
            cached = _download_bytes(s)
            with _DOWNLOAD_LOCK:
                _DOWNLOADS[s] = cached
        return cached

    ap = os.path.abspath(os.path.expanduser(_sanitize_path(s)))
    if not os.path.isfile(ap):
        raise FileNotFoundError(f"Image file not found: {ap}")
    return ap


def open_source(image: ImageDescriptor) -> Image.Image:
    """Open the untransformed source with Pillow."""
    src = image.source
    if src is None:
        raise ValueError("image has no source.")
    try:
        if isinstance(src, bytes):
            return Image.open(io.BytesIO(src))
        return Image.open(src)
    except UnidentifiedImageError as exc:
        raise ValueError(f"source is not an image: {src if isinstance(src, str) else '<bytes>'}") from exc


def ensure_original_size(image: ImageDescriptor) -> Tuple[int, int]:
    """Cache and return the untransformed size; never recomputed once set."""
    if image.original_size is None:
        with open_source(image) as im:
            image.original_size = (int(im.size[0]), int(im.size[1]))
    return image.original_size


# ------------------------------------------------------------
# In-process display state
# ------------------------------------------------------------
def display_size(image: ImageDescriptor) -> Tuple[int, int]:
    """Unrotated size implied by the overrides and the scale factor."""
    ow, oh = ensure_original_size(image)
    w, h = image.width_override, image.height_override
    if w is None and h is None:
        w, h = ow, oh
    elif h is None:
        h = round(w * oh / ow) if ow else 0
    elif w is None:
        w = round(h * ow / oh) if oh else 0
    if image.scale is not None:
        w, h = round(w * image.scale), round(h * image.scale)
    return max(1, int(w)), max(1, int(h))


_NAMED_COLORS = {
    "red": (255, 0, 0, 255), "green": (0, 255, 0, 255), "blue": (0, 0, 255, 255),
    "white": (255, 255, 255, 255), "black": (0, 0, 0, 255), "transparent": (0, 0, 0, 0),
    "yellow": (255, 255, 0, 255), "cyan": (0, 255, 255, 255), "magenta": (255, 0, 255, 255),
    "gray": (128, 128, 128, 255), "grey": (128, 128, 128, 255),
}


def parse_color(val: Any, default: Optional[Tuple[int, int, int, int]] = None) -> Optional[Tuple[int, int, int, int]]:
    # "R,G,B[,A]", "#RGB", "#RGBA", "#RRGGBB", "#RRGGBBAA", tuples or a few named colors
    if val is None:
        return default
    if isinstance(val, (list, tuple)) and len(val) >= 3:
        r, g, b = int(val[0]), int(val[1]), int(val[2])
        a = int(val[3]) if len(val) > 3 else 255
        return (r, g, b, a)
    if not isinstance(val, str):
        return default
    val = val.strip()
    if val.startswith("#"):
        h = val[1:]
        if len(h) in (3, 4):
            h = "".join(c * 2 for c in h)
        if len(h) == 6:
            h += "FF"
        if len(h) != 8:
            return default
        try:
            return tuple(int(h[i:i + 2], 16) for i in (0, 2, 4, 6))  # type: ignore[return-value]
        except ValueError:
            return default
    if "," in val:
        parts = [p.strip() for p in val.split(",")]
        if len(parts) >= 3:
            try:
                return parse_color([int(p) for p in parts], default)
            except ValueError:
                return default
    return _NAMED_COLORS.get(val.lower(), default)


def render(image: ImageDescriptor) -> Image.Image:
    """Materialize the in-process display state with Pillow (RGBA)."""
    with open_source(image) as src:
        img = ImageOps.exif_transpose(src).convert("RGBA")

    size = display_size(image)
    if img.size != size:
        img = img.resize(size, Image.Resampling.LANCZOS)
    if image.flip:
        img = ImageOps.mirror(img)
    if image.rotation:
        # PIL rotates counter-clockwise; rotation is clockwise.
        img = img.rotate(-image.rotation, resample=Image.Resampling.BICUBIC, expand=True, fillcolor=(0, 0, 0, 0))

    color = parse_color(image.background)
    if color is not None:
        canvas = Image.new("RGBA", img.size, color)
        canvas.alpha_composite(img)
        img = canvas
    return img


def save(image: ImageDescriptor, path: str) -> None:
    """Write the current materialized image to `path`."""
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)
    if image.derived_bytes is not None:
        with open(path, "wb") as fh:
            fh.write(image.derived_bytes)
        return
    img = render(image)
    if os.path.splitext(path)[1].lower() in (".jpg", ".jpeg"):
        img = img.convert("RGB")
    img.save(path)
