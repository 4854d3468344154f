# fit.py
"""Resolve symbolic resize intents into concrete geometry.

fit-width and fit-height size the image so that, after the accumulated and
requested rotation, its bounding box exactly spans the viewport width or
height. fit picks whichever of the two keeps the whole image visible, and
fit-if-large only fits images that overflow the viewport.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from geometry import GeometryBox, rotated_bounding_width, rotated_fit_size
from history import TransformSpec, requested_rotation
from images import ImageDescriptor, ensure_original_size
from settings import TransformConfig

log = logging.getLogger(__name__)

FIT_INTENTS = ("fit", "fit-width", "fit-height", "fit-stretch", "fit-if-large")


def _intent(value: object) -> Optional[str]:
    if isinstance(value, str):
        v = value.strip().lower().lstrip(":")
        if v in FIT_INTENTS:
            return v
    return None


def resolve_intent(
    intent: str,
    original_size: Tuple[int, int],
    rotation: float,
    viewport: Tuple[int, int],
    fudge: float,
) -> Optional[GeometryBox]:
    """Geometry for `intent`, or None when the resize should be dropped."""
    ow, oh = original_size
    vw, vh = viewport
    rotated = (
        rotated_bounding_width(ow, oh, rotation),
        rotated_bounding_width(oh, ow, rotation),
    )

    if intent == "fit-if-large":
        if rotated[0] <= vw and rotated[1] <= vh:
            return None
        intent = "fit"
    if intent == "fit":
        intent = "fit-width" if vw / vh < rotated[0] / rotated[1] else "fit-height"

    if intent == "fit-width":
        w, h = rotated_fit_size(ow, oh, vw, rotation, fudge)
        return GeometryBox(w, h, None)
    if intent == "fit-height":
        h, w = rotated_fit_size(oh, ow, vh, rotation, fudge)
        return GeometryBox(w, h, None)
    if intent == "fit-stretch":
        w, h = rotated_fit_size(vw, vh, vw, rotation, fudge)
        return GeometryBox(vw if w is None else w, vh if h is None else h, "!")
    raise ValueError(f"unknown fit intent: {intent}")


def resolve_fit(
    image: ImageDescriptor,
    specs: List[TransformSpec],
    config: TransformConfig,
) -> List[TransformSpec]:
    """Replace symbolic resize values in `specs` with geometry tuples."""
    if not any(k == "resize" and _intent(v) for k, v in specs):
        return list(specs)

    original = ensure_original_size(image)
    viewport = config.current_viewport()
    rotation = (image.rotation + (requested_rotation(specs) or 0.0)) % 360.0

    out: List[TransformSpec] = []
    for key, value in specs:
        intent = _intent(value) if key == "resize" else None
        if intent is None:
            out.append((key, value))
            continue
        box = resolve_intent(intent, original, rotation, viewport, config.right_angle_fudge)
        log.debug("resolved resize %s -> %s (viewport %s, rotation %s)", intent, box, viewport, rotation)
        if box is not None:
            out.append((key, tuple(box)))
    return out
