# dispatch.py
"""Route a transform request to the first backend able to serve it.

Every call replays the whole accumulated history from the untouched source,
so a backend must understand every feature ever applied to the image, not
only the ones being added now.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

import capabilities
import history
from backends import BACKENDS
from errors import AllBackendsFailed, RecoverableError
from fit import resolve_fit
from history import TransformSpec
from images import ImageDescriptor, ensure_original_size
from settings import TransformConfig

log = logging.getLogger(__name__)


def _read_original_size(image: ImageDescriptor) -> None:
    # Pillow may not decode the source while convert can.
    try:
        ensure_original_size(image)
    except ValueError as e:
        log.info("original size unknown, leaving it to the backends: %s", e)


def _attempt(
    image: ImageDescriptor,
    specs: List[TransformSpec],
    backend: str,
    config: TransformConfig,
) -> ImageDescriptor:
    specs = capabilities.fill_omitted_values(specs, backend)
    capabilities.validate(image, specs, backend)
    specs = capabilities.normalize(specs, backend, strict=config.strict)
    merged = history.merge(image.transforms, specs)

    BACKENDS.create(backend).execute(image, merged, config)
    image.transforms = merged
    image.backend_tag = backend
    return image


def transform(
    image: ImageDescriptor,
    *specs: Any,
    config: Optional[TransformConfig] = None,
    backend: Optional[str] = None,
    **kwspecs: Any,
) -> ImageDescriptor:
    """Add `specs` to the image's history and re-derive it.

    Specs are ``(key, value)`` tuples, ``(key,)`` or bare keys for boolean
    features, or keyword arguments. A value of None deletes every entry of
    that key. `backend` restricts the attempt to that one backend.

    Raises AllBackendsFailed with every backend's reason when none succeeds.
    """
    config = config or TransformConfig()
    if backend:
        config = config.with_backend(backend)

    new_specs = history.as_specs(*specs, **kwspecs)
    _read_original_size(image)
    new_specs = resolve_fit(image, new_specs, config)

    known = set(BACKENDS.names()) & set(capabilities.CAPABILITIES.names())
    messages: List[str] = []
    for name in config.backends:
        if name.strip().lower() not in known:
            messages.append(f"{name}: unknown backend (available: {', '.join(sorted(known))})")
            continue
        log.debug("trying backend %s with %s", name, new_specs)
        try:
            _attempt(image, new_specs, name, config)
        except RecoverableError as e:
            msg = f"{name}: {e}"
            log.debug("%s", msg)
            messages.append(msg)
            continue
        log.info("backend %s applied %d transform(s)", name, len(image.transforms))
        return image

    raise AllBackendsFailed(messages)


def refresh(image: ImageDescriptor, config: Optional[TransformConfig] = None) -> ImageDescriptor:
    """Re-derive the image from its current history."""
    return transform(image, config=config)
