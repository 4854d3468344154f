# commands.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from dispatch import transform
from history import ABSENT, TransformSpec
from images import ImageDescriptor
from settings import TransformConfig


@dataclass
class TransformCommands:
    """Keyed add / list / delete commands for a host application.

    cursor:     returns the image to act on when none is passed explicitly
    on_refresh: called with the image after every successful change, so the
                host can redisplay it
    """
    cursor: Optional[Callable[[], ImageDescriptor]] = None
    on_refresh: Optional[Callable[[ImageDescriptor], Any]] = None
    config: TransformConfig = field(default_factory=TransformConfig)

    def _image(self, image: Optional[ImageDescriptor]) -> ImageDescriptor:
        if image is not None:
            return image
        if self.cursor is None:
            raise ValueError("no image given and no cursor accessor configured")
        found = self.cursor()
        if found is None:
            raise ValueError("no image at cursor")
        return found

    def _apply(self, image: ImageDescriptor, spec: TransformSpec, backend: Optional[str]) -> ImageDescriptor:
        transform(image, spec, config=self.config, backend=backend)
        if self.on_refresh is not None:
            self.on_refresh(image)
        return image

    def add_transform(
        self,
        key: str,
        value: Any = ABSENT,
        image: Optional[ImageDescriptor] = None,
        backend: Optional[str] = None,
    ) -> ImageDescriptor:
        if value is None:
            raise ValueError("use delete_transform to remove a transform")
        return self._apply(self._image(image), (key, value), backend)

    def list_transforms(self, image: Optional[ImageDescriptor] = None) -> List[TransformSpec]:
        return list(self._image(image).transforms)

    def delete_transform(
        self,
        key: str,
        image: Optional[ImageDescriptor] = None,
        backend: Optional[str] = None,
    ) -> ImageDescriptor:
        return self._apply(self._image(image), (key, None), backend)
