from __future__ import annotations

import pytest

from commands import TransformCommands
from errors import AllBackendsFailed
from images import ImageDescriptor


def test_commands_act_on_cursor_image() -> None:
    image = ImageDescriptor(original_size=(800, 600))
    refreshed = []
    commands = TransformCommands(cursor=lambda: image, on_refresh=refreshed.append)

    commands.add_transform("rotate", 90)
    commands.add_transform("flip")
    assert commands.list_transforms() == [("rotate", 90), ("flip", True)]
    assert image.rotation == 90.0

    commands.delete_transform("rotate")
    assert commands.list_transforms() == [("flip", True)]
    assert image.rotation == 0.0
    assert refreshed == [image, image, image]


def test_explicit_image_wins() -> None:
    image = ImageDescriptor(original_size=(10, 10))
    commands = TransformCommands()
    commands.add_transform("resize", "50%", image=image)
    assert commands.list_transforms(image) == [("resize", "50%")]


def test_no_image_available() -> None:
    with pytest.raises(ValueError):
        TransformCommands().list_transforms()
    with pytest.raises(ValueError):
        TransformCommands(cursor=lambda: None).list_transforms()


def test_add_rejects_none() -> None:
    with pytest.raises(ValueError):
        TransformCommands().add_transform("rotate", None, image=ImageDescriptor(original_size=(1, 1)))


def test_failed_command_does_not_refresh() -> None:
    image = ImageDescriptor(original_size=(10, 10))
    refreshed = []
    commands = TransformCommands(cursor=lambda: image, on_refresh=refreshed.append)
    with pytest.raises(AllBackendsFailed):
        commands.add_transform("negate", backend="native")
    assert refreshed == []
