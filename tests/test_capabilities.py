from __future__ import annotations

import pytest

from capabilities import (
    CAPABILITIES,
    fill_omitted_values,
    normalize,
    unsupported_features,
    validate,
)
from errors import MissingValue, ParseFailure, UnsupportedFeature
from history import ABSENT
from images import ImageDescriptor


def test_registry_lists_both_backends() -> None:
    assert CAPABILITIES.names() == ["convert", "native"]
    assert "resize" in CAPABILITIES.table("native")
    assert "negate" not in CAPABILITIES.table("native")
    assert "negate" in CAPABILITIES.table("convert")


def test_unknown_backend() -> None:
    with pytest.raises(KeyError, match="Unknown backend"):
        CAPABILITIES.table("gimp")


def test_unsupported_features() -> None:
    specs = [("resize", "50%"), ("blur", "0x8"), ("negate", True)]
    assert unsupported_features(specs, "native") == {"blur", "negate"}
    assert unsupported_features(specs, "convert") == set()


def test_validate_checks_new_specs() -> None:
    image = ImageDescriptor(original_size=(10, 10))
    with pytest.raises(UnsupportedFeature) as exc:
        validate(image, [("negate", True)], "native")
    assert exc.value.features == ["negate"]


def test_validate_checks_accumulated_history() -> None:
    image = ImageDescriptor(original_size=(10, 10), transforms=[("blur", "0x8")])
    with pytest.raises(UnsupportedFeature, match="accumulated"):
        validate(image, [("rotate", 90)], "native")
    # deleting the offending key makes the history replayable again
    validate(image, [("blur", None), ("rotate", 90)], "native")


def test_fill_omitted_values() -> None:
    assert fill_omitted_values([("flip", ABSENT), ("rotate", 90)], "native") == [("flip", True), ("rotate", 90)]
    assert fill_omitted_values([("negate", ABSENT)], "native") == [("negate", True)]
    with pytest.raises(MissingValue, match="rotate requires a value"):
        fill_omitted_values([("rotate", ABSENT)], "native")


def test_normalize_uses_backend_readers() -> None:
    specs = [("resize", (500, 500, "!")), ("rotate", "45"), ("scale", 50), ("rotate", None)]
    assert normalize(specs, "native") == [
        ("resize", "500x500!"),
        ("rotate", 45),
        ("scale", "50%"),
        ("rotate", None),
    ]


def test_normalize_choice() -> None:
    assert normalize([("colorspace", "Gray")], "convert") == [("colorspace", "Gray")]
    with pytest.raises(ParseFailure):
        normalize([("colorspace", "Purple")], "convert")


def test_describe_mentions_choices() -> None:
    lines = CAPABILITIES.table("convert").describe()
    colorspace = [line for line in lines if line.startswith("colorspace")]
    assert colorspace and "sRGB" in colorspace[0]
