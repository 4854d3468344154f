from __future__ import annotations

import pytest

from history import (
    ABSENT,
    accumulated_rotation,
    as_specs,
    delete_key,
    keys,
    latest,
    merge,
    requested_rotation,
)


def test_merge_appends_in_order_and_keeps_repeats() -> None:
    out = merge([("rotate", 45)], [("resize", "50%"), ("rotate", 45)])
    assert out == [("rotate", 45), ("resize", "50%"), ("rotate", 45)]


def test_merge_none_deletes_every_entry_of_key() -> None:
    existing = [("rotate", 45), ("resize", "50%"), ("rotate", 90)]
    assert merge(existing, [("rotate", None)]) == [("resize", "50%")]


def test_merge_delete_then_add() -> None:
    existing = [("rotate", 45)]
    assert merge(existing, [("rotate", None), ("rotate", 10)]) == [("rotate", 10)]


def test_merge_does_not_mutate_existing() -> None:
    existing = [("rotate", 45)]
    merge(existing, [("rotate", None)])
    assert existing == [("rotate", 45)]


def test_merge_twice_then_delete_everything() -> None:
    specs = [("rotate", 45), ("resize", "50%"), ("flip", True)]
    out = merge(merge([], specs), specs)
    assert len(out) == 6
    out = merge(out, [(k, None) for k in keys(out)])
    assert out == []


def test_delete_key_is_a_filter() -> None:
    assert delete_key([("a", 1), ("b", 2), ("a", 3)], "a") == [("b", 2)]


def test_as_specs() -> None:
    specs = as_specs(("flip",), "flop", ("rotate", 45), (":resize", "50%"), sepia_tone="80%", rotate=None)
    assert specs == [
        ("flip", ABSENT),
        ("flop", ABSENT),
        ("rotate", 45),
        ("resize", "50%"),
        ("sepia-tone", "80%"),
        ("rotate", None),
    ]


def test_as_specs_rejects_long_tuples() -> None:
    with pytest.raises(TypeError):
        as_specs(("rotate", 45, 90))


def test_absent_is_falsy_and_not_none() -> None:
    assert not ABSENT
    assert ABSENT is not None


def test_rotation_helpers() -> None:
    transforms = [("rotate", 45), ("resize", "50%"), ("rotate", "45"), ("rotate", 300)]
    assert accumulated_rotation(transforms) == pytest.approx(30.0)
    assert requested_rotation(transforms) == pytest.approx(390.0)
    assert requested_rotation([("resize", "50%")]) is None


def test_latest() -> None:
    transforms = [("background", "red"), ("background", "blue")]
    assert latest(transforms, "background") == "blue"
    assert latest(transforms, "rotate", 0) == 0
