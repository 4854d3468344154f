from __future__ import annotations

import pytest

from geometry import (
    GeometryBox,
    format_geometry,
    normalize_geometry,
    parse_geometry,
    rotated_bounding_width,
    rotated_fit_size,
)


@pytest.mark.parametrize(
    "s, expected",
    [
        ("400x300", GeometryBox(400, 300, None)),
        ("50%", GeometryBox(50, None, "%")),
        ("x300", GeometryBox(None, 300, None)),
        ("400", GeometryBox(400, None, None)),
        ("500X500!", GeometryBox(500, 500, "!")),
        ("400 300", GeometryBox(400, 300, None)),
        ("400x300>", GeometryBox(400, 300, ">")),
        ("400x300<", GeometryBox(400, 300, "<")),
        ("10000@", GeometryBox(10000, None, "@")),
        ("640x480^", GeometryBox(640, 480, "^")),
        (" 200x100 ", GeometryBox(200, 100, None)),
    ],
)
def test_parse_geometry(s: str, expected: GeometryBox) -> None:
    assert parse_geometry(s) == expected


@pytest.mark.parametrize("s", ["", "x", "abc", "400x300+10+10", "+10+10", "-5x5", "50%%", None, 400])
def test_parse_geometry_rejects(s: object) -> None:
    assert parse_geometry(s) is None


@pytest.mark.parametrize("s", ["400x300", "50%", "x300", "400", "500X500!", "400 300", "640x480^", "7x8<"])
def test_format_is_stable_under_reparsing(s: str) -> None:
    canonical = format_geometry(parse_geometry(s))
    assert canonical == normalize_geometry(s)
    assert parse_geometry(canonical) == parse_geometry(s)
    assert normalize_geometry(canonical) == canonical


def test_normalize_geometry() -> None:
    assert normalize_geometry("400 300") == "400x300"
    assert normalize_geometry("500X500!") == "500x500!"
    assert normalize_geometry("400x300+1+1") is None


def test_rotated_bounding_width() -> None:
    assert rotated_bounding_width(100, 50, 0) == pytest.approx(100)
    assert rotated_bounding_width(100, 50, 90) == pytest.approx(50)
    assert rotated_bounding_width(100, 50, 180) == pytest.approx(100)
    assert rotated_bounding_width(100, 50, 45) == pytest.approx(150 / 2 ** 0.5)


@pytest.mark.parametrize("rotation", [0, 90, 180, 270, 360, 90.00005, 179.99995, 359.99995])
def test_rotated_fit_size_snaps_right_angles(rotation: float) -> None:
    assert rotated_fit_size(800, 600, 500, rotation) == (500, None)


@pytest.mark.parametrize("rotation", [45, 135, 225, 315, 45.00005, 314.99995])
def test_rotated_fit_size_snaps_diagonals(rotation: float) -> None:
    assert rotated_fit_size(800, 600, 500, rotation) == (None, 500)


def test_rotated_fit_size_fudge_is_configurable() -> None:
    assert rotated_fit_size(800, 600, 500, 90.5) != (500, None)
    assert rotated_fit_size(800, 600, 500, 90.5, fudge=1.0) == (500, None)


@pytest.mark.parametrize("size", [(800, 600), (640, 480), (123, 457), (1920, 1080)])
@pytest.mark.parametrize("rotation", [10, 30, 60, 100, 200.5, 333])
@pytest.mark.parametrize("length", [300, 301, 1000])
def test_rotated_fit_size_is_exact(size: tuple, rotation: float, length: int) -> None:
    w, h = rotated_fit_size(size[0], size[1], length, rotation)
    bbox = rotated_bounding_width(w, h, rotation)
    assert length - 3 < bbox <= length - 1 + 1e-9
    assert w % 2 == length % 2


def test_rotated_fit_size_zero_rectangle() -> None:
    with pytest.raises(ValueError):
        rotated_fit_size(0, 0, 100, 30)
