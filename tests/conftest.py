from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    path = tmp_path / "source.png"
    Image.new("RGBA", (80, 60), (255, 0, 0, 255)).save(path)
    return path


@pytest.fixture
def stub_convert(tmp_path: Path) -> Callable[[str], str]:
    """Write an executable /bin/sh script standing in for ImageMagick convert."""
    if os.name == "nt":
        pytest.skip("stub convert scripts need a POSIX shell")

    def make(body: str, name: str = "convert") -> str:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return make
