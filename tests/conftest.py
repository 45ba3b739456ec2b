"""Shared fixtures: documents and images written under tmp_path."""

import pytest
from PIL import Image

from tmx_loader.resolver import FileResolver


@pytest.fixture
def write_file(tmp_path):
    """Write a text file relative to tmp_path, creating parent directories."""
    def write(relative: str, text: str):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return write


@pytest.fixture
def write_png(tmp_path):
    """Write a solid-color RGBA PNG relative to tmp_path."""
    def write(relative: str, width: int, height: int, color=(255, 0, 0, 255)):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGBA", (width, height), color).save(path, "PNG")
        return path
    return write


@pytest.fixture
def resolver(tmp_path):
    """Resolver anchored at tmp_path with a fresh texture cache."""
    return FileResolver(tmp_path)
