"""Tests for the package sources themselves."""

import warnings
from pathlib import Path

import pytest

import tmx_loader
from tmx_loader import tile_type

SOURCES = sorted(Path(tmx_loader.__file__).parent.glob("*.py"))


class TestSources:

    @pytest.mark.parametrize("path", SOURCES, ids=lambda path: path.name)
    def test_compiles_with_warnings_as_errors(self, path):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(path.read_text(encoding="utf-8"), str(path), "exec")

    def test_diagram_backslashes_survive_in_docstring(self):
        lines = tile_type.__doc__.splitlines()
        assert any(line.rstrip().endswith("/\\") for line in lines)
        assert any("\\ " in line for line in lines)
