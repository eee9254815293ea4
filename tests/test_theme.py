"""Tests for sample theme export and write-avoiding output."""

from __future__ import annotations

import os

import pytest

from stylesmith.config import THEME_HEADER
from stylesmith.errors import FileNotOpenedError
from stylesmith.io.files import validate_output_path, write_atomic, write_if_changed
from stylesmith.palette.layout import build_palette_layout
from stylesmith.palette.theme import render_sample_theme, write_sample_theme


@pytest.fixture
def layout(palette_module):
    return build_palette_layout(palette_module)


class TestRenderTheme:
    """Tests for theme line formats."""

    def test_header_first(self, layout):
        assert render_sample_theme(layout).startswith(THEME_HEADER)

    def test_lines(self, layout):
        body = render_sample_theme(layout)[len(THEME_HEADER):]
        assert body.splitlines() == [
            "windowBg: #ffffff;",
            "windowFg: #000000;",
            "windowBgOver: #f1f1f1; // windowBg;",
            "activeButtonBg: windowFg;",
            "earlyColor: #0a141e; // lateColor;",
            "lateColor: #c8643280;",
        ]


class TestWriteTheme:
    """Tests for write avoidance."""

    def test_first_write(self, layout, tmp_path):
        path = tmp_path / "sample.theme"
        assert write_sample_theme(layout, path)
        assert path.read_text(encoding="utf-8") == render_sample_theme(layout)

    def test_unchanged_not_rewritten(self, layout, tmp_path):
        """Identical content leaves the file and its mtime untouched."""
        path = tmp_path / "sample.theme"
        write_sample_theme(layout, path)
        os.utime(path, (1_000_000_000, 1_000_000_000))

        assert not write_sample_theme(layout, path)
        assert os.stat(path).st_mtime == 1_000_000_000

    def test_changed_rewritten(self, layout, tmp_path):
        path = tmp_path / "sample.theme"
        path.write_text("stale", encoding="utf-8")
        assert write_sample_theme(layout, path)
        assert path.read_text(encoding="utf-8") != "stale"


class TestOutputFiles:
    """Tests for atomic output helpers."""

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotOpenedError):
            validate_output_path(tmp_path / "missing" / "out.h")

    def test_directory_target(self, tmp_path):
        (tmp_path / "out.cpp").mkdir()
        with pytest.raises(FileNotOpenedError):
            validate_output_path(tmp_path / "out.cpp")

    def test_atomic_write_leaves_no_temp_files(self, tmp_path):
        target = tmp_path / "out.h"
        write_atomic(target, b"data")
        assert target.read_bytes() == b"data"
        assert [p.name for p in tmp_path.iterdir()] == ["out.h"]

    def test_write_if_changed(self, tmp_path):
        target = tmp_path / "out.h"
        assert write_if_changed(target, b"one")
        assert not write_if_changed(target, b"one")
        assert write_if_changed(target, b"two")
        assert target.read_bytes() == b"two"
