"""Shared fixtures for StyleSmith tests."""

from __future__ import annotations

import json

import imageio.v3 as iio
import numpy as np
import pytest
from pathlib import Path

from stylesmith.core.types import (
    Color,
    Font,
    Icon,
    IconAsset,
    Module,
    MonoIcon,
    Point,
    Struct,
    StructField,
    Type,
    TypeTag,
    Value,
    Variable,
)


def _var(name, tag, data):
    return Variable((name,), Value(Type(tag), data))


def _color(name, rgba, fallback=""):
    return _var(name, TypeTag.COLOR, Color(*rgba, fallback=fallback))


@pytest.fixture
def palette_module():
    """Palette with an earlier fallback, an alias and a forward fallback.

    Slots:
        0 windowBg        #ffffff
        1 windowFg        #000000
        2 windowBgOver    #f1f1f1, follows windowBg (declared earlier)
        3 activeButtonBg  alias of windowFg
        4 earlyColor      #0a141e, follows lateColor (declared later)
        5 lateColor       #c8643280
    """
    module = Module(filepath=Path("colors.palette"))
    window_fg = _color("windowFg", (0, 0, 0, 255))
    module.variables.extend([
        _color("windowBg", (255, 255, 255, 255)),
        window_fg,
        _color("windowBgOver", (241, 241, 241, 255), fallback="windowBg"),
        Variable(("activeButtonBg",), Value.alias(window_fg)),
        _color("earlyColor", (10, 20, 30, 255), fallback="lateColor"),
        _color("lateColor", (200, 100, 50, 128)),
    ])
    return module


@pytest.fixture
def style_module():
    """Style module covering every emitted value kind.

    Pixel magnitudes in first-discovery order: 5, -3, 13, 0.
    """
    module = Module(filepath=Path("basic.style"))
    button = Struct(
        name=("Button",),
        fields=(
            StructField(("width",), Type(TypeTag.PIXELS)),
            StructField(("fg",), Type(TypeTag.COLOR)),
        ),
    )
    module.structs.append(button)

    text_fg = _color("textFg", (10, 20, 30, 255))
    module.variables.extend([
        _var("spacing", TypeTag.PIXELS, 5),
        _var("negative", TypeTag.PIXELS, -3),
        text_fg,
        Variable(("textFgCopy",), Value.alias(text_fg)),
        _var("title", TypeTag.STRING, "Hi"),
        _var("ratio", TypeTag.DOUBLE, 1.5),
        _var("count", TypeTag.INT, 7),
        _var("buttonFont", TypeTag.FONT, Font(size=13, flags=1, family="Open Sans")),
        Variable(("button",), Value(
            Type(TypeTag.STRUCT, ("Button",)),
            (
                Variable(("width",), Value(Type(TypeTag.PIXELS), 5)),
                Variable(("fg",), Value.alias(text_fg)),
            ),
        )),
        _var("sendIcon", TypeTag.ICON, Icon((
            MonoIcon(
                asset=IconAsset("icons/send"),
                color=Value.alias(text_fg),
                offset=Value(Type(TypeTag.POINT), Point(0, 0)),
            ),
        ))),
    ])
    return module


@pytest.fixture
def fake_icon_data():
    """Icon blob provider that never touches the filesystem."""
    def provide(asset, asset_root=None):
        return asset.key.encode("utf-8")
    return provide


@pytest.fixture
def icon_pair(tmp_path):
    """Write icons/send.png (2x2) and icons/send@2x.png (4x4), RGBA.

    Returns (asset_root, base_path_relative, image100x, image200x).
    """
    icons = tmp_path / "icons"
    icons.mkdir()

    rng = np.random.default_rng(7)
    image100x = rng.integers(0, 256, size=(2, 2, 4), dtype=np.uint8)
    image200x = rng.integers(0, 256, size=(4, 4, 4), dtype=np.uint8)
    image100x[:, :, 3] = 255
    image200x[:, :, 3] = 255

    iio.imwrite(icons / "send.png", image100x)
    iio.imwrite(icons / "send@2x.png", image200x)
    return tmp_path, "icons/send", image100x, image200x


@pytest.fixture
def write_model(tmp_path):
    """Write a JSON model document and return its path."""
    def write(name, document):
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path
    return write


@pytest.fixture
def out_dir(tmp_path):
    """Empty output directory for generated files."""
    d = tmp_path / "out"
    d.mkdir()
    return d
