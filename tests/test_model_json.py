"""Tests for the JSON module model loader."""

from __future__ import annotations

import pytest

from stylesmith.core.types import Color, Font, IconAsset, Point, TypeTag
from stylesmith.errors import (
    FileNotOpenedError,
    ModelError,
    UnresolvedAliasError,
    UnresolvedStructError,
)
from stylesmith.io.model_json import load_module


def _value(module, name):
    return module.find_variable((name,)).value


class TestScalars:
    """Tests for value decoding."""

    def test_basic_types(self, write_model):
        path = write_model("basic.style.json", {"variables": [
            {"name": "gap", "type": "pixels", "value": 4},
            {"name": "ratio", "type": "double", "value": 2},
            {"name": "label", "type": "string", "value": "Send"},
            {"name": "hand", "type": "cursor", "value": "pointer"},
            {"name": "at", "type": "point", "value": [1, -2]},
        ]})
        module = load_module(path)
        assert [v.short_name for v in module.variables] == ["gap", "ratio", "label", "hand", "at"]
        assert _value(module, "gap").data == 4
        assert _value(module, "ratio").data == 2.0
        assert _value(module, "label").data == "Send"
        assert _value(module, "hand").data == "pointer"
        assert _value(module, "at").data == Point(1, -2)
        assert not module.is_palette

    @pytest.mark.parametrize("raw,expected", [
        ("#abc", Color(170, 187, 204, 255)),
        ("#102030", Color(16, 32, 48, 255)),
        ("#10203040", Color(16, 32, 48, 64)),
        ([1, 2, 3], Color(1, 2, 3, 255)),
        ({"color": "#fff", "fallback": "windowBg"}, Color(255, 255, 255, 255, fallback="windowBg")),
    ])
    def test_colors(self, write_model, raw, expected):
        path = write_model("c.style.json", {"variables": [{"name": "c", "type": "color", "value": raw}]})
        assert _value(load_module(path), "c").data == expected

    @pytest.mark.parametrize("raw", ["#ab", "fff", "#gggggg", [1, 2], [1, 2, 300]])
    def test_bad_colors(self, write_model, raw):
        path = write_model("c.style.json", {"variables": [{"name": "c", "type": "color", "value": raw}]})
        with pytest.raises(ModelError):
            load_module(path)

    def test_font_flags(self, write_model):
        path = write_model("f.style.json", {"variables": [
            {"name": "f", "type": "font", "value": {"size": 13, "flags": ["bold", "italic"], "family": "Open Sans"}},
        ]})
        assert _value(load_module(path), "f").data == Font(size=13, flags=3, family="Open Sans")

    def test_bool_is_not_int(self, write_model):
        path = write_model("b.style.json", {"variables": [{"name": "n", "type": "int", "value": True}]})
        with pytest.raises(ModelError):
            load_module(path)

    def test_palette_detected_by_name(self, write_model):
        path = write_model("colors.palette.json", {"variables": [
            {"name": "windowBg", "type": "color", "value": "#ffffff"},
        ]})
        assert load_module(path).is_palette


class TestIcons:
    """Tests for icon parts."""

    def test_file_and_placeholder_parts(self, write_model):
        path = write_model("i.style.json", {"variables": [
            {"name": "fg", "type": "color", "value": "#000"},
            {"name": "icon", "type": "icon", "value": [
                {"file": "icons/send", "modifiers": ["invert"], "color": {"alias": "fg"}, "offset": [1, 2]},
                {"size": [16, 16]},
            ]},
        ]})
        parts = _value(load_module(path), "icon").data.parts
        assert parts[0].asset == IconAsset("icons/send", ("invert",))
        assert parts[0].color.copy_of == ("fg",)
        assert parts[0].offset.data == Point(1, 2)
        assert parts[1].asset == IconAsset("size://16,16")
        assert parts[1].asset.is_placeholder

    def test_part_without_source(self, write_model):
        path = write_model("i.style.json", {"variables": [
            {"name": "icon", "type": "icon", "value": [{"color": "#000"}]},
        ]})
        with pytest.raises(ModelError):
            load_module(path)


class TestAliases:
    """Tests for alias resolution."""

    def test_alias_carries_type_and_data(self, write_model):
        path = write_model("a.style.json", {"variables": [
            {"name": "windowBg", "type": "color", "value": "#ffffff"},
            {"name": "boxBg", "value": {"alias": "windowBg"}},
        ]})
        value = _value(load_module(path), "boxBg")
        assert value.is_alias
        assert value.copy_of == ("windowBg",)
        assert value.type.tag == TypeTag.COLOR
        assert value.data == Color(255, 255, 255)

    def test_forward_alias_rejected(self, write_model):
        """Aliases may only name variables declared before them."""
        path = write_model("a.style.json", {"variables": [
            {"name": "boxBg", "value": {"alias": "windowBg"}},
            {"name": "windowBg", "type": "color", "value": "#ffffff"},
        ]})
        with pytest.raises(UnresolvedAliasError):
            load_module(path)

    def test_alias_type_mismatch(self, write_model):
        path = write_model("a.style.json", {"variables": [
            {"name": "gap", "type": "pixels", "value": 1},
            {"name": "c", "type": "color", "value": {"alias": "gap"}},
        ]})
        with pytest.raises(ModelError):
            load_module(path)

    def test_alias_into_include(self, write_model):
        base = write_model("base.style.json", {"variables": [
            {"name": "windowBg", "type": "color", "value": "#ffffff"},
        ]})
        path = write_model("main.style.json", {
            "includes": [base.name],
            "variables": [{"name": "boxBg", "value": {"alias": "windowBg"}}],
        })
        module = load_module(path)
        assert len(module.includes) == 1
        assert module.find_variable_in_module(("windowBg",)) is None
        assert _value(module, "boxBg").copy_of == ("windowBg",)


class TestStructs:
    """Tests for struct declarations and values."""

    def test_struct_value(self, write_model):
        path = write_model("s.style.json", {
            "structs": [{"name": "Button", "fields": [
                {"name": "width", "type": "pixels"},
                {"name": "fg", "type": "color"},
            ]}],
            "variables": [
                {"name": "fg", "type": "color", "value": "#123456"},
                {"name": "button", "type": "Button", "value": {"width": 10, "fg": {"alias": "fg"}}},
            ],
        })
        module = load_module(path)
        value = _value(module, "button")
        assert value.type.tag == TypeTag.STRUCT
        assert value.type.name == ("Button",)
        assert [f.short_name for f in value.data] == ["width", "fg"]
        assert value.data[1].value.copy_of == ("fg",)

    def test_unknown_struct(self, write_model):
        path = write_model("s.style.json", {"variables": [
            {"name": "b", "type": "Missing", "value": {}},
        ]})
        with pytest.raises(UnresolvedStructError):
            load_module(path)

    def test_missing_field(self, write_model):
        path = write_model("s.style.json", {
            "structs": [{"name": "Pair", "fields": [{"name": "a", "type": "int"}, {"name": "b", "type": "int"}]}],
            "variables": [{"name": "p", "type": "Pair", "value": {"a": 1}}],
        })
        with pytest.raises(ModelError):
            load_module(path)

    def test_unknown_field(self, write_model):
        path = write_model("s.style.json", {
            "structs": [{"name": "One", "fields": [{"name": "a", "type": "int"}]}],
            "variables": [{"name": "p", "type": "One", "value": {"a": 1, "z": 2}}],
        })
        with pytest.raises(ModelError):
            load_module(path)


class TestDocument:
    """Tests for document-level failures."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotOpenedError):
            load_module(tmp_path / "nope.style.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.style.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ModelError):
            load_module(path)

    def test_duplicate_variable(self, write_model):
        path = write_model("d.style.json", {"variables": [
            {"name": "a", "type": "int", "value": 1},
            {"name": "a", "type": "int", "value": 2},
        ]})
        with pytest.raises(ModelError):
            load_module(path)

    def test_include_cycle(self, write_model):
        write_model("a.style.json", {"includes": ["b.style.json"]})
        path = write_model("b.style.json", {"includes": ["a.style.json"]})
        with pytest.raises(ModelError):
            load_module(path)

    def test_shared_include_loaded_once(self, write_model):
        base = write_model("base.style.json", {"variables": [{"name": "x", "type": "int", "value": 1}]})
        left = write_model("left.style.json", {"includes": [base.name]})
        right = write_model("right.style.json", {"includes": [base.name]})
        path = write_model("main.style.json", {"includes": [left.name, right.name]})
        module = load_module(path)
        assert module.includes[0].includes[0] is module.includes[1].includes[0]
