"""End-to-end tests for header/source generation and the generator runner."""

from __future__ import annotations

import logging

import pytest

from stylesmith.codegen.generator import Generator, module_base_name
from stylesmith.core.types import GeneratorConfig
from stylesmith.errors import AssetNotFoundError, FileNotOpenedError, ModelError, NonColorInPaletteError
from stylesmith.palette.layout import build_palette_layout
from stylesmith.pipeline.runner import run_generator


@pytest.fixture
def style_files(style_module, out_dir, fake_icon_data):
    generator = Generator(style_module, out_dir / "style_basic", icon_data=fake_icon_data)
    header, source = generator.build()
    return header.content(), source.content()


@pytest.fixture
def palette_files(palette_module, out_dir):
    generator = Generator(palette_module, out_dir / "palette")
    header, source = generator.build()
    return header.content(), source.content()


class TestBaseName:
    """Tests for output naming."""

    def test_style(self, style_module):
        assert module_base_name(style_module) == "style_basic"

    def test_palette(self, palette_module):
        assert module_base_name(palette_module) == "palette"


class TestStyleHeader:
    """Tests for the generated style header."""

    def test_banner(self, style_files):
        header, _ = style_files
        assert header.startswith("/*\nWARNING! All changes made in this file will be lost!\n")
        assert "Created from 'basic.style' by 'StyleSmith'" in header
        assert "#pragma once\n" in header
        assert '#include "ui/style/style_core.h"' in header

    def test_init_declaration(self, style_files):
        header, _ = style_files
        assert "void init_style_basic();" in header

    def test_struct_definition(self, style_files):
        """Struct clone() clones color fields and copies the rest."""
        header, _ = style_files
        assert (
            "struct Button {\n"
            "\tButton clone() const {\n"
            "\t\treturn { width, fg.clone() };\n"
            "\t}\n"
            "\n"
            "\tint width;\n"
            "\tstyle::color fg;\n"
            "};\n"
        ) in header

    def test_extern_references(self, style_files):
        header, _ = style_files
        assert "extern const int &spacing;\n" in header
        assert "extern const style::Button &button;\n" in header
        assert "extern const style::icon &sendIcon;\n" in header

    def test_namespaces_closed(self, style_files):
        header, _ = style_files
        assert header.count("namespace style {") == 1
        assert "} // namespace style\n" in header
        assert "} // namespace st\n" in header


class TestStyleSource:
    """Tests for the generated style source."""

    def test_storage_defaults(self, style_files):
        _, source = style_files
        assert "int _spacing = 0;\n" in source
        assert "style::Button _button = { 0, { Qt::Uninitialized } };\n" in source
        assert "const int &spacing(_spacing);\n" in source

    def test_px_values(self, style_files):
        """One variable per distinct magnitude, adjusted per scale."""
        _, source = style_files
        assert "int px5 = 5;\nint pxm3 = -3;\nint px13 = 13;\nint px0 = 0;\n" in source
        assert source.count("int px5 = 5;") == 1
        assert "\tif (cRetina()) return;\n" in source
        assert "\tcase dbisOneAndQuarter:\n\t\tpx5 = 6;\n\t\tpx13 = 16;\n\tbreak;\n" in source
        assert "\tcase dbisOneAndHalf:\n\t\tpx5 = 7;\n\t\tpxm3 = -4;\n\t\tpx13 = 19;\n\tbreak;\n" in source
        assert "\t\tpx0 =" not in source

    def test_font_families(self, style_files):
        _, source = style_files
        assert "int font1index;\n" in source
        assert 'font1index = style::internal::registerFontFamily("Open Sans");' in source

    def test_icon_masks(self, style_files):
        _, source = style_files
        assert "const uchar iconMask1Data[] = { 0x69, 0x63," in source
        assert "IconMask iconMask1(iconMask1Data);\n" in source

    def test_init_body(self, style_files):
        _, source = style_files
        assert "void init_style_basic() {\n\tif (inited) return;\n\tinited = true;\n\n" in source
        assert "\tinitPxValues();\n\tinitFontFamilies();\n" in source
        assert "\t_spacing = px5;\n" in source
        assert "\t_textFgCopy = st::textFg.clone();\n" in source
        assert '\t_title = qsl("Hi");\n' in source
        assert "\t_ratio = 1.5;\n" in source
        assert "\t_buttonFont = { px13, 1, font1index };\n" in source
        assert "\t_button = { px5, st::textFg.clone() };\n" in source
        assert "\t_sendIcon = { MonoIcon{ &iconMask1, st::textFg.clone(), { px0, px0 } } };\n" in source

    def test_registrator(self, style_files):
        _, source = style_files
        assert "class Module_style_basic : public style::internal::ModuleBase {" in source
        assert "style::internal::init_style_basic();" in source

    def test_includes_initialized_first(self, style_module, out_dir, fake_icon_data):
        """Included modules with variables are initialized before our own."""
        from pathlib import Path
        from stylesmith.core.types import Module, Type, TypeTag, Value, Variable

        base = Module(filepath=Path("base.style"))
        base.variables.append(Variable(("unit",), Value(Type(TypeTag.INT), 1)))
        empty = Module(filepath=Path("empty.style"))
        style_module.includes.extend([base, empty])

        _, source = Generator(style_module, out_dir / "style_basic", icon_data=fake_icon_data).build()
        text = source.content()
        assert '#include "style_base.h"\n#include "style_empty.h"\n' in text
        assert "\tinit_style_base();\n" in text
        assert "init_style_empty" not in text


class TestPaletteGeneration:
    """Tests for the generated palette class and runtime."""

    def test_class_accessors(self, palette_files):
        header, _ = palette_files
        assert "class palette {" in header
        assert "\tinline const color &windowBg() const { return _colors[0]; };\n" in header
        assert "\tinline const color &lateColor() const { return _colors[5]; };\n" in header
        assert "Status _status[6] = { Status::Initial };" in header
        assert "namespace main_palette {" in header

    def test_assignment_marks_loaded(self, palette_files):
        header, _ = palette_files
        assert "\t\t\t\t_status[i] = Status::Loaded;\n" in header

    def test_finalize_compute_lines(self, palette_files):
        _, source = palette_files
        assert "\tcompute(0, -1, {255, 255, 255, 255});\n" in source
        assert "\tcompute(2, 0, {241, 241, 241, 255});\n" in source
        assert "\tcompute(3, 1, {0, 0, 0, 255});\n" in source
        assert "\tcompute(4, -1, {10, 20, 30, 255});\n" in source

    def test_checksum(self, palette_module, palette_files):
        _, source = palette_files
        checksum = build_palette_layout(palette_module).checksum
        assert f"int32 palette::Checksum() {{\n\treturn {checksum};\n}}\n" in source

    def test_dispatch_and_persistence(self, palette_files):
        _, source = palette_files
        assert "int getPaletteIndex(QLatin1String name) {" in source
        assert "auto result = QByteArray(24, Qt::Uninitialized);" in source
        assert "if (cache.size() != 24) return false;" in source

    def test_instance_and_refs(self, palette_files):
        _, source = palette_files
        assert "style::palette _palette;\n" in source
        assert "const style::color &windowBg(_palette.windowBg());\n" in source
        assert "\t_palette.finalize();\n" in source
        assert "initPxValues" not in source

    def test_non_color_rejected_before_output(self, palette_module, out_dir):
        from stylesmith.core.types import Type, TypeTag, Value, Variable

        palette_module.variables.append(Variable(("gap",), Value(Type(TypeTag.PIXELS), 4)))
        generator = Generator(palette_module, out_dir / "palette")
        with pytest.raises(NonColorInPaletteError):
            generator.commit()
        assert list(out_dir.iterdir()) == []


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

STYLE_DOC = {
    "structs": [{"name": "Button", "fields": [
        {"name": "width", "type": "pixels"},
        {"name": "icon", "type": "icon"},
    ]}],
    "variables": [
        {"name": "fg", "type": "color", "value": "#102030"},
        {"name": "button", "type": "Button", "value": {
            "width": 12,
            "icon": [{"file": "icons/send", "color": {"alias": "fg"}}],
        }},
    ],
}

PALETTE_DOC = {"variables": [
    {"name": "windowBg", "type": "color", "value": "#ffffff"},
    {"name": "windowFg", "type": "color", "value": "#000000"},
    {"name": "windowBgOver", "type": "color", "value": {"color": "#f1f1f1", "fallback": "windowBg"}},
]}


class TestRunner:
    """Tests for the staged generator runner."""

    def test_style_run(self, icon_pair, write_model, out_dir):
        path = write_model("basic.style.json", STYLE_DOC)
        result = run_generator(GeneratorConfig(model_path=path, output_dir=out_dir))

        assert result.header_path == out_dir / "style_basic.h"
        assert result.source_path == out_dir / "style_basic.cpp"
        assert result.written == [result.header_path, result.source_path]
        assert result.checksum is None
        assert result.diagnostics["icon_masks"] == 1
        assert "0x89, 0x50, 0x4e, 0x47" in result.source_path.read_text(encoding="utf-8")

    def test_rerun_writes_nothing(self, icon_pair, write_model, out_dir):
        path = write_model("basic.style.json", STYLE_DOC)
        config = GeneratorConfig(model_path=path, output_dir=out_dir)
        run_generator(config)
        assert run_generator(config).written == []

    def test_palette_run_with_theme(self, write_model, out_dir, tmp_path):
        path = write_model("colors.palette.json", PALETTE_DOC)
        theme = tmp_path / "sample.theme"
        result = run_generator(GeneratorConfig(model_path=path, output_dir=out_dir, theme_path=theme))

        assert result.header_path == out_dir / "palette.h"
        assert len(result.written) == 3
        assert result.theme_path == theme.resolve()
        assert "windowBgOver: #f1f1f1; // windowBg;" in theme.read_text(encoding="utf-8")
        assert result.checksum is not None
        assert result.diagnostics["palette_colors"] == 3

    def test_force_style_kind(self, write_model, out_dir):
        """A palette file compiled as a style module gets a style name."""
        doc = {"variables": PALETTE_DOC["variables"] + [{"name": "gap", "type": "pixels", "value": 2}]}
        path = write_model("colors.palette.json", doc)
        result = run_generator(GeneratorConfig(model_path=path, output_dir=out_dir, is_palette=False))
        assert result.header_path == out_dir / "style_colors.h"

    def test_progress_stages(self, write_model, out_dir):
        path = write_model("colors.palette.json", PALETTE_DOC)
        stages = []
        run_generator(
            GeneratorConfig(model_path=path, output_dir=out_dir),
            progress_callback=lambda stage, fraction, message: stages.append((stage, fraction)),
        )
        assert [s for s, f in stages if f == 1.0] == ["load", "collect", "generate", "write"]

    def test_failure_writes_nothing(self, write_model, out_dir, caplog):
        """A failing module leaves no artifacts and is reported with its code."""
        doc = {"variables": PALETTE_DOC["variables"] + [{"name": "gap", "type": "pixels", "value": 2}]}
        path = write_model("colors.palette.json", doc)
        with caplog.at_level(logging.ERROR, logger="stylesmith.diagnostics"):
            with pytest.raises(NonColorInPaletteError):
                run_generator(GeneratorConfig(model_path=path, output_dir=out_dir))
        assert list(out_dir.iterdir()) == []
        assert "gap: error 854:" in caplog.text

    def test_failure_keeps_previous_outputs(self, icon_pair, write_model, out_dir):
        """A later failing run does not touch earlier outputs."""
        path = write_model("basic.style.json", STYLE_DOC)
        result = run_generator(GeneratorConfig(model_path=path, output_dir=out_dir))
        before = result.source_path.read_bytes()

        (icon_pair[0] / "icons" / "send@2x.png").unlink()
        with pytest.raises(AssetNotFoundError):
            run_generator(GeneratorConfig(model_path=path, output_dir=out_dir))
        assert result.source_path.read_bytes() == before

    def test_unwritable_source_writes_nothing(self, write_model, out_dir):
        """Both outputs are checked before the header is written."""
        path = write_model("colors.palette.json", PALETTE_DOC)
        (out_dir / "palette.cpp").mkdir()
        with pytest.raises(FileNotOpenedError):
            run_generator(GeneratorConfig(model_path=path, output_dir=out_dir))
        assert not (out_dir / "palette.h").exists()

    def test_unwritable_theme_writes_nothing(self, write_model, out_dir, tmp_path):
        path = write_model("colors.palette.json", PALETTE_DOC)
        theme = tmp_path / "sample.theme"
        theme.mkdir()
        with pytest.raises(FileNotOpenedError):
            run_generator(GeneratorConfig(model_path=path, output_dir=out_dir, theme_path=theme))
        assert list(out_dir.iterdir()) == []

    def test_model_path_required(self, out_dir):
        with pytest.raises(ModelError):
            run_generator(GeneratorConfig(output_dir=out_dir))
