"""C++ header/source generator for one style module.

Style modules get typed ``st::`` accessors backed by storage that
``init_<module>()`` fills. Palette modules get a ``style::palette`` color
table with persistence, checksum and a compiled name dispatch.

All text is built in memory; nothing is written until ``commit``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from string import Template
from typing import Callable, Optional

from stylesmith.codegen.cpp_file import CppFile
from stylesmith.codegen.emitter import (
    CLONED_TAGS,
    ExpressionEmitter,
    font_family_name,
    icon_mask_name,
)
from stylesmith.codegen.literals import (
    bytes_to_array_literal,
    encode_string_literal,
    px_value_name,
)
from stylesmith.codegen.resources import collect_resources
from stylesmith.codegen.trie import emit_dispatch_function
from stylesmith.config import (
    PALETTE_BYTES_PER_SLOT,
    PALETTE_MODULE_NAME,
    STYLE_CORE_INCLUDE,
    STYLE_MODULE_PREFIX,
)
from stylesmith.core.scale import scaled_variants
from stylesmith.core.types import Module, TypeTag
from stylesmith.icons.atlas import icon_mask_data
from stylesmith.palette.layout import PaletteLayout, build_palette_layout

logger = logging.getLogger(__name__)

IconDataProvider = Callable[..., bytes]


def module_base_name(module: Module) -> str:
    """``palette`` for palette modules, else ``style_<file base name>``."""
    if module.is_palette:
        return PALETTE_MODULE_NAME
    return STYLE_MODULE_PREFIX + module.filepath.name.split(".", 1)[0]


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

_PALETTE_CLASS_HEAD = """\
class palette {
public:
	palette() = default;
	palette(const palette &other) = delete;

	QByteArray save() const;
	bool load(const QByteArray &cache);
	bool setColor(QLatin1String name, uchar r, uchar g, uchar b, uchar a);
	bool setColor(QLatin1String name, QLatin1String from);

	// Created not inited, should be finalized before usage.
	void finalize();

"""

_PALETTE_CLASS_TAIL = Template("""\

	palette &operator=(const palette &other) {
		auto wasReady = _ready;
		for (int i = 0; i != $count; ++i) {
			if (other._status[i] == Status::Loaded) {
				if (_status[i] == Status::Initial) {
					new (data(i)) internal::ColorData(*other.data(i));
				} else {
					*data(i) = *other.data(i);
				}
				_status[i] = Status::Loaded;
			} else if (_status[i] != Status::Initial) {
				data(i)->~ColorData();
				_status[i] = Status::Initial;
				_ready = false;
			}
		}
		if (wasReady && !_ready) {
			finalize();
		}
		return *this;
	}

	static int32 Checksum();

	~palette() {
		for (int i = 0; i != $count; ++i) {
			if (_status[i] != Status::Initial) {
				data(i)->~ColorData();
			}
		}
	}

private:
	struct TempColorData { uchar r, g, b, a; };
	void compute(int index, int fallbackIndex, TempColorData value) {
		if (_status[index] == Status::Initial) {
			if (fallbackIndex >= 0 && _status[fallbackIndex] != Status::Initial) {
				_status[index] = Status::Loaded;
				new (data(index)) internal::ColorData(*data(fallbackIndex));
			} else {
				_status[index] = Status::Created;
				new (data(index)) internal::ColorData(value.r, value.g, value.b, value.a);
			}
		}
	}

	internal::ColorData *data(int index) {
		return reinterpret_cast<internal::ColorData*>(_data) + index;
	}

	const internal::ColorData *data(int index) const {
		return reinterpret_cast<const internal::ColorData*>(_data) + index;
	}

	void setData(int index, const internal::ColorData &value) {
		if (_status[index] == Status::Initial) {
			new (data(index)) internal::ColorData(value);
		} else {
			*data(index) = value;
		}
		_status[index] = Status::Loaded;
	}

	enum class Status {
		Initial,
		Created,
		Loaded,
	};

	alignas(alignof(internal::ColorData)) char _data[sizeof(internal::ColorData) * $count];

	color _colors[$count] = {
$colors	};
	Status _status[$count] = { Status::Initial };
	bool _ready = false;

};

namespace main_palette {

QByteArray save();
bool load(const QByteArray &cache);
bool setColor(QLatin1String name, uchar r, uchar g, uchar b, uchar a);
bool setColor(QLatin1String name, QLatin1String from);
void apply(const palette &other);

} // namespace main_palette

""")

_MODULE_REGISTRATOR = Template("""\
bool inited = false;

class Module_$name : public style::internal::ModuleBase {
public:
	Module_$name() { style::internal::registerModule(this); }
	~Module_$name() { style::internal::unregisterModule(this); }

	void start() override {
		style::internal::init_$name();
	}
	void stop() override {
	}
};
Module_$name registrator;
""")

_PALETTE_RUNTIME = Template("""\
QByteArray palette::save() const {
	if (!_ready) const_cast<palette*>(this)->finalize();

	auto result = QByteArray($size, Qt::Uninitialized);
	for (auto i = 0, index = 0; i != $count; ++i) {
		result[index++] = static_cast<uchar>(data(i)->c.red());
		result[index++] = static_cast<uchar>(data(i)->c.green());
		result[index++] = static_cast<uchar>(data(i)->c.blue());
		result[index++] = static_cast<uchar>(data(i)->c.alpha());
	}
	return result;
}

bool palette::load(const QByteArray &cache) {
	if (cache.size() != $size) return false;

	auto p = reinterpret_cast<const uchar*>(cache.constData());
	for (auto i = 0; i != $count; ++i) {
		setData(i, { p[i * 4 + 0], p[i * 4 + 1], p[i * 4 + 2], p[i * 4 + 3] });
	}
	return true;
}

bool palette::setColor(QLatin1String name, uchar r, uchar g, uchar b, uchar a) {
	auto index = getPaletteIndex(name);
	if (index >= 0) {
		setData(index, { r, g, b, a });
		return true;
	}
	return false;
}

bool palette::setColor(QLatin1String name, QLatin1String from) {
	auto nameIndex = getPaletteIndex(name);
	auto fromIndex = getPaletteIndex(from);
	if (nameIndex >= 0 && fromIndex >= 0 && _status[fromIndex] == Status::Loaded) {
		setData(nameIndex, *data(fromIndex));
		return true;
	}
	return false;
}

namespace main_palette {

QByteArray save() {
	return _palette.save();
}

bool load(const QByteArray &cache) {
	if (_palette.load(cache)) {
		style::internal::resetIcons();
		return true;
	}
	return false;
}

bool setColor(QLatin1String name, uchar r, uchar g, uchar b, uchar a) {
	return _palette.setColor(name, r, g, b, a);
}

bool setColor(QLatin1String name, QLatin1String from) {
	return _palette.setColor(name, from);
}

void apply(const palette &other) {
	_palette = other;
	style::internal::resetIcons();
}

} // namespace main_palette

""")


class Generator:
    """Generates ``<base>.h`` and ``<base>.cpp`` for one module.

    Args:
        module: Parsed module.
        base_path: Output path without extension.
        project_name: Name recorded in the generated banner.
        is_palette: Force palette/style mode; None derives it from the file.
        asset_root: Base directory for relative icon paths.
        icon_data: Blob provider, ``icon_mask_data`` by default.
    """

    def __init__(
        self,
        module: Module,
        base_path: Path,
        project_name: str = "StyleSmith",
        is_palette: Optional[bool] = None,
        asset_root: Optional[Path] = None,
        icon_data: IconDataProvider = icon_mask_data,
    ):
        self.module = module
        self.base_path = Path(base_path)
        self.base_name = self.base_path.name
        self.project_name = project_name
        self.is_palette = module.is_palette if is_palette is None else is_palette
        self.asset_root = asset_root
        self.icon_data = icon_data

        self.tables = collect_resources(module)
        self.emitter = ExpressionEmitter(module, self.tables)
        self._layout: Optional[PaletteLayout] = None

    @property
    def palette_layout(self) -> PaletteLayout:
        if self._layout is None:
            self._layout = build_palette_layout(self.module, self.emitter)
        return self._layout

    def _new_file(self, suffix: str) -> CppFile:
        return CppFile(
            self.base_path.with_name(self.base_name + suffix),
            self.module.filepath.name,
            self.project_name,
        )

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def build_header(self) -> CppFile:
        header = self._new_file(".h")
        header.include(STYLE_CORE_INCLUDE).newline()
        self._write_header_style_namespace(header)
        self._write_refs_declarations(header)
        return header

    def _write_header_style_namespace(self, header: CppFile) -> None:
        if not self.module.has_structs() and not self.module.has_variables():
            return
        header.push_namespace("style")

        if self.module.has_variables():
            header.push_namespace("internal").newline()
            header.stream(f"void init_{self.base_name}();\n\n")
            header.pop_namespace()

        wrote_forward = self._write_structs_forward_declarations(header)
        if self.module.has_structs():
            if not wrote_forward:
                header.newline()
            self._write_structs_definitions(header)
        elif self.is_palette:
            if not wrote_forward:
                header.newline()
            self._write_palette_definition(header)

        header.pop_namespace().newline()

    def _write_structs_forward_declarations(self, header: CppFile) -> bool:
        external: list[str] = []
        for variable in self.module.enum_variables():
            type_ = variable.value.type
            if type_.tag != TypeTag.STRUCT:
                continue
            if self.module.find_struct_in_module(type_.name) is None:
                if type_.name[-1] not in external:
                    external.append(type_.name[-1])
        if not external:
            return False

        header.newline()
        for name in external:
            header.stream(f"struct {name};\n")
        header.newline()
        return True

    def _write_structs_definitions(self, header: CppFile) -> None:
        for struct in self.module.enum_structs():
            name = struct.name[-1]
            clones = []
            for field in struct.fields:
                clone = field.name[-1]
                if field.type.tag in CLONED_TAGS:
                    clone += ".clone()"
                clones.append(clone)
            header.stream(
                f"struct {name} {{\n"
                f"\t{name} clone() const {{\n"
                f"\t\treturn {{ {', '.join(clones)} }};\n"
                f"\t}}\n"
            )
            if clones:
                header.newline()
            for field in struct.fields:
                header.stream(f"\t{self.emitter.type_to_string(field.type)} {field.name[-1]};\n")
            header.stream("};\n\n")

    def _write_palette_definition(self, header: CppFile) -> None:
        layout = self.palette_layout
        header.stream(_PALETTE_CLASS_HEAD)
        for entry in layout.entries:
            header.stream(
                f"\tinline const color &{entry.name}() const "
                f"{{ return _colors[{entry.index}]; }};\n"
            )
        colors = "".join(f"\t\tdata({i}),\n" for i in range(layout.count))
        header.stream(_PALETTE_CLASS_TAIL.substitute(count=layout.count, colors=colors))

    def _write_refs_declarations(self, header: CppFile) -> None:
        if not self.module.has_variables():
            return
        header.push_namespace("st")
        for variable in self.module.enum_variables():
            type_name = self.emitter.type_to_string(variable.value.type)
            header.stream(f"extern const {type_name} &{variable.short_name};\n")
        header.pop_namespace()

    # ------------------------------------------------------------------
    # Source
    # ------------------------------------------------------------------

    def build_source(self) -> CppFile:
        source = self._new_file(".cpp")
        source.include(self.base_name + ".h")
        for module in self.module.enum_includes():
            source.include(module_base_name(module) + ".h")
        source.newline()

        if not self.module.has_variables():
            return source

        source.push_namespace().newline()
        source.stream(_MODULE_REGISTRATOR.substitute(name=self.base_name))
        if self.is_palette:
            source.newline()
            source.stream("style::palette _palette;\n")
        else:
            self._write_variable_definitions(source)
        source.newline().pop_namespace()

        source.newline().push_namespace("st")
        self._write_refs_definition(source)
        source.pop_namespace().newline().push_namespace("style")

        if self.is_palette:
            self._write_palette_runtime(source)

        source.push_namespace("internal").newline()
        self._write_variable_init(source)
        source.pop_namespace()
        source.pop_namespace()
        return source

    def _write_variable_definitions(self, source: CppFile) -> None:
        source.newline()
        for variable in self.module.enum_variables():
            type_ = variable.value.type
            source.stream(
                f"{self.emitter.type_to_string(type_)} _{variable.short_name} = "
                f"{self.emitter.type_to_default_value(type_)};\n"
            )

    def _write_refs_definition(self, source: CppFile) -> None:
        for variable in self.module.enum_variables():
            name = variable.short_name
            type_name = self.emitter.type_to_string(variable.value.type)
            target = f"_palette.{name}()" if self.is_palette else f"_{name}"
            source.stream(f"const {type_name} &{name}({target});\n")

    def _write_palette_runtime(self, source: CppFile) -> None:
        layout = self.palette_layout
        source.newline()
        source.stream("void palette::finalize() {\n\tif (_ready) return;\n\t_ready = true;\n\n")
        for entry in layout.entries:
            r, g, b, a = entry.default
            source.stream(f"\tcompute({entry.index}, {entry.fallback_index}, {{{r}, {g}, {b}, {a}}});\n")
        source.stream(
            "}\n"
            "\n"
            "int32 palette::Checksum() {\n"
            f"\treturn {layout.checksum};\n"
            "}\n"
        )

        source.newline().push_namespace().newline()
        source.stream(emit_dispatch_function(layout.trie))
        source.newline().pop_namespace().newline()

        source.stream(_PALETTE_RUNTIME.substitute(
            count=layout.count,
            size=layout.count * PALETTE_BYTES_PER_SLOT,
        ))

    def _write_variable_init(self, source: CppFile) -> None:
        tables = self.tables
        if not tables.is_empty():
            source.push_namespace()
            self._write_px_values_init(source)
            self._write_font_families_init(source)
            self._write_icon_values(source)
            source.pop_namespace().newline()

        source.stream(f"void init_{self.base_name}() {{\n\tif (inited) return;\n\tinited = true;\n\n")

        included = [m for m in self.module.enum_includes() if m.has_variables()]
        for module in included:
            source.stream(f"\tinit_{module_base_name(module)}();\n")
        if included:
            source.newline()

        if tables.px_values or tables.font_families:
            if tables.px_values:
                source.stream("\tinitPxValues();\n")
            if tables.font_families:
                source.stream("\tinitFontFamilies();\n")
            source.newline()

        if self.is_palette:
            source.stream("\t_palette.finalize();\n")
        else:
            for variable in self.module.enum_variables():
                source.stream(f"\t_{variable.short_name} = {self.emitter.emit(variable.value)};\n")
        source.stream("}\n\n")

    def _write_px_values_init(self, source: CppFile) -> None:
        px_values = self.tables.px_values
        if not px_values:
            return
        for value in px_values:
            source.stream(f"int {px_value_name(value)} = {value};\n")

        source.stream("void initPxValues() {\n\tif (cRetina()) return;\n\n\tswitch (cScale()) {\n")
        per_scale: dict[str, list[str]] = {}
        for value in px_values:
            for scale_name, adjusted in scaled_variants(value):
                lines = per_scale.setdefault(scale_name, [])
                if adjusted != value:
                    lines.append(f"\t\t{px_value_name(value)} = {adjusted};\n")
        for scale_name, lines in per_scale.items():
            source.stream(f"\tcase {scale_name}:\n")
            source.stream("".join(lines))
            source.stream("\tbreak;\n")
        source.stream("\t}\n}\n\n")

    def _write_font_families_init(self, source: CppFile) -> None:
        families = self.tables.font_families
        if not families:
            return
        for index in families.values():
            source.stream(f"int {font_family_name(index)};\n")
        source.stream("void initFontFamilies() {\n")
        for family, index in families.items():
            source.stream(
                f"\t{font_family_name(index)} = style::internal::registerFontFamily("
                f"{encode_string_literal(family)});\n"
            )
        source.stream("}\n\n")

    def _write_icon_values(self, source: CppFile) -> None:
        for asset, index in self.tables.icon_masks.items():
            data = self.icon_data(asset, self.asset_root)
            name = icon_mask_name(index)
            source.stream(f"const uchar {name}Data[] = {bytes_to_array_literal(data)};\n")
            source.stream(f"IconMask {name}({name}Data);\n\n")
            logger.debug("Embedded icon %s as %s (%d bytes)", asset.key, name, len(data))

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def build(self) -> tuple[CppFile, CppFile]:
        """Build header and source in memory; raises on any failure."""
        if self.is_palette:
            # Validate the slot table before any text is produced.
            self.palette_layout
        return self.build_header(), self.build_source()

    def commit(self) -> list[Path]:
        """Build both files and write those whose content changed."""
        files = self.build()
        written = [f.path for f in files if f.commit()]
        for path in written:
            logger.info("Wrote %s", path)
        return written
