"""Expression emitter: typed values to C++ initializer expressions.

Emission is a pure function of the value, the module (for struct lookups)
and the resource tables. Any value that needs a shared runtime slot refers
to that slot instead of repeating the literal.
"""

from __future__ import annotations

from stylesmith.codegen.literals import encode_string_literal, px_value_name
from stylesmith.codegen.resources import ResourceTables
from stylesmith.core.types import Module, Type, TypeTag, Value
from stylesmith.errors import (
    UnindexedResourceError,
    UnresolvedStructError,
    UnresolvedTypeError,
)

_TYPE_NAMES = {
    TypeTag.INT: "int",
    TypeTag.DOUBLE: "double",
    TypeTag.PIXELS: "int",
    TypeTag.STRING: "QString",
    TypeTag.COLOR: "style::color",
    TypeTag.POINT: "style::point",
    TypeTag.SIZE: "style::size",
    TypeTag.CURSOR: "style::cursor",
    TypeTag.ALIGN: "style::align",
    TypeTag.MARGINS: "style::margins",
    TypeTag.FONT: "style::font",
    TypeTag.ICON: "style::icon",
}

_DEFAULT_VALUES = {
    TypeTag.INT: "0",
    TypeTag.DOUBLE: "0.",
    TypeTag.PIXELS: "0",
    TypeTag.STRING: "QString()",
    TypeTag.COLOR: "{ Qt::Uninitialized }",
    TypeTag.POINT: "{ 0, 0 }",
    TypeTag.SIZE: "{ 0, 0 }",
    TypeTag.CURSOR: "style::cur_default",
    TypeTag.ALIGN: "style::al_topleft",
    TypeTag.MARGINS: "{ 0, 0, 0, 0 }",
    TypeTag.FONT: "{ Qt::Uninitialized }",
    TypeTag.ICON: "{ Qt::Uninitialized }",
}

# Generated representations of these types own resources and are not
# implicitly copyable, so aliases must clone.
CLONED_TAGS = frozenset({TypeTag.COLOR, TypeTag.STRUCT})


def format_double(value: float) -> str:
    """Shortest ``%g`` rendering, six significant digits."""
    return f"{value:g}"


def font_family_name(index: int) -> str:
    return f"font{index}index"


def icon_mask_name(index: int) -> str:
    return f"iconMask{index}"


class ExpressionEmitter:
    """Turns typed values into C++ expressions for one module."""

    def __init__(self, module: Module, tables: ResourceTables):
        self.module = module
        self.tables = tables

    def type_to_string(self, type_: Type) -> str:
        """C++ accessor type for a value type."""
        if type_.tag == TypeTag.STRUCT:
            if not type_.name:
                raise UnresolvedTypeError("struct type without a name")
            return "style::" + type_.name[-1]
        try:
            return _TYPE_NAMES[type_.tag]
        except KeyError:
            raise UnresolvedTypeError(f"unknown type tag '{type_.tag}'") from None

    def type_to_default_value(self, type_: Type) -> str:
        """Zero/uninitialized initializer used for variable storage."""
        if type_.tag == TypeTag.STRUCT:
            struct = self.module.find_struct(type_.name)
            if struct is None:
                raise UnresolvedStructError(
                    "unknown struct type", subject=".".join(type_.name)
                )
            fields = [self.type_to_default_value(f.type) for f in struct.fields]
            return "{ " + ", ".join(fields) + " }"
        try:
            return _DEFAULT_VALUES[type_.tag]
        except KeyError:
            raise UnresolvedTypeError(f"unknown type tag '{type_.tag}'") from None

    def emit(self, value: Value) -> str:
        """Initializer expression for ``value``.

        Raises:
            UnresolvedTypeError: The type has no emission rule.
            UnresolvedStructError: Struct fields are unresolved.
            UnindexedResourceError: A font family or icon asset is missing
                from the resource tables.
        """
        if value.is_alias:
            result = "st::" + value.copy_of[-1]
            if value.type.tag in CLONED_TAGS:
                result += ".clone()"
            return result

        tag = value.type.tag
        data = value.data
        if tag == TypeTag.INT:
            return str(int(data))
        if tag == TypeTag.DOUBLE:
            return format_double(data)
        if tag == TypeTag.PIXELS:
            return px_value_name(data)
        if tag == TypeTag.STRING:
            return f"qsl({encode_string_literal(data)})"
        if tag == TypeTag.COLOR:
            return f"{{ {data.red}, {data.green}, {data.blue}, {data.alpha} }}"
        if tag == TypeTag.POINT:
            return f"{{ {px_value_name(data.x)}, {px_value_name(data.y)} }}"
        if tag == TypeTag.SIZE:
            return f"{{ {px_value_name(data.width)}, {px_value_name(data.height)} }}"
        if tag == TypeTag.CURSOR:
            return f"style::cur_{data}"
        if tag == TypeTag.ALIGN:
            return f"style::al_{data}"
        if tag == TypeTag.MARGINS:
            parts = (data.left, data.top, data.right, data.bottom)
            return "{ " + ", ".join(px_value_name(p) for p in parts) + " }"
        if tag == TypeTag.FONT:
            return self._emit_font(data)
        if tag == TypeTag.ICON:
            return self._emit_icon(data)
        if tag == TypeTag.STRUCT:
            if data is None:
                raise UnresolvedStructError(
                    "struct fields are unresolved", subject=".".join(value.type.name)
                )
            fields = [self.emit(f.value) for f in data]
            return "{ " + ", ".join(fields) + " }"
        raise UnresolvedTypeError(f"unknown type tag '{tag}'")

    def _emit_font(self, font) -> str:
        family = "0"
        if font.family:
            index = self.tables.font_family_index(font.family)
            if index < 0:
                raise UnindexedResourceError(
                    "font family was not collected", subject=font.family
                )
            family = font_family_name(index)
        return f"{{ {px_value_name(font.size)}, {font.flags}, {family} }}"

    def _emit_icon(self, icon) -> str:
        if not icon.parts:
            return "{}"
        parts = []
        for part in icon.parts:
            index = self.tables.icon_mask_index(part.asset)
            if index < 0:
                raise UnindexedResourceError(
                    "icon asset was not collected", subject=part.asset.key
                )
            color = self.emit(part.color)
            offset = self.emit(part.offset)
            parts.append(f"MonoIcon{{ &{icon_mask_name(index)}, {color}, {offset} }}")
        return "{ " + ", ".join(parts) + " }"
