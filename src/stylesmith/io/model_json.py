"""JSON interchange format for style modules.

The style-definition grammar is parsed elsewhere; this loader reads the
already-structured model so the compiler can run end to end::

    {
      "includes": ["basic.style.json"],
      "structs": [
        {"name": "FlatButton", "fields": [
          {"name": "width", "type": "pixels"},
          {"name": "textFg", "type": "color"}
        ]}
      ],
      "variables": [
        {"name": "windowBg", "type": "color", "value": "#ffffff"},
        {"name": "windowFg", "value": {"alias": "windowBg"}},
        {"name": "sendIcon", "type": "icon", "value": [
          {"file": "icons/send", "modifiers": ["invert"],
           "color": {"alias": "windowFg"}, "offset": [0, 0]}
        ]},
        {"name": "button", "type": "FlatButton",
         "value": {"width": 10, "textFg": {"alias": "windowFg"}}}
      ]
    }

Aliases may only name variables already declared in this module or its
includes. Any type name that is not a built-in tag is a struct name.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

from stylesmith.core.types import (
    Color,
    Font,
    Icon,
    IconAsset,
    Margins,
    Module,
    MonoIcon,
    Point,
    Size,
    Struct,
    StructField,
    Type,
    TypeTag,
    Value,
    Variable,
)
from stylesmith.config import ICON_SIZE_SCHEME
from stylesmith.errors import (
    FileNotOpenedError,
    ModelError,
    UnresolvedAliasError,
    UnresolvedStructError,
)

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

FONT_FLAGS = {"bold": 0x01, "italic": 0x02, "underline": 0x04, "semibold": 0x08, "monospace": 0x10}

_BUILTIN_TAGS = {tag.value: tag for tag in TypeTag if tag != TypeTag.STRUCT}


class _ModuleLoader:
    """Builds one Module; ``subject`` prefixes every error."""

    def __init__(self, module: Module):
        self.module = module
        self.subject = str(module.filepath)

    def error(self, message: str, name: str = "") -> ModelError:
        where = f"{self.subject}:{name}" if name else self.subject
        return ModelError(message, subject=where)

    # -- types ----------------------------------------------------------------

    def parse_type(self, raw: Any, name: str) -> Type:
        if not isinstance(raw, str) or not raw:
            raise self.error(f"invalid type {raw!r}", name)
        tag = _BUILTIN_TAGS.get(raw)
        if tag is not None:
            return Type(tag)
        if self.module.find_struct((raw,)) is None:
            raise UnresolvedStructError("unknown struct type", subject=f"{self.subject}:{raw}")
        return Type(TypeTag.STRUCT, (raw,))

    # -- values ---------------------------------------------------------------

    def resolve_alias(self, target: Any, name: str) -> Variable:
        if not isinstance(target, str) or not target:
            raise self.error(f"invalid alias {target!r}", name)
        variable = self.module.find_variable((target,))
        if variable is None:
            raise UnresolvedAliasError(
                f"alias of unknown variable '{target}'", subject=f"{self.subject}:{name}"
            )
        return variable

    def parse_value(self, raw: Any, type_: Optional[Type], name: str) -> Value:
        if isinstance(raw, dict) and set(raw) == {"alias"}:
            referent = self.resolve_alias(raw["alias"], name)
            if type_ is not None and referent.value.type != type_:
                raise self.error(
                    f"alias '{raw['alias']}' has type '{referent.value.type.tag.value}'", name
                )
            return Value.alias(referent)
        if type_ is None:
            raise self.error("type is required for non-alias values", name)

        tag = type_.tag
        if tag == TypeTag.INT or tag == TypeTag.PIXELS:
            return Value(type_, self._int(raw, name))
        if tag == TypeTag.DOUBLE:
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise self.error(f"expected a number, got {raw!r}", name)
            return Value(type_, float(raw))
        if tag in (TypeTag.STRING, TypeTag.CURSOR, TypeTag.ALIGN):
            if not isinstance(raw, str):
                raise self.error(f"expected a string, got {raw!r}", name)
            if tag != TypeTag.STRING and not _IDENTIFIER.match(raw):
                raise self.error(f"invalid {tag.value} name {raw!r}", name)
            return Value(type_, raw)
        if tag == TypeTag.COLOR:
            return Value(type_, self._color(raw, name))
        if tag == TypeTag.POINT:
            x, y = self._ints(raw, 2, name)
            return Value(type_, Point(x, y))
        if tag == TypeTag.SIZE:
            w, h = self._ints(raw, 2, name)
            return Value(type_, Size(w, h))
        if tag == TypeTag.MARGINS:
            left, top, right, bottom = self._ints(raw, 4, name)
            return Value(type_, Margins(left, top, right, bottom))
        if tag == TypeTag.FONT:
            return Value(type_, self._font(raw, name))
        if tag == TypeTag.ICON:
            return Value(type_, self._icon(raw, name))
        if tag == TypeTag.STRUCT:
            return Value(type_, self._struct_fields(raw, type_, name))
        raise self.error(f"unsupported type '{tag.value}'", name)

    def _int(self, raw: Any, name: str) -> int:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise self.error(f"expected an integer, got {raw!r}", name)
        return raw

    def _ints(self, raw: Any, count: int, name: str) -> list[int]:
        if not isinstance(raw, list) or len(raw) != count:
            raise self.error(f"expected {count} integers, got {raw!r}", name)
        return [self._int(v, name) for v in raw]

    def _color(self, raw: Any, name: str) -> Color:
        fallback = ""
        if isinstance(raw, dict):
            fallback = raw.get("fallback", "")
            if not isinstance(fallback, str):
                raise self.error(f"invalid fallback {fallback!r}", name)
            raw = raw.get("color")
        if isinstance(raw, list) and len(raw) in (3, 4):
            channels = self._ints(raw, len(raw), name)
            if any(c < 0 or c > 255 for c in channels):
                raise self.error(f"invalid color {raw!r}", name)
        elif isinstance(raw, str) and _HEX_COLOR.match(raw):
            digits = raw[1:]
            if len(digits) == 3:
                digits = "".join(d * 2 for d in digits)
            channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
        else:
            raise self.error(f"invalid color {raw!r}", name)
        if len(channels) == 3:
            channels.append(255)
        return Color(*channels, fallback=fallback)

    def _font(self, raw: Any, name: str) -> Font:
        if not isinstance(raw, dict) or "size" not in raw:
            raise self.error(f"invalid font {raw!r}", name)
        flags = raw.get("flags", 0)
        if isinstance(flags, list):
            unknown = [f for f in flags if f not in FONT_FLAGS]
            if unknown:
                raise self.error(f"unknown font flags {unknown}", name)
            flags = sum(FONT_FLAGS[f] for f in dict.fromkeys(flags))
        family = raw.get("family", "")
        if not isinstance(family, str):
            raise self.error(f"invalid font family {family!r}", name)
        return Font(size=self._int(raw["size"], name), flags=self._int(flags, name), family=family)

    def _icon(self, raw: Any, name: str) -> Icon:
        if not isinstance(raw, list):
            raise self.error(f"expected a list of icon parts, got {raw!r}", name)
        parts = []
        for part in raw:
            if not isinstance(part, dict):
                raise self.error(f"invalid icon part {part!r}", name)
            modifiers = tuple(part.get("modifiers", ()))
            if "size" in part:
                width, height = self._ints(part["size"], 2, name)
                asset = IconAsset(f"{ICON_SIZE_SCHEME}{width},{height}", modifiers)
            elif isinstance(part.get("file"), str) and part["file"]:
                asset = IconAsset(part["file"], modifiers)
            else:
                raise self.error("icon part needs 'file' or 'size'", name)
            color = self.parse_value(part.get("color", "#000000"), Type(TypeTag.COLOR), name)
            offset = self.parse_value(part.get("offset", [0, 0]), Type(TypeTag.POINT), name)
            parts.append(MonoIcon(asset=asset, color=color, offset=offset))
        return Icon(tuple(parts))

    def _struct_fields(self, raw: Any, type_: Type, name: str) -> tuple[Variable, ...]:
        struct = self.module.find_struct(type_.name)
        if struct is None:
            raise UnresolvedStructError("unknown struct type", subject=".".join(type_.name))
        if not isinstance(raw, dict):
            raise self.error(f"expected an object for struct '{type_.name[-1]}'", name)
        known = {f.name[-1] for f in struct.fields}
        extra = [k for k in raw if k not in known]
        if extra:
            raise self.error(f"unknown fields {extra} for struct '{type_.name[-1]}'", name)

        fields = []
        for field in struct.fields:
            field_name = field.name[-1]
            if field_name not in raw:
                raise self.error(f"missing field '{field_name}'", name)
            value = self.parse_value(raw[field_name], field.type, f"{name}.{field_name}")
            fields.append(Variable(name=field.name, value=value))
        return tuple(fields)

    # -- declarations ---------------------------------------------------------

    def load_structs(self, raw: Any) -> None:
        if not isinstance(raw, list):
            raise self.error("'structs' must be a list")
        for item in raw:
            if not isinstance(item, dict) or not _IDENTIFIER.match(str(item.get("name", ""))):
                raise self.error(f"invalid struct {item!r}")
            struct_name = item["name"]
            if self.module.find_struct((struct_name,)) is not None:
                raise self.error("duplicate struct", struct_name)
            fields = []
            for field in item.get("fields", []):
                field_name = field.get("name", "") if isinstance(field, dict) else ""
                if not _IDENTIFIER.match(field_name):
                    raise self.error(f"invalid field {field!r}", struct_name)
                field_type = self.parse_type(field.get("type"), f"{struct_name}.{field_name}")
                fields.append(StructField(name=(field_name,), type=field_type))
            self.module.structs.append(Struct(name=(struct_name,), fields=tuple(fields)))

    def load_variables(self, raw: Any) -> None:
        if not isinstance(raw, list):
            raise self.error("'variables' must be a list")
        for item in raw:
            if not isinstance(item, dict) or not _IDENTIFIER.match(str(item.get("name", ""))):
                raise self.error(f"invalid variable {item!r}")
            name = item["name"]
            if self.module.find_variable_in_module((name,)) is not None:
                raise self.error("duplicate variable", name)
            type_ = self.parse_type(item["type"], name) if "type" in item else None
            if "value" not in item:
                raise self.error("missing value", name)
            value = self.parse_value(item["value"], type_, name)
            self.module.variables.append(Variable(name=(name,), value=value))


def load_module(filepath: str | Path, _loading: Optional[dict[Path, Optional[Module]]] = None) -> Module:
    """Load a module and, recursively, its includes from JSON.

    Returns:
        The populated Module.

    Raises:
        FileNotOpenedError: The file cannot be read.
        ModelError: Malformed document or include cycle.
        UnresolvedAliasError: Alias of an undeclared variable.
        UnresolvedStructError: Unknown struct type.
    """
    path = Path(filepath).resolve()
    loading = {} if _loading is None else _loading
    if path in loading:
        cached = loading[path]
        if cached is None:
            raise ModelError("include cycle", subject=str(path))
        return cached
    loading[path] = None

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise FileNotOpenedError(f"could not open model file: {e}", subject=str(path)) from e
    except json.JSONDecodeError as e:
        raise ModelError(f"invalid JSON: {e}", subject=str(path)) from e
    if not isinstance(document, dict):
        raise ModelError("model document must be an object", subject=str(path))

    module = Module(filepath=path)
    for include in document.get("includes", []):
        module.includes.append(load_module(path.parent / include, loading))

    loader = _ModuleLoader(module)
    loader.load_structs(document.get("structs", []))
    loader.load_variables(document.get("variables", []))

    loading[path] = module
    logger.debug(
        "Loaded %s: %d variables, %d structs, %d includes",
        path.name, len(module.variables), len(module.structs), len(module.includes),
    )
    return module
