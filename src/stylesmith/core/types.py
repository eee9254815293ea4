"""Core data model for StyleSmith.

The model is produced once (by a parser or the JSON model loader) and is
treated as immutable by every generation stage.

CRITICAL CONVENTION:
    An alias ``Value`` carries its referent's ``type`` and ``data`` plus the
    referent's full name in ``copy_of``. Code generation must check
    ``is_alias`` before looking at ``data``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from stylesmith.config import ICON_SIZE_SCHEME, PALETTE_SUFFIXES

FullName = tuple[str, ...]


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

class TypeTag(str, Enum):
    """Semantic type of a style value."""
    INT = "int"
    DOUBLE = "double"
    PIXELS = "pixels"
    STRING = "string"
    COLOR = "color"
    POINT = "point"
    SIZE = "size"
    MARGINS = "margins"
    CURSOR = "cursor"
    ALIGN = "align"
    FONT = "font"
    ICON = "icon"
    STRUCT = "struct"


@dataclass(frozen=True)
class Type:
    """Value type; ``name`` is only set for structs."""
    tag: TypeTag
    name: FullName = ()


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Color:
    red: int
    green: int
    blue: int
    alpha: int = 255
    fallback: str = ""  # Palette entry this color follows when not overridden

    @property
    def rgba(self) -> tuple[int, int, int, int]:
        return (self.red, self.green, self.blue, self.alpha)


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Size:
    width: int
    height: int


@dataclass(frozen=True)
class Margins:
    left: int
    top: int
    right: int
    bottom: int


@dataclass(frozen=True)
class Font:
    size: int
    flags: int = 0
    family: str = ""


@dataclass(frozen=True)
class IconAsset:
    """Raster asset reference: base path plus ordered modifier names.

    ``path`` is either a base path without extension (the builder appends
    ``.png`` and ``@2x.png``) or a ``size://W,H`` placeholder.
    """
    path: str
    modifiers: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return "-".join((self.path,) + self.modifiers)

    @property
    def is_placeholder(self) -> bool:
        return self.path.startswith(ICON_SIZE_SCHEME)


@dataclass(frozen=True)
class MonoIcon:
    """One tinted layer of an icon."""
    asset: IconAsset
    color: Value
    offset: Value


@dataclass(frozen=True)
class Icon:
    parts: tuple[MonoIcon, ...] = ()


Payload = Union[
    None, int, float, str, Color, Point, Size, Margins, Font, Icon,
    "tuple[Variable, ...]",
]


@dataclass(frozen=True)
class Value:
    """Typed value: either a literal payload or an alias of another variable.

    For structs ``data`` is the tuple of field variables, or None when the
    struct could not be resolved.
    """
    type: Type
    data: Payload = None
    copy_of: FullName = ()

    @property
    def is_alias(self) -> bool:
        return bool(self.copy_of)

    @classmethod
    def alias(cls, variable: Variable) -> Value:
        """Alias of ``variable``, sharing its type and data."""
        return cls(type=variable.value.type, data=variable.value.data, copy_of=variable.name)


@dataclass(frozen=True)
class Variable:
    name: FullName
    value: Value

    @property
    def short_name(self) -> str:
        return self.name[-1]


@dataclass(frozen=True)
class StructField:
    name: FullName
    type: Type


@dataclass(frozen=True)
class Struct:
    name: FullName
    fields: tuple[StructField, ...] = ()


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------

@dataclass
class Module:
    """File-scoped unit of declarations with its included modules."""
    filepath: Path
    variables: list[Variable] = field(default_factory=list)
    structs: list[Struct] = field(default_factory=list)
    includes: list[Module] = field(default_factory=list)

    @property
    def is_palette(self) -> bool:
        name = self.filepath.name
        return any(name.endswith(suffix) for suffix in PALETTE_SUFFIXES)

    def has_variables(self) -> bool:
        return bool(self.variables)

    def has_structs(self) -> bool:
        return bool(self.structs)

    def enum_variables(self) -> Iterator[Variable]:
        return iter(self.variables)

    def enum_structs(self) -> Iterator[Struct]:
        return iter(self.structs)

    def enum_includes(self) -> Iterator[Module]:
        return iter(self.includes)

    def find_struct_in_module(self, name: FullName) -> Optional[Struct]:
        for struct in self.structs:
            if struct.name == name:
                return struct
        return None

    def find_struct(self, name: FullName) -> Optional[Struct]:
        """Find a struct in this module or, depth-first, in its includes."""
        found = self.find_struct_in_module(name)
        if found is not None:
            return found
        for module in self.includes:
            found = module.find_struct(name)
            if found is not None:
                return found
        return None

    def find_variable_in_module(self, name: FullName) -> Optional[Variable]:
        for variable in self.variables:
            if variable.name == name:
                return variable
        return None

    def find_variable(self, name: FullName) -> Optional[Variable]:
        found = self.find_variable_in_module(name)
        if found is not None:
            return found
        for module in self.includes:
            found = module.find_variable(name)
            if found is not None:
                return found
        return None


# ---------------------------------------------------------------------------
# Generator configuration and result
# ---------------------------------------------------------------------------

@dataclass
class GeneratorConfig:
    """Configuration for one module compilation."""
    # Input
    model_path: Optional[Path] = None
    asset_root: Optional[Path] = None  # Base for relative icon paths

    # Output
    output_dir: Path = Path(".")
    theme_path: Optional[Path] = None
    project_name: str = "StyleSmith"

    # None = derive from the module file name
    is_palette: Optional[bool] = None


@dataclass
class GenerateResult:
    """Result from a full generator run."""
    header_path: Path
    source_path: Path
    written: list[Path] = field(default_factory=list)
    theme_path: Optional[Path] = None
    checksum: Optional[int] = None
    diagnostics: dict = field(default_factory=dict)


ProgressCallback = Callable[[str, float, str], None]
"""Callback signature: (stage_name, fraction_complete, message)."""
