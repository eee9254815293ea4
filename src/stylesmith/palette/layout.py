"""Compiled palette layout: slot order, literal defaults, fallbacks, checksum.

Slots are numbered in declaration order. A slot's fallback is resolved only
against names declared *before* it, and the runtime resolves slots in one
left-to-right pass, so a color that follows a later-declared color keeps its
own literal default. This ordering limitation is deliberate and pinned by
tests; do not replace it with a multi-pass resolver.
"""

from __future__ import annotations

import logging
import zlib
from dataclasses import dataclass
from typing import Optional

from stylesmith.codegen.emitter import ExpressionEmitter
from stylesmith.codegen.resources import ResourceTables
from stylesmith.codegen.trie import Trie, build_trie, lookup
from stylesmith.config import PALETTE_BYTES_PER_SLOT, PALETTE_NOT_FOUND
from stylesmith.core.types import Module, TypeTag, Value
from stylesmith.errors import DuplicatePaletteNameError, NonColorInPaletteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaletteEntry:
    """One palette slot as declared."""
    name: str
    index: int
    default: tuple[int, int, int, int]
    fallback_name: str  # Empty when the color follows nothing
    fallback_index: int  # -1 unless the fallback was declared earlier
    expression: str  # Emitted initializer, part of the checksum input


@dataclass
class PaletteLayout:
    entries: list[PaletteEntry]
    checksum: int
    trie: Trie

    @property
    def count(self) -> int:
        return len(self.entries)

    @property
    def byte_size(self) -> int:
        return self.count * PALETTE_BYTES_PER_SLOT

    def index_of(self, name: str) -> int:
        """Slot index through the compiled dispatch, or -1."""
        try:
            data = name.encode("latin-1")
        except UnicodeEncodeError:
            return PALETTE_NOT_FOUND
        return lookup(self.trie, data)

    def entry(self, name: str) -> Optional[PaletteEntry]:
        index = self.index_of(name)
        return self.entries[index] if index >= 0 else None


def color_fallback_name(value: Value) -> str:
    """Name a color follows: its alias target, else its declared fallback."""
    if value.is_alias:
        return value.copy_of[-1]
    return value.data.fallback


def palette_checksum(entries: list[PaletteEntry]) -> int:
    """Signed CRC-32 over ``&name:expression`` for every slot in order."""
    payload = "".join(f"&{e.name}:{e.expression}" for e in entries).encode("utf-8")
    crc = zlib.crc32(payload) & 0xFFFFFFFF
    return crc - (1 << 32) if crc >= (1 << 31) else crc


def build_palette_layout(
    module: Module,
    emitter: Optional[ExpressionEmitter] = None,
) -> PaletteLayout:
    """Compile the slot table of a palette module.

    Raises:
        NonColorInPaletteError: A top-level variable is not a color.
        DuplicatePaletteNameError: Two variables share a name.
    """
    if emitter is None:
        emitter = ExpressionEmitter(module, ResourceTables())

    indices: dict[str, int] = {}
    entries: list[PaletteEntry] = []
    for variable in module.enum_variables():
        name = variable.short_name
        value = variable.value
        if value.type.tag != TypeTag.COLOR:
            raise NonColorInPaletteError(
                f"palette entries must be colors, got '{value.type.tag.value}'",
                subject=name,
            )
        if name in indices:
            raise DuplicatePaletteNameError("duplicate palette name", subject=name)

        fallback_name = color_fallback_name(value)
        entry = PaletteEntry(
            name=name,
            index=len(entries),
            default=value.data.rgba,
            fallback_name=fallback_name,
            fallback_index=indices.get(fallback_name, PALETTE_NOT_FOUND),
            expression=emitter.emit(value),
        )
        if fallback_name and entry.fallback_index < 0:
            logger.debug(
                "Palette color '%s' follows '%s' which is not declared before it; "
                "using its own value",
                name, fallback_name,
            )
        indices[name] = entry.index
        entries.append(entry)

    trie = build_trie((e.name, e.index) for e in entries)
    checksum = palette_checksum(entries)
    logger.info("Palette layout: %d colors, checksum %d", len(entries), checksum)
    return PaletteLayout(entries=entries, checksum=checksum, trie=trie)
