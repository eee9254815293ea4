"""Executable model of the generated palette table.

Mirrors, operation for operation, the C++ ``style::palette`` class the
generator emits, so its state machine can be exercised without a C++
toolchain.

Slot states:
    INITIAL -> (finalize/compute, set_color, load) -> CREATED or LOADED
    CREATED/LOADED -> (set_color, load) -> LOADED
    assign() reverts slots the other table leaves INITIAL.

A palette is created not ready and must be finalized once before reads.
No synchronization is provided; finalize during single-threaded startup.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from stylesmith.config import PALETTE_BYTES_PER_SLOT
from stylesmith.errors import InternalError
from stylesmith.palette.layout import PaletteLayout

logger = logging.getLogger(__name__)

RGBA = tuple[int, int, int, int]


class SlotStatus(str, Enum):
    INITIAL = "initial"
    CREATED = "created"
    LOADED = "loaded"


class Palette:
    """Runtime color table for one compiled palette layout."""

    def __init__(self, layout: PaletteLayout):
        self.layout = layout
        self._data: list[Optional[RGBA]] = [None] * layout.count
        self._status: list[SlotStatus] = [SlotStatus.INITIAL] * layout.count
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def status(self, index: int) -> SlotStatus:
        return self._status[index]

    def color(self, name: str) -> RGBA:
        """Current RGBA of a named slot.

        Raises:
            KeyError: Unknown name.
            InternalError: The slot was never constructed.
        """
        index = self.layout.index_of(name)
        if index < 0:
            raise KeyError(name)
        return self.color_at(index)

    def color_at(self, index: int) -> RGBA:
        if self._status[index] == SlotStatus.INITIAL:
            raise InternalError("palette slot read before finalize", subject=self.layout.entries[index].name)
        return self._data[index]

    # -- internal transitions -------------------------------------------------

    def _compute(self, index: int, fallback_index: int, value: RGBA) -> None:
        if self._status[index] != SlotStatus.INITIAL:
            return
        if fallback_index >= 0 and self._status[fallback_index] != SlotStatus.INITIAL:
            self._status[index] = SlotStatus.LOADED
            self._data[index] = self._data[fallback_index]
        else:
            self._status[index] = SlotStatus.CREATED
            self._data[index] = value

    def _set_data(self, index: int, value: RGBA) -> None:
        self._data[index] = tuple(value)
        self._status[index] = SlotStatus.LOADED

    def _reset(self, index: int) -> None:
        self._data[index] = None
        self._status[index] = SlotStatus.INITIAL

    # -- public operations ----------------------------------------------------

    def finalize(self) -> None:
        """Construct every still-INITIAL slot in one declaration-order pass."""
        if self._ready:
            return
        self._ready = True
        for entry in self.layout.entries:
            self._compute(entry.index, entry.fallback_index, entry.default)

    def save(self) -> bytes:
        """Serialize as ``4 * count`` bytes, RGBA per slot."""
        if not self._ready:
            self.finalize()
        result = bytearray()
        for index in range(self.layout.count):
            result.extend(self._data[index])
        return bytes(result)

    def load(self, cache: bytes) -> bool:
        """Overwrite every slot from a cache blob; False on a size mismatch."""
        if len(cache) != self.layout.byte_size:
            logger.debug(
                "Rejected palette cache of %d bytes, expected %d",
                len(cache), self.layout.byte_size,
            )
            return False
        for index in range(self.layout.count):
            offset = index * PALETTE_BYTES_PER_SLOT
            self._set_data(index, tuple(cache[offset:offset + PALETTE_BYTES_PER_SLOT]))
        return True

    def set_color(self, name: str, red: int, green: int, blue: int, alpha: int) -> bool:
        index = self.layout.index_of(name)
        if index < 0:
            return False
        if any(not 0 <= channel <= 255 for channel in (red, green, blue, alpha)):
            return False
        self._set_data(index, (red, green, blue, alpha))
        return True

    def set_color_from(self, name: str, source: str) -> bool:
        """Copy an already LOADED slot into another slot."""
        index = self.layout.index_of(name)
        source_index = self.layout.index_of(source)
        if index < 0 or source_index < 0:
            return False
        if self._status[source_index] != SlotStatus.LOADED:
            return False
        self._set_data(index, self._data[source_index])
        return True

    def assign(self, other: Palette) -> Palette:
        """Table assignment: take LOADED slots, revert slots other lacks.

        If this palette was ready and any slot reverted, it is finalized
        again, which only fills the reverted slots.
        """
        if other.layout.count != self.layout.count:
            raise InternalError("cannot assign palettes of different layouts")
        was_ready = self._ready
        for index in range(self.layout.count):
            if other._status[index] == SlotStatus.LOADED:
                self._set_data(index, other._data[index])
            elif self._status[index] != SlotStatus.INITIAL:
                self._reset(index)
                self._ready = False
        if was_ready and not self._ready:
            self.finalize()
        return self
