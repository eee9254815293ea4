"""Sample theme export for palette modules."""

from __future__ import annotations

import logging
from pathlib import Path

from stylesmith.codegen.literals import color_hex
from stylesmith.config import THEME_HEADER
from stylesmith.io.files import write_if_changed
from stylesmith.palette.layout import PaletteLayout

logger = logging.getLogger(__name__)


def render_sample_theme(layout: PaletteLayout) -> str:
    """Theme text: one ``name: value;`` line per palette color.

    A color equal to the color it follows is written as that name; a color
    that differs keeps its hex value and names the fallback in a comment.
    Fallbacks here resolve against all palette names, not just earlier ones.
    """
    lines = [THEME_HEADER]
    for entry in layout.entries:
        value = color_hex(*entry.default)
        fallback = layout.entry(entry.fallback_name) if entry.fallback_name else None
        if fallback is None:
            lines.append(f"{entry.name}: #{value};\n")
        elif value == color_hex(*fallback.default):
            lines.append(f"{entry.name}: {fallback.name};\n")
        else:
            lines.append(f"{entry.name}: #{value}; // {fallback.name};\n")
    return "".join(lines)


def write_sample_theme(layout: PaletteLayout, path: Path) -> bool:
    """Write the sample theme unless the file already has this content.

    Returns:
        True if the file was written, False if it was already up to date.
    """
    written = write_if_changed(path, render_sample_theme(layout).encode("utf-8"))
    if written:
        logger.info("Wrote theme: %s", path)
    else:
        logger.debug("Theme unchanged: %s", path)
    return written
