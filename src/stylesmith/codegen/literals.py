"""C++ literal formatting helpers shared by the emitter and the generator."""

from __future__ import annotations

from stylesmith.config import BINARY_ARRAY_ROW, STRING_LITERAL_WRAP

_LINE_BREAK = "\\\n"


def px_value_name(value: int) -> str:
    """Name of the runtime-adjustable variable holding a pixel magnitude.

    Negative magnitudes get an ``m`` marker: ``px5``, ``pxm5``.
    """
    if value < 0:
        return f"pxm{-value}"
    return f"px{value}"


def encode_string_literal(text: str) -> str:
    """Encode a string as a C string literal over its UTF-8 bytes.

    Long literals are continued with backslash-newline once a line
    exceeds ``STRING_LITERAL_WRAP`` characters.
    """
    pieces: list[str] = []
    length = 0
    last_cut = 0
    hex_escaped = False
    starts_on_new_line = False

    def append(piece: str) -> None:
        nonlocal length
        pieces.append(piece)
        length += len(piece)

    for ch in text.encode("utf-8"):
        if length - last_cut > STRING_LITERAL_WRAP:
            starts_on_new_line = True
            append(_LINE_BREAK)
            last_cut = length
        if ch == 0x0A:
            hex_escaped = False
            append("\\n")
        elif ch == 0x09:
            hex_escaped = False
            append("\\t")
        elif ch in (0x22, 0x5C):
            hex_escaped = False
            append("\\" + chr(ch))
        elif ch < 32 or ch > 127:
            hex_escaped = True
            append(f"\\x{ch:02x}")
        else:
            if hex_escaped:
                # A hex escape would swallow a following hex digit.
                hex_escaped = False
                append('""')
            append(chr(ch))

    prefix = _LINE_BREAK if starts_on_new_line else ""
    return '"' + prefix + "".join(pieces) + '"'


def bytes_to_array_literal(data: bytes) -> str:
    """Format bytes as a braced initializer, ``BINARY_ARRAY_ROW`` per row."""
    rows = [
        ", ".join(f"0x{b:02x}" for b in data[i:i + BINARY_ARRAY_ROW])
        for i in range(0, len(data), BINARY_ARRAY_ROW)
    ]
    opening = "\n" if len(rows) > 1 else " "
    return "{" + opening + ",\n".join(rows) + " }"


def color_hex(red: int, green: int, blue: int, alpha: int = 255) -> str:
    """Lowercase ``rrggbb`` hex, with ``aa`` appended only when not opaque."""
    result = f"{red:02x}{green:02x}{blue:02x}"
    if alpha != 255:
        result += f"{alpha:02x}"
    return result
