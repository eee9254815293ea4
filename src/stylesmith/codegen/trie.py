"""Compiled name -> slot dispatch.

A static set of names is turned into a compressed trie: each node switches
on the byte at its depth, and as soon as only one name remains below a
branch the rest of that name is checked with a single length test and a
suffix ``memcmp``. The trie is built first and emitted in a separate pass,
so the same structure can be evaluated in Python by ``lookup``.

Example (names red=0, green=1, greenLight=2)::

    root(depth 0)
      'r' -> leaf "red" (compare "ed" from offset 1)
      'g' -> node(1) -> 'r' -> node(2) -> 'e' -> node(3) -> 'e' -> node(4)
             -> 'n' -> node(5, terminal=1)
                        'L' -> leaf "greenLight" (compare "ight" from 6)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from stylesmith.codegen.literals import encode_string_literal
from stylesmith.config import PALETTE_NOT_FOUND
from stylesmith.errors import DuplicatePaletteNameError


@dataclass
class TrieLeaf:
    """Single remaining name; bytes before ``offset`` are already matched."""
    name: bytes
    index: int
    offset: int


@dataclass
class TrieNode:
    """Branch on ``data[depth]``; ``terminal`` is the name ending here."""
    depth: int
    terminal: Optional[int] = None
    children: dict[int, Union[TrieNode, TrieLeaf]] = field(default_factory=dict)


Trie = Union[TrieNode, TrieLeaf]


def _encode_name(name: str) -> bytes:
    return name.encode("latin-1")


def _build(entries: list[tuple[bytes, int]], depth: int) -> Trie:
    if len(entries) == 1:
        name, index = entries[0]
        return TrieLeaf(name=name, index=index, offset=depth)

    node = TrieNode(depth=depth)
    groups: dict[int, list[tuple[bytes, int]]] = {}
    for name, index in entries:
        if len(name) == depth:
            node.terminal = index
        else:
            groups.setdefault(name[depth], []).append((name, index))

    for ch, group in groups.items():
        node.children[ch] = _build(group, depth + 1)
    return node


def build_trie(entries: Iterable[tuple[str, int]]) -> Trie:
    """Build the dispatch trie for (name, index) pairs.

    Names are processed in descending byte order, which is also the order
    the emitted ``case`` labels follow.

    Raises:
        DuplicatePaletteNameError: A name occurs twice.
    """
    encoded: dict[bytes, int] = {}
    for name, index in entries:
        key = _encode_name(name)
        if key in encoded:
            raise DuplicatePaletteNameError("duplicate palette name", subject=name)
        encoded[key] = index

    ordered = sorted(encoded.items(), reverse=True)
    if not ordered:
        return TrieNode(depth=0)
    return _build(ordered, 0)


def lookup(trie: Trie, data: bytes) -> int:
    """Resolve ``data`` through the trie; -1 when it names no slot."""
    node = trie
    while isinstance(node, TrieNode):
        if len(data) == node.depth:
            return node.terminal if node.terminal is not None else PALETTE_NOT_FOUND
        node = node.children.get(data[node.depth])
        if node is None:
            return PALETTE_NOT_FOUND
    if len(data) == len(node.name) and data[node.offset:] == node.name[node.offset:]:
        return node.index
    return PALETTE_NOT_FOUND


def _char_literal(ch: int) -> str:
    if ch in (0x27, 0x5C):
        return "'\\" + chr(ch) + "'"
    if 32 <= ch < 127:
        return f"'{chr(ch)}'"
    return f"'\\x{ch:02x}'"


def _leaf_return(leaf: TrieLeaf) -> str:
    size = len(leaf.name)
    suffix = leaf.name[leaf.offset:]
    if not suffix:
        return f"return (size == {size}) ? {leaf.index} : -1;"
    literal = encode_string_literal(suffix.decode("latin-1"))
    return (
        f"return (size == {size} && !memcmp(data + {leaf.offset}, "
        f"{literal}, {len(suffix)})) ? {leaf.index} : -1;"
    )


def _emit(node: Trie, tabs: str, out: list[str]) -> None:
    if isinstance(node, TrieLeaf):
        out.append(tabs + _leaf_return(node))
        return

    if node.terminal is not None:
        out.append(f"{tabs}if (size == {node.depth}) return {node.terminal};")
    if not node.children:
        return
    out.append(f"{tabs}if (size > {node.depth}) switch (data[{node.depth}]) {{")
    for ch in sorted(node.children, reverse=True):
        child = node.children[ch]
        label = f"{tabs}case {_char_literal(ch)}:"
        if isinstance(child, TrieLeaf):
            out.append(f"{label} {_leaf_return(child)}")
        else:
            out.append(label)
            _emit(child, tabs + "\t", out)
            out.append(f"{tabs}\tbreak;")
    out.append(f"{tabs}}}")


def emit_dispatch_function(trie: Trie, function_name: str = "getPaletteIndex") -> str:
    """C++ source of ``int <function_name>(QLatin1String name)``."""
    out = [
        f"int {function_name}(QLatin1String name) {{",
        "\tauto size = name.size();",
        "\tauto data = name.data();",
    ]
    _emit(trie, "\t", out)
    out.append("")
    out.append("\treturn -1;")
    out.append("}")
    return "\n".join(out) + "\n"
