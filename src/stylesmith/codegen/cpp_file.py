"""In-memory C++ file builder.

Text is accumulated in memory and only reaches disk through ``commit``,
which writes atomically and skips unchanged content.
"""

from __future__ import annotations

from pathlib import Path

from stylesmith.errors import InternalError
from stylesmith.io.files import write_if_changed


class CppFile:
    """Buffered C++ source/header with include and namespace bookkeeping."""

    def __init__(self, path: Path, source_name: str, project_name: str):
        self.path = Path(path)
        self.source_name = source_name
        self.project_name = project_name
        self._chunks: list[str] = []
        self._namespaces: list[str] = []

    @property
    def is_header(self) -> bool:
        return self.path.suffix == ".h"

    def stream(self, text: str) -> CppFile:
        self._chunks.append(text)
        return self

    def newline(self) -> CppFile:
        return self.stream("\n")

    def include(self, header: str) -> CppFile:
        return self.stream(f'#include "{header}"\n')

    def push_namespace(self, name: str = "") -> CppFile:
        self._namespaces.append(name)
        opening = f"namespace {name} {{\n" if name else "namespace {\n"
        return self.stream(opening)

    def pop_namespace(self) -> CppFile:
        if not self._namespaces:
            raise InternalError("namespace stack underflow", subject=str(self.path))
        name = self._namespaces.pop()
        return self.stream(f"}} // namespace {name}\n" if name else "} // namespace\n")

    def content(self) -> str:
        """Full file text; all namespaces must be closed."""
        if self._namespaces:
            raise InternalError(
                f"unclosed namespaces: {', '.join(n or '<anonymous>' for n in self._namespaces)}",
                subject=str(self.path),
            )
        banner = (
            "/*\n"
            "WARNING! All changes made in this file will be lost!\n"
            f"Created from '{self.source_name}' by '{self.project_name}'\n"
            "*/\n"
        )
        if self.is_header:
            banner += "#pragma once\n"
        return banner + "\n" + "".join(self._chunks)

    def commit(self) -> bool:
        """Write the file if its content changed. Returns True if written."""
        return write_if_changed(self.path, self.content().encode("utf-8"))
