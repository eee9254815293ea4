"""Output file helpers.

Generated artifacts are committed with write-to-temp-then-rename, so a
failed or interrupted run never leaves a half-written file behind, and
they are only rewritten when their content actually changes so build
systems do not see spurious modifications.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from stylesmith.errors import FileNotOpenedError

logger = logging.getLogger(__name__)


def validate_output_path(filepath: str | Path) -> Path:
    """Resolve an output path and check its directory is writable.

    Raises:
        FileNotOpenedError: If the parent directory is missing or read-only.
    """
    path = Path(filepath).resolve()

    if path.exists() and not path.is_file():
        raise FileNotOpenedError("output path is not a file", subject=str(path))

    if not path.parent.exists():
        raise FileNotOpenedError("output directory does not exist", subject=str(path.parent))

    if not os.access(path.parent, os.W_OK):
        raise FileNotOpenedError("cannot write to directory", subject=str(path.parent))

    return path


def write_atomic(filepath: str | Path, data: bytes) -> Path:
    """Write ``data`` to a temporary file beside the target, then rename."""
    path = validate_output_path(filepath)
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as f:
            tmp_name = f.name
            f.write(data)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise FileNotOpenedError(f"could not write file: {e}", subject=str(path)) from e
    return path


def write_if_changed(filepath: str | Path, data: bytes) -> bool:
    """Atomically write ``data`` unless the file already holds exactly it.

    Returns:
        True if the file was written.
    """
    path = Path(filepath)
    if path.is_file():
        try:
            if path.read_bytes() == data:
                return False
        except OSError as e:
            logger.debug("Could not read existing %s: %s", path, e)
    write_atomic(path, data)
    return True
