"""Raster I/O for icon assets.

Images are loaded with imageio v3 and kept in their stored sample type
(no normalization), always as (H, W, C) arrays. The pair (dtype, channels)
is the raster's format; nominal and double-resolution icons must agree.
"""

from __future__ import annotations

import logging
from pathlib import Path

import imageio.v3 as iio
import numpy as np

from stylesmith.config import ICON_FILE_SUFFIX, MAX_ICON_DIMENSION
from stylesmith.errors import AssetNotFoundError, IconFormatError, IconSizeError

logger = logging.getLogger(__name__)


def validate_input_path(filepath: str | Path) -> Path:
    """Validate an icon raster path.

    Raises:
        AssetNotFoundError: If the file does not exist or is not a file.
        IconFormatError: If the extension is not ``.png``.
    """
    path = Path(filepath).resolve()

    if not path.exists():
        raise AssetNotFoundError("could not open icon file", subject=str(path))

    if not path.is_file():
        raise AssetNotFoundError("not a regular file", subject=str(path))

    if path.suffix.lower() != ICON_FILE_SUFFIX:
        raise IconFormatError(
            f"unsupported icon format: {path.suffix}, expected {ICON_FILE_SUFFIX}",
            subject=str(path),
        )

    return path


def _validate_dimensions(width: int, height: int, path: Path) -> None:
    """Check raster dimensions against the configured limits."""
    if width <= 0 or height <= 0:
        raise IconSizeError(f"invalid image dimensions: {width}x{height}", subject=str(path))
    if width > 2 * MAX_ICON_DIMENSION or height > 2 * MAX_ICON_DIMENSION:
        raise IconSizeError(
            f"image dimension {max(width, height)} exceeds maximum allowed "
            f"{2 * MAX_ICON_DIMENSION}",
            subject=str(path),
        )


def raster_format(array: np.ndarray) -> str:
    """Format descriptor compared between paired rasters, e.g. ``uint8x4``."""
    return f"{array.dtype}x{array.shape[2]}"


def load_raster(filepath: str | Path) -> tuple[np.ndarray, dict]:
    """Load a raster as an (H, W, C) array in its stored sample type.

    Returns:
        (array, metadata): Writable array and a metadata dict.

    Raises:
        AssetNotFoundError: Missing or undecodable file.
    """
    path = validate_input_path(filepath)

    try:
        raw = iio.imread(path)
    except (OSError, ValueError) as e:
        raise AssetNotFoundError(f"could not decode icon file: {e}", subject=str(path)) from e

    data = np.array(raw, copy=True)
    if data.ndim == 2:
        data = data[:, :, np.newaxis]
    elif data.ndim != 3:
        raise IconFormatError(f"unsupported image shape: {data.shape}", subject=str(path))

    _validate_dimensions(data.shape[1], data.shape[0], path)

    metadata = {
        "width": data.shape[1],
        "height": data.shape[0],
        "channels": data.shape[2],
        "format": raster_format(data),
        "backend": "imageio",
    }
    logger.debug("Loaded %s (%dx%d, %s)", path, data.shape[1], data.shape[0], metadata["format"])
    return data, metadata


def encode_png(array: np.ndarray) -> bytes:
    """Losslessly encode an (H, W, C) array as PNG bytes."""
    out = array[:, :, 0] if array.shape[2] == 1 else array
    return iio.imwrite("<bytes>", out, extension=ICON_FILE_SUFFIX)
