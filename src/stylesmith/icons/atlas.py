"""Multi-resolution icon atlas packing.

Every icon asset becomes one embedded byte blob. Raster assets pack four
resolutions into a single PNG::

    +-----------------------+------------+
    | 200% (2x input)       | 100% input |
    +-------------+---------+------------+
    | 150%        | 125%    |  (fill)    |
    +-------------+---------+------------+

The 150% and 125% images are resampled from the 2x input to the sizes
``px_adjust`` gives for the nominal dimensions. The canvas is pre-filled
opaque black so gaps are deterministic.

Size-only placeholders (``size://W,H``) become a tagged record with no
pixel data; the consuming runtime synthesizes an empty mask of that size.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np
from scipy.ndimage import gaussian_filter, map_coordinates

from stylesmith.config import (
    ICON_FILE_SUFFIX,
    ICON_FILL_ALPHA,
    ICON_GENERATE_TAG,
    ICON_RETINA_SUFFIX,
    ICON_SIZE_SCHEME,
    ICON_SIZE_TAG,
    SCALE_ONE_AND_HALF,
    SCALE_ONE_AND_QUARTER,
)
from stylesmith.core.scale import px_adjust
from stylesmith.core.types import IconAsset
from stylesmith.errors import (
    IconFormatError,
    IconSizeError,
    InvalidPlaceholderError,
    ModifierNotFoundError,
)
from stylesmith.icons.modifiers import get_modifier
from stylesmith.io.image import encode_png, load_raster, raster_format

logger = logging.getLogger(__name__)

Rect = tuple[int, int, int, int]  # x, y, width, height


@dataclass
class IconAtlas:
    """Packed composite plus the sub-rectangle of each resolution."""
    image: np.ndarray  # (H, W, C)
    rects: dict[str, Rect] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def height(self) -> int:
        return self.image.shape[0]

    def region(self, name: str) -> np.ndarray:
        x, y, w, h = self.rects[name]
        return self.image[y:y + h, x:x + w]

    def to_png(self) -> bytes:
        return encode_png(self.image)


# ---------------------------------------------------------------------------
# Placeholders
# ---------------------------------------------------------------------------

def parse_placeholder(path: str) -> tuple[int, int]:
    """Parse ``size://W,H`` into (width, height).

    Raises:
        InvalidPlaceholderError: Missing, non-numeric or non-positive sizes.
    """
    dimensions = path[len(ICON_SIZE_SCHEME):].split(",")
    if len(dimensions) < 2:
        raise InvalidPlaceholderError("bad dimensions", subject=path)
    try:
        width, height = int(dimensions[0]), int(dimensions[1])
    except ValueError:
        raise InvalidPlaceholderError("bad dimensions", subject=path) from None
    if width <= 0 or height <= 0:
        raise InvalidPlaceholderError("bad dimensions", subject=path)
    return width, height


def placeholder_blob(width: int, height: int) -> bytes:
    """Tagged generate-by-size record: tags then two big-endian int32."""
    return ICON_GENERATE_TAG + ICON_SIZE_TAG + struct.pack(">ii", width, height)


# ---------------------------------------------------------------------------
# Rasters
# ---------------------------------------------------------------------------

def resample_image(image: np.ndarray, width: int, height: int, order: int = 3) -> np.ndarray:
    """Resample an (H, W, C) image to exactly ``width`` x ``height``.

    Pixel centers are aligned, aspect ratio is not preserved, and
    downscaling is band-limited with a Gaussian prefilter before spline
    interpolation.

    Args:
        image: Source image in any sample type.
        width: Output width.
        height: Output height.
        order: Spline order (1 = bilinear, 3 = cubic).

    Returns:
        (height, width, C) image in the source sample type.
    """
    src_h, src_w, channels = image.shape
    if (src_w, src_h) == (width, height):
        return image.copy()

    scale_y = src_h / height
    scale_x = src_w / width
    sigma = (max(0.0, (scale_y - 1.0) / 2.0), max(0.0, (scale_x - 1.0) / 2.0))

    ys = (np.arange(height) + 0.5) * scale_y - 0.5
    xs = (np.arange(width) + 0.5) * scale_x - 0.5
    yy, xx = np.meshgrid(ys, xs, indexing="ij")
    coords = [yy.ravel(), xx.ravel()]

    result = np.empty((height, width, channels), dtype=np.float64)
    for ch in range(channels):
        plane = image[:, :, ch].astype(np.float64)
        if sigma[0] > 0 or sigma[1] > 0:
            plane = gaussian_filter(plane, sigma=sigma, mode="nearest")
        result[:, :, ch] = map_coordinates(
            plane, coords, order=order, mode="nearest"
        ).reshape((height, width))

    if np.issubdtype(image.dtype, np.integer):
        info = np.iinfo(image.dtype)
        result = np.clip(np.rint(result), info.min, info.max)
    return result.astype(image.dtype)


def _opaque_canvas(height: int, width: int, like: np.ndarray) -> np.ndarray:
    canvas = np.zeros((height, width, like.shape[2]), dtype=like.dtype)
    if like.shape[2] in (2, 4):
        if np.issubdtype(like.dtype, np.integer):
            canvas[:, :, -1] = np.iinfo(like.dtype).max
        else:
            canvas[:, :, -1] = ICON_FILL_ALPHA / 255.0
    return canvas


def compose_atlas(image100x: np.ndarray, image200x: np.ndarray) -> IconAtlas:
    """Derive 125% and 150% images and pack all four resolutions."""
    h100, w100 = image100x.shape[:2]
    h200, w200 = image200x.shape[:2]

    image125x = resample_image(
        image200x,
        px_adjust(w100, SCALE_ONE_AND_QUARTER),
        px_adjust(h100, SCALE_ONE_AND_QUARTER),
    )
    image150x = resample_image(
        image200x,
        px_adjust(w100, SCALE_ONE_AND_HALF),
        px_adjust(h100, SCALE_ONE_AND_HALF),
    )
    h125, w125 = image125x.shape[:2]
    h150, w150 = image150x.shape[:2]

    canvas = _opaque_canvas(h200 + max(h150, h125), w200 + w100, image200x)
    rects = {
        "200x": (0, 0, w200, h200),
        "100x": (w200, 0, w100, h100),
        "150x": (0, h200, w150, h150),
        "125x": (w150, h200, w125, h125),
    }
    images = {"200x": image200x, "100x": image100x, "150x": image150x, "125x": image125x}
    for name, (x, y, w, h) in rects.items():
        canvas[y:y + h, x:x + w] = images[name]

    return IconAtlas(image=canvas, rects=rects)


def _resolve_base(asset: IconAsset, asset_root: Optional[Path]) -> Path:
    base = Path(asset.path)
    if not base.is_absolute() and asset_root is not None:
        base = asset_root / base
    return base


def build_icon_atlas(asset: IconAsset, asset_root: Optional[Path] = None) -> IconAtlas:
    """Load, validate, modify and pack a raster icon pair.

    Raises:
        AssetNotFoundError: Either raster is missing or unreadable.
        IconFormatError: The two rasters have different formats.
        IconSizeError: The 2x raster is not exactly twice the nominal size.
        ModifierNotFoundError: A modifier name is not registered.
    """
    base = _resolve_base(asset, asset_root)
    path100x = base.with_name(base.name + ICON_FILE_SUFFIX)
    path200x = base.with_name(base.name + ICON_RETINA_SUFFIX)

    image100x, meta100x = load_raster(path100x)
    image200x, meta200x = load_raster(path200x)

    if meta100x["format"] != meta200x["format"]:
        raise IconFormatError(
            f"1x and 2x icons have different format: "
            f"{meta100x['format']} vs {meta200x['format']}",
            subject=str(path100x),
        )
    if meta100x["width"] * 2 != meta200x["width"] or meta100x["height"] * 2 != meta200x["height"]:
        raise IconSizeError(
            f"bad icons size, 1x: {meta100x['width']}x{meta100x['height']}, "
            f"2x: {meta200x['width']}x{meta200x['height']}",
            subject=str(path100x),
        )

    for name in asset.modifiers:
        modifier = get_modifier(name)
        if modifier is None:
            raise ModifierNotFoundError(f"unknown modifier '{name}'", subject=str(base))
        modifier(image100x, image200x)

    atlas = compose_atlas(image100x, image200x)
    logger.debug(
        "Packed icon %s into %dx%d atlas (%s)",
        asset.key, atlas.width, atlas.height, raster_format(atlas.image),
    )
    return atlas


def icon_mask_data(asset: IconAsset, asset_root: Optional[Path] = None) -> bytes:
    """Embeddable blob for an icon asset: placeholder record or atlas PNG."""
    if asset.is_placeholder:
        width, height = parse_placeholder(asset.path)
        return placeholder_blob(width, height)
    return build_icon_atlas(asset, asset_root).to_png()
