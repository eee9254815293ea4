"""Named in-place modifiers applied to icon raster pairs.

A modifier receives the nominal and double-resolution arrays and mutates
both. Icon asset keys list modifiers by name, e.g. ``icons/send-invert``.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

Modifier = Callable[[np.ndarray, np.ndarray], None]


def _color_channels(image: np.ndarray) -> slice:
    # Gray+alpha and RGBA keep their last channel as alpha.
    channels = image.shape[2]
    return slice(0, channels - 1) if channels in (2, 4) else slice(0, channels)


def _invert_one(image: np.ndarray) -> None:
    maximum = np.iinfo(image.dtype).max if np.issubdtype(image.dtype, np.integer) else 1.0
    color = _color_channels(image)
    image[:, :, color] = maximum - image[:, :, color]


def invert(image100x: np.ndarray, image200x: np.ndarray) -> None:
    """Invert color channels, keeping alpha."""
    _invert_one(image100x)
    _invert_one(image200x)


def flip_horizontal(image100x: np.ndarray, image200x: np.ndarray) -> None:
    image100x[:] = image100x[:, ::-1]
    image200x[:] = image200x[:, ::-1]


def flip_vertical(image100x: np.ndarray, image200x: np.ndarray) -> None:
    image100x[:] = image100x[::-1]
    image200x[:] = image200x[::-1]


_MODIFIERS: dict[str, Modifier] = {
    "invert": invert,
    "flip_horizontal": flip_horizontal,
    "flip_vertical": flip_vertical,
}


def get_modifier(name: str) -> Optional[Modifier]:
    """Look up a modifier by name; None if it is not registered."""
    return _MODIFIERS.get(name)


def modifier_names() -> list[str]:
    return sorted(_MODIFIERS)
