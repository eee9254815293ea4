"""Display-scale adjustment for pixel magnitudes.

Scales are expressed in quarter units (4 = 100%, 5 = 125%, 6 = 150%,
8 = 200%). The same function drives the generated ``initPxValues()``
tables and the derived icon resolutions, so both always agree.
"""

from __future__ import annotations

import math

from stylesmith.config import PX_ADJUST_BIAS, SCALE_NAMES, SCALE_ONE, SCALES


def px_adjust(value: int, scale: int) -> int:
    """Adjust a pixel magnitude for a display scale.

    Negative magnitudes are adjusted symmetrically so that ``-x`` always
    maps to ``-px_adjust(x)``.

    Args:
        value: Pixel magnitude at 100%.
        scale: Scale in quarter units, one of ``SCALES``.

    Returns:
        Adjusted magnitude.
    """
    if value < 0:
        return -px_adjust(-value, scale)
    return int(math.floor(value * scale / 4.0 + PX_ADJUST_BIAS))


def scaled_variants(value: int) -> list[tuple[str, int]]:
    """Adjusted value for every non-identity scale, as (scale name, value)."""
    return [
        (name, px_adjust(value, scale))
        for name, scale in zip(SCALE_NAMES, SCALES)
        if scale != SCALE_ONE
    ]
