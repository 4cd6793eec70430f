from __future__ import annotations

import numpy as np

from ..errors import InvalidParameters
from .buffer import PixelBuffer
from .color import hsl_to_rgb_array, rgb_to_hsl_array

LIGHTNESS_CEILING = 0.95

_SHARPEN_KERNEL = (
    (0, -1, 0),
    (-1, 5, -1),
    (0, -1, 0),
)


def _check_intensity(intensity: float) -> None:
    if not 0.0 <= intensity <= 1.0:
        raise InvalidParameters(f"intensity must be within [0, 1], got {intensity}")


def enhance_colors(buffer: PixelBuffer, intensity: float) -> PixelBuffer:
    """Boost saturation and lift lightness in HSL space, in place.

    Lightness is capped below full white so bright regions do not blow out.
    """
    _check_intensity(intensity)
    hue, saturation, lightness = rgb_to_hsl_array(buffer.rgb)
    saturation = np.minimum(1.0, saturation * (1.3 + intensity * 0.4))
    lightness = np.minimum(LIGHTNESS_CEILING, lightness * (1 + intensity * 0.08))
    buffer.pixels[:, :, :3] = hsl_to_rgb_array(hue, saturation, lightness)
    return buffer


def brighten(buffer: PixelBuffer, factor: float) -> PixelBuffer:
    if factor <= 0:
        raise InvalidParameters(f"brightness factor must be > 0, got {factor}")
    if factor == 1.0:
        return buffer
    lut = np.clip(np.rint(np.minimum(255.0, np.arange(256) * factor)), 0, 255).astype(np.uint8)
    buffer.pixels[:, :, :3] = lut[buffer.rgb]
    return buffer


def sharpen(buffer: PixelBuffer) -> PixelBuffer:
    """
    Crisp up detail with a 3x3 sharpening kernel on the color channels.
    The outer one-pixel border is copied through untouched.
    """
    out = buffer.pixels.copy()
    height, width = buffer.height, buffer.width
    if height < 3 or width < 3:
        return PixelBuffer(out)

    rgb = buffer.pixels[:, :, :3].astype(np.float64)
    total = np.zeros((height - 2, width - 2, 3), dtype=np.float64)
    for ky, row in enumerate(_SHARPEN_KERNEL):
        for kx, weight in enumerate(row):
            if weight:
                total += weight * rgb[ky:ky + height - 2, kx:kx + width - 2]
    out[1:-1, 1:-1, :3] = np.clip(np.rint(total), 0, 255).astype(np.uint8)
    return PixelBuffer(out)
