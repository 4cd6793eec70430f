from __future__ import annotations

import math

import numpy as np

from ..errors import InvalidParameters
from .buffer import PixelBuffer

BINARY_CUTOFF = 128


def posterize_levels_for(intensity: float) -> int:
    """Six to ten flat bands per channel, more at higher intensity."""
    return int(math.floor(6 + intensity * 4))


def posterize_lut(levels: int) -> np.ndarray:
    step = 256.0 / levels
    values = np.arange(256, dtype=np.float64)
    quantized = np.floor(values / step) * step + step / 2
    return np.clip(np.rint(quantized), 0, 255).astype(np.uint8)


def posterize(buffer: PixelBuffer, levels: int) -> PixelBuffer:
    """Quantize each color channel to ``levels`` evenly spaced values, in place."""
    if int(levels) != levels or levels < 2:
        raise InvalidParameters(f"quantization levels must be an integer >= 2, got {levels}")
    lut = posterize_lut(int(levels))
    buffer.pixels[:, :, :3] = lut[buffer.rgb]
    return buffer


def binarize(buffer: PixelBuffer, cutoff: int = BINARY_CUTOFF) -> PixelBuffer:
    """Hard black/white threshold of luma, written to all color channels."""
    value = np.where(buffer.luma() > cutoff, 255, 0).astype(np.uint8)
    buffer.pixels[:, :, :3] = value[..., np.newaxis]
    return buffer
