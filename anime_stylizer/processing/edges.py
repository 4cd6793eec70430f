from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..errors import InvalidParameters
from .buffer import EdgeMap, PixelBuffer
from .parallel import row_bands, run_bands

logger = logging.getLogger(__name__)

EDGE_BOOST = 1.5
DEFAULT_DARKEN_FACTOR = 0.7

_SOBEL_X = (
    (-1, 0, 1),
    (-2, 0, 2),
    (-1, 0, 1),
)
_SOBEL_Y = (
    (-1, -2, -1),
    (0, 0, 0),
    (1, 2, 1),
)


def detect_edges(buffer: PixelBuffer, *, boost: float = EDGE_BOOST, workers: Optional[int] = None) -> EdgeMap:
    """
    Sobel gradient magnitude of the luma channel.

    Only interior pixels are convolved; the one-pixel border stays at zero.
    The boosted magnitude is clamped to 255 and replicated into R, G and B of
    a freshly allocated map with opaque alpha.
    """
    height, width = buffer.height, buffer.width
    strength = np.zeros((height, width), dtype=np.uint8)
    if height < 3 or width < 3:
        return EdgeMap.from_strength(strength)

    luma = buffer.luma()

    def _sobel_band(lo: int, hi: int) -> None:
        # Interior rows only.
        lo = max(lo, 1)
        hi = min(hi, height - 1)
        if lo >= hi:
            return
        gx = np.zeros((hi - lo, width - 2), dtype=np.float64)
        gy = np.zeros_like(gx)
        for ky in range(3):
            rows = luma[lo - 1 + ky:hi - 1 + ky]
            for kx in range(3):
                window = rows[:, kx:kx + width - 2]
                if _SOBEL_X[ky][kx]:
                    gx += window * _SOBEL_X[ky][kx]
                if _SOBEL_Y[ky][kx]:
                    gy += window * _SOBEL_Y[ky][kx]
        magnitude = np.minimum(255.0, np.sqrt(gx * gx + gy * gy) * boost)
        strength[lo:hi, 1:-1] = np.rint(magnitude).astype(np.uint8)

    run_bands(_sobel_band, row_bands(height, width, workers))
    return EdgeMap.from_strength(strength)


def edge_threshold_for(intensity: float) -> float:
    """Higher intensity lowers the bar, so more outlines are drawn."""
    return 30.0 - intensity * 10.0


def _check_same_size(buffer: PixelBuffer, edges: EdgeMap) -> None:
    if buffer.size != edges.size:
        raise InvalidParameters(f"edge map {edges.size} does not match buffer {buffer.size}")


def composite_edges(
    buffer: PixelBuffer,
    edges: EdgeMap,
    threshold: float,
    darken_factor: float = DEFAULT_DARKEN_FACTOR,
) -> PixelBuffer:
    """Darken pixels whose edge strength exceeds ``threshold``, in place."""
    _check_same_size(buffer, edges)
    if not 0.0 <= darken_factor <= 1.0:
        raise InvalidParameters(f"darken_factor must be within [0, 1], got {darken_factor}")

    strength = edges.strength
    mask = strength > threshold
    if not mask.any():
        return buffer

    edge_factor = np.minimum(1.0, strength[mask] / 100.0)
    scale = (1.0 - edge_factor * darken_factor)[:, np.newaxis]
    darkened = buffer.rgb[mask].astype(np.float64) * scale
    buffer.pixels[mask, :3] = np.clip(np.rint(darkened), 0, 255).astype(np.uint8)
    return buffer


def force_outlines(buffer: PixelBuffer, edges: EdgeMap, threshold: float) -> PixelBuffer:
    """Paint every pixel with edge strength above ``threshold`` solid black, in place."""
    _check_same_size(buffer, edges)
    buffer.pixels[edges.strength > threshold, :3] = 0
    return buffer
