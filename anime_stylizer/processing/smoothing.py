from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..errors import InvalidParameters
from .buffer import PixelBuffer
from .parallel import row_bands, run_bands

logger = logging.getLogger(__name__)

DEFAULT_RADIUS = 3
DEFAULT_SPATIAL_SIGMA = 3.0


def color_sigma_for(intensity: float) -> float:
    """Higher intensity tolerates larger color differences between neighbors."""
    return 30.0 + intensity * 50.0


def spatial_kernel(radius: int, sigma: float) -> np.ndarray:
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    squared = offsets[:, np.newaxis] ** 2 + offsets[np.newaxis, :] ** 2
    return np.exp(-squared / (2 * sigma * sigma))


def bilateral_filter(
    buffer: PixelBuffer,
    intensity: float,
    *,
    radius: int = DEFAULT_RADIUS,
    spatial_sigma: float = DEFAULT_SPATIAL_SIGMA,
    color_sigma: Optional[float] = None,
    workers: Optional[int] = None,
) -> PixelBuffer:
    """Edge-preserving smoothing that flattens regions into a cel-shaded base.

    Every output pixel is the normalized weighted average of its
    ``(2 * radius + 1)`` square neighborhood, with coordinates clamped to the
    image edge. The weight of a neighbor is its Gaussian spatial weight times
    ``exp(-distance / (2 * color_sigma))`` where ``distance`` is the Euclidean
    RGB distance to the center. Alpha is copied from the center pixel.

    Reads always see the input as it was on entry, so the result is a new
    buffer. Rows are split into bands that may run on worker threads.
    """
    if color_sigma is None:
        color_sigma = color_sigma_for(intensity)
    problems = []
    if not 0.0 <= intensity <= 1.0:
        problems.append(f"intensity must be within [0, 1], got {intensity}")
    if int(radius) != radius or radius < 1:
        problems.append(f"radius must be an integer >= 1, got {radius}")
    if spatial_sigma <= 0:
        problems.append(f"spatial_sigma must be > 0, got {spatial_sigma}")
    if color_sigma <= 0:
        problems.append(f"color_sigma must be > 0, got {color_sigma}")
    if problems:
        raise InvalidParameters(problems)

    radius = int(radius)
    height, width = buffer.height, buffer.width
    src = buffer.pixels
    rgb = src[:, :, :3].astype(np.float64)
    padded = np.pad(rgb, ((radius, radius), (radius, radius), (0, 0)), mode="edge")
    spatial = spatial_kernel(radius, spatial_sigma)
    color_scale = 2.0 * color_sigma

    out = np.empty_like(src)
    out[:, :, 3] = src[:, :, 3]

    def _smooth_band(lo: int, hi: int) -> None:
        center = rgb[lo:hi]
        sums = np.zeros_like(center)
        weight_sum = np.zeros(center.shape[:2], dtype=np.float64)
        for ky in range(-radius, radius + 1):
            rows = padded[lo + radius + ky:hi + radius + ky]
            for kx in range(-radius, radius + 1):
                neighbor = rows[:, radius + kx:radius + kx + width]
                distance = np.sqrt(np.sum((neighbor - center) ** 2, axis=-1))
                weight = spatial[ky + radius, kx + radius] * np.exp(-distance / color_scale)
                sums += neighbor * weight[..., np.newaxis]
                weight_sum += weight

        # A vanished weight sum keeps the center pixel as it was.
        averaged = np.divide(
            sums,
            weight_sum[..., np.newaxis],
            out=center.copy(),
            where=weight_sum[..., np.newaxis] > 0,
        )
        out[lo:hi, :, :3] = np.clip(np.rint(averaged), 0, 255).astype(np.uint8)

    bands = row_bands(height, width, workers)
    logger.debug("bilateral %dx%d radius=%d sigma_c=%.1f bands=%d", width, height, radius, color_sigma, len(bands))
    run_bands(_smooth_band, bands)
    return PixelBuffer(out)
