from __future__ import annotations

import math
from typing import NamedTuple, Tuple

import numpy as np


class HSLColor(NamedTuple):
    h: float
    s: float
    l: float


def _round_channel(value: float) -> int:
    return min(255, max(0, int(math.floor(value * 255 + 0.5))))


def rgb_to_hsl(r: int, g: int, b: int) -> HSLColor:
    r /= 255.0
    g /= 255.0
    b /= 255.0

    high = max(r, g, b)
    low = min(r, g, b)
    lightness = (high + low) / 2
    if high == low:
        return HSLColor(0.0, 0.0, lightness)

    chroma = high - low
    if lightness > 0.5:
        saturation = chroma / (2 - high - low)
    else:
        saturation = chroma / (high + low)

    if high == r:
        hue = (g - b) / chroma + (6 if g < b else 0)
    elif high == g:
        hue = (b - r) / chroma + 2
    else:
        hue = (r - g) / chroma + 4
    return HSLColor(hue / 6, saturation, lightness)


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def hsl_to_rgb(h: float, s: float, l: float) -> Tuple[int, int, int]:
    if s == 0:
        gray = _round_channel(l)
        return gray, gray, gray

    q = l * (1 + s) if l < 0.5 else l + s - l * s
    p = 2 * l - q
    return (
        _round_channel(_hue_to_channel(p, q, h + 1 / 3)),
        _round_channel(_hue_to_channel(p, q, h)),
        _round_channel(_hue_to_channel(p, q, h - 1 / 3)),
    )


def rgb_to_hsl_array(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized :func:`rgb_to_hsl` over an ``(..., 3)`` uint8 array."""
    values = rgb.astype(np.float64) / 255.0
    r, g, b = values[..., 0], values[..., 1], values[..., 2]

    high = values.max(axis=-1)
    low = values.min(axis=-1)
    lightness = (high + low) / 2
    chroma = high - low
    grey = chroma == 0
    safe_chroma = np.where(grey, 1.0, chroma)

    denominator = np.where(lightness > 0.5, 2 - high - low, high + low)
    saturation = np.where(grey, 0.0, chroma / np.where(grey, 1.0, denominator))

    hue = np.select(
        [high == r, high == g],
        [
            (g - b) / safe_chroma + np.where(g < b, 6.0, 0.0),
            (b - r) / safe_chroma + 2,
        ],
        default=(r - g) / safe_chroma + 4,
    )
    hue = np.where(grey, 0.0, hue / 6)
    return hue, saturation, lightness


def _hue_to_channel_array(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    t = np.where(t < 0, t + 1, t)
    t = np.where(t > 1, t - 1, t)
    return np.select(
        [t < 1 / 6, t < 1 / 2, t < 2 / 3],
        [p + (q - p) * 6 * t, q, p + (q - p) * (2 / 3 - t) * 6],
        default=p,
    )


def hsl_to_rgb_array(hue: np.ndarray, saturation: np.ndarray, lightness: np.ndarray) -> np.ndarray:
    """Vectorized :func:`hsl_to_rgb`; returns an ``(..., 3)`` uint8 array."""
    q = np.where(lightness < 0.5, lightness * (1 + saturation), lightness + saturation - lightness * saturation)
    p = 2 * lightness - q
    channels = np.stack(
        [
            _hue_to_channel_array(p, q, hue + 1 / 3),
            _hue_to_channel_array(p, q, hue),
            _hue_to_channel_array(p, q, hue - 1 / 3),
        ],
        axis=-1,
    )
    achromatic = (saturation == 0)[..., np.newaxis]
    channels = np.where(achromatic, lightness[..., np.newaxis], channels)
    return np.clip(np.floor(channels * 255 + 0.5), 0, 255).astype(np.uint8)
