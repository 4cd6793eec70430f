"""Pixel-buffer stages and the presets that compose them."""

from .buffer import EdgeMap, Histogram, PixelBuffer, histogram
from .color import HSLColor, hsl_to_rgb, rgb_to_hsl
from .edges import composite_edges, detect_edges, edge_threshold_for, force_outlines
from .enhance import brighten, enhance_colors, sharpen
from .pipeline import (
    PRESETS,
    STAGES,
    Pipeline,
    StyleParameters,
    anime_parameters,
    apply_anime,
    apply_cartoon,
    apply_manga,
    normalize_intensity,
    preset_parameters,
    stylize,
)
from .posterize import binarize, posterize, posterize_levels_for
from .smoothing import bilateral_filter, color_sigma_for

__all__ = [
    "EdgeMap",
    "Histogram",
    "PixelBuffer",
    "histogram",
    "HSLColor",
    "hsl_to_rgb",
    "rgb_to_hsl",
    "composite_edges",
    "detect_edges",
    "edge_threshold_for",
    "force_outlines",
    "brighten",
    "enhance_colors",
    "sharpen",
    "PRESETS",
    "STAGES",
    "Pipeline",
    "StyleParameters",
    "anime_parameters",
    "apply_anime",
    "apply_cartoon",
    "apply_manga",
    "normalize_intensity",
    "preset_parameters",
    "stylize",
    "binarize",
    "posterize",
    "posterize_levels_for",
    "bilateral_filter",
    "color_sigma_for",
]
