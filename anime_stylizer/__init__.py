"""Anime, cartoon and manga stylization of RGBA pixel buffers."""

from .app import APP_VERSION, app, create_app
from .codec import decode_image, encode_png, fit_within, to_data_uri
from .errors import DecodeFailure, InvalidParameters, StylizeError, SurfaceUnavailable, UpscaleFailure
from .processing import PixelBuffer, StyleParameters, stylize
from . import infrastructure, processing

__version__ = APP_VERSION

__all__ = [
    "APP_VERSION",
    "__version__",
    "app",
    "create_app",
    "decode_image",
    "encode_png",
    "fit_within",
    "to_data_uri",
    "DecodeFailure",
    "InvalidParameters",
    "StylizeError",
    "SurfaceUnavailable",
    "UpscaleFailure",
    "PixelBuffer",
    "StyleParameters",
    "stylize",
    "infrastructure",
    "processing",
]
