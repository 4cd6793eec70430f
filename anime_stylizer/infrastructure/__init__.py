"""Infrastructure helpers for caching, responses and the upscaling collaborator."""

from .cache import CACHE, ResponseCache, cache_key
from .responses import send_png, send_png_bytes
from .upscaler import UPSCALER, RemoteUpscaler, estimate_upscale_seconds, upscale

__all__ = [
    "CACHE",
    "ResponseCache",
    "cache_key",
    "send_png",
    "send_png_bytes",
    "UPSCALER",
    "RemoteUpscaler",
    "estimate_upscale_seconds",
    "upscale",
]
