"""Conversion between encoded images and pixel buffers."""

from __future__ import annotations

import base64
import binascii
import io
from typing import Union

from PIL import Image, ImageOps, UnidentifiedImageError

from .config import SETTINGS
from .errors import DecodeFailure, InvalidParameters, SurfaceUnavailable
from .processing.buffer import PixelBuffer

DATA_URI_PREFIX = "data:"


def _payload_bytes(source: Union[bytes, str]) -> bytes:
    if isinstance(source, bytes) and not source.startswith(DATA_URI_PREFIX.encode("ascii")):
        return source

    text = source.decode("ascii", errors="replace") if isinstance(source, bytes) else source
    text = text.strip()
    if text.startswith(DATA_URI_PREFIX):
        header, _, text = text.partition(",")
        if ";base64" not in header:
            raise DecodeFailure("Only base64 data URIs are supported")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeFailure(f"Invalid base64 image payload: {exc}") from exc


def decode_image(source: Union[bytes, str]) -> PixelBuffer:
    """Decode PNG/JPEG bytes, a base64 string or a data URI into RGBA pixels."""
    data = _payload_bytes(source)
    if not data:
        raise DecodeFailure("Empty image payload")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            # Camera JPEGs store rotation as an EXIF tag.
            return PixelBuffer.from_image(ImageOps.exif_transpose(img))
    except MemoryError as exc:
        raise SurfaceUnavailable("Not enough memory to decode image") from exc
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeFailure(f"Could not decode image: {exc}") from exc


def encode_png(buffer: PixelBuffer) -> bytes:
    out = io.BytesIO()
    buffer.to_image().save(out, "PNG", optimize=True)
    return out.getvalue()


def to_data_uri(buffer: PixelBuffer) -> str:
    return "data:image/png;base64," + base64.b64encode(encode_png(buffer)).decode("ascii")


def fit_within(buffer: PixelBuffer, max_dimension: int | None = None) -> PixelBuffer:
    """Downscale so neither side exceeds ``max_dimension``; smaller images pass through."""
    limit = SETTINGS.max_dimension if max_dimension is None else max_dimension
    if limit < 1:
        raise InvalidParameters(f"max_dimension must be >= 1, got {limit}")
    width, height = buffer.size
    if width <= limit and height <= limit:
        return buffer

    scale = min(limit / width, limit / height)
    size = (max(1, int(width * scale)), max(1, int(height * scale)))
    try:
        resized = buffer.to_image().resize(size, Image.Resampling.LANCZOS)
        return PixelBuffer.from_image(resized)
    except MemoryError as exc:
        raise SurfaceUnavailable(f"Not enough memory to resize to {size[0]}x{size[1]}") from exc
