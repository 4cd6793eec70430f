from __future__ import annotations

import io

from flask import send_file

from ..codec import encode_png
from ..processing.buffer import PixelBuffer


def send_png_bytes(data: bytes):
    return send_file(io.BytesIO(data), mimetype="image/png")


def send_png(buffer: PixelBuffer):
    return send_png_bytes(encode_png(buffer))
