from __future__ import annotations

import io
import logging
import math
import time
from typing import Callable, Mapping

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests
from PIL import Image

from ..codec import encode_png
from ..config import SETTINGS
from ..errors import InvalidParameters, UpscaleFailure
from ..processing.buffer import PixelBuffer

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]
UpscalePass = Callable[[PixelBuffer], PixelBuffer]

SUPPORTED_SCALES = (2, 3, 4)


def _merge_query_params(url: str, overrides: Mapping[str, str | None] | None) -> str:
    """Merge override query parameters into ``url``.

    Parameters with a value of ``None`` are removed from the query string. Values
    are treated as opaque strings; callers are responsible for providing any
    necessary encoding.
    """

    if not overrides:
        return url

    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query, keep_blank_values=True))

    for key, value in overrides.items():
        if value is None:
            query.pop(key, None)
        else:
            query[key] = value

    return urlunsplit(parts._replace(query=urlencode(query, doseq=True)))


class RemoteUpscaler:
    """Client for an external super-resolution model that doubles image size.

    The model is opaque: PNG bytes are posted and PNG bytes come back.
    """

    def __init__(self, endpoint: str | None = None, session_factory: SessionFactory | None = None) -> None:
        self.endpoint = SETTINGS.upscaler_url if endpoint is None else endpoint
        self._session_factory = session_factory or requests.Session
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": "anime-stylizer/1.0", "Content-Type": "image/png"})
        return session

    @property
    def configured(self) -> bool:
        return bool(self.endpoint)

    def upscale_pass(self, buffer: PixelBuffer) -> PixelBuffer:
        if not self.configured:
            raise UpscaleFailure("No super-resolution endpoint configured (set UPSCALER_URL)")

        target_url = _merge_query_params(self.endpoint, {"scale": "2"})
        payload = encode_png(buffer)
        last_exception: Exception | None = None
        for attempt in range(1, SETTINGS.retries + 2):
            try:
                response = self._session.post(target_url, data=payload, timeout=SETTINGS.timeout)
                response.raise_for_status()
                with Image.open(io.BytesIO(response.content)) as img:
                    img.load()
                    return PixelBuffer.from_image(img)
            except (requests.RequestException, OSError) as exc:
                logger.warning("Upscale attempt %d failed: %s", attempt, exc)
                last_exception = exc
                time.sleep(0.4 * attempt)
        raise UpscaleFailure(f"Super-resolution request failed: {last_exception}")


def upscale(buffer: PixelBuffer, factor: int, upscale_pass: UpscalePass | None = None) -> PixelBuffer:
    """Enlarge ``buffer`` by 2, 3 or 4 using chained 2x model passes.

    A 3x request runs two passes and resamples the 4x result down to exactly 3x.
    """
    if factor not in SUPPORTED_SCALES:
        raise InvalidParameters(f"Upscale factor must be one of {SUPPORTED_SCALES}, got {factor}")
    run_pass = upscale_pass or UPSCALER.upscale_pass

    passes = 1 if factor == 2 else 2
    result = buffer
    for _ in range(passes):
        expected = (result.width * 2, result.height * 2)
        result = run_pass(result)
        if result.size != expected:
            raise UpscaleFailure(f"Super-resolution returned {result.size}, expected {expected}")

    target = (buffer.width * factor, buffer.height * factor)
    if result.size != target:
        resized = result.to_image().resize(target, Image.Resampling.LANCZOS)
        result = PixelBuffer.from_image(resized)
    return result


def estimate_upscale_seconds(width: int, height: int, scale: int) -> int:
    """Rough wall-clock estimate: two seconds per output megapixel."""
    megapixels = width * height * scale * scale / 1_000_000
    return int(math.ceil(megapixels * 2))


UPSCALER = RemoteUpscaler()
