from __future__ import annotations

from typing import List, NamedTuple

import numpy as np
from PIL import Image

from ..errors import InvalidParameters


class PixelBuffer:
    """RGBA pixels stored as a ``(height, width, 4)`` uint8 array.

    Per-pixel stages mutate ``pixels`` in place. Neighborhood stages must read
    the values as they were on stage entry, so they build a new buffer instead.
    """

    __slots__ = ("pixels",)

    _mutable = True

    def __init__(self, pixels: np.ndarray) -> None:
        if not isinstance(pixels, np.ndarray):
            raise InvalidParameters(f"Expected numpy.ndarray, got {type(pixels).__name__}")
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise InvalidParameters(f"Pixel array must have shape (height, width, 4), got {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise InvalidParameters("Pixel array is empty")
        if pixels.dtype != np.uint8:
            raise InvalidParameters(f"Pixel array must be uint8, got {pixels.dtype}")
        # np.asarray(pil_image) hands back a read-only view.
        if self._mutable and not pixels.flags.writeable:
            pixels = pixels.copy()
        self.pixels = pixels

    @classmethod
    def blank(cls, width: int, height: int, color=(0, 0, 0, 255)) -> "PixelBuffer":
        if width < 1 or height < 1:
            raise InvalidParameters(f"Invalid buffer size {width}x{height}")
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :] = color
        return cls(pixels)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "PixelBuffer":
        expected = width * height * 4
        if width < 1 or height < 1 or len(data) != expected:
            raise InvalidParameters(
                f"Expected {expected} bytes for a {width}x{height} RGBA buffer, got {len(data)}"
            )
        flat = np.frombuffer(data, dtype=np.uint8).copy()
        return cls(flat.reshape(height, width, 4))

    @classmethod
    def from_image(cls, img: Image.Image) -> "PixelBuffer":
        return cls(np.array(img.convert("RGBA"), dtype=np.uint8))

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self):
        return self.width, self.height

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]

    def luma(self) -> np.ndarray:
        rgb = self.pixels[:, :, :3].astype(np.float64)
        return 0.299 * rgb[:, :, 0] + 0.587 * rgb[:, :, 1] + 0.114 * rgb[:, :, 2]

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.pixels.copy())

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels, "RGBA")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.width}x{self.height})"


class EdgeMap(PixelBuffer):
    """Edge strength replicated across RGB with opaque alpha."""

    __slots__ = ()

    _mutable = False

    @classmethod
    def from_strength(cls, strength: np.ndarray) -> "EdgeMap":
        height, width = strength.shape
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :, 0] = strength
        pixels[:, :, 1] = strength
        pixels[:, :, 2] = strength
        pixels[:, :, 3] = 255
        pixels.setflags(write=False)
        return cls(pixels)

    @property
    def strength(self) -> np.ndarray:
        return self.pixels[:, :, 0]


class Histogram(NamedTuple):
    r: List[int]
    g: List[int]
    b: List[int]


def histogram(buffer: PixelBuffer) -> Histogram:
    """Count how many pixels take each of the 256 values, per color channel."""
    counts = [
        np.bincount(buffer.pixels[:, :, channel].ravel(), minlength=256).tolist()
        for channel in range(3)
    ]
    return Histogram(*counts)
