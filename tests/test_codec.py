import base64
import io

import numpy as np
import pytest
from PIL import Image

from anime_stylizer.codec import decode_image, encode_png, fit_within, to_data_uri
from anime_stylizer.errors import DecodeFailure, InvalidParameters, SurfaceUnavailable
from anime_stylizer.processing.buffer import PixelBuffer


def _png_bytes(img: Image.Image) -> bytes:
    out = io.BytesIO()
    img.save(out, "PNG")
    return out.getvalue()


def test_encode_then_decode_preserves_pixels():
    rng = np.random.default_rng(1)
    src = PixelBuffer(rng.integers(0, 256, size=(5, 7, 4), dtype=np.uint8))

    assert decode_image(encode_png(src)) == src


def test_decode_rgb_image_adds_opaque_alpha():
    buffer = decode_image(_png_bytes(Image.new("RGB", (3, 2), (10, 20, 30))))

    assert buffer.size == (3, 2)
    assert buffer.pixels[0, 0].tolist() == [10, 20, 30, 255]


def test_decode_palette_image():
    buffer = decode_image(_png_bytes(Image.new("P", (4, 4))))
    assert buffer.size == (4, 4)


def test_decode_data_uri_and_plain_base64():
    src = PixelBuffer.blank(2, 2, (1, 2, 3, 4))
    uri = to_data_uri(src)

    assert uri.startswith("data:image/png;base64,")
    assert decode_image(uri) == src
    assert decode_image(uri.encode("ascii")) == src
    assert decode_image(uri.split(",", 1)[1]) == src


@pytest.mark.parametrize(
    "payload",
    [b"", b"not an image", "data:image/png;base64,@@@", "data:image/png,rawtext", "%%%"],
)
def test_undecodable_input_raises_decode_failure(payload):
    with pytest.raises(DecodeFailure):
        decode_image(payload)


def test_decode_truncated_png():
    data = _png_bytes(Image.new("RGB", (16, 16), (200, 0, 0)))
    with pytest.raises(DecodeFailure):
        decode_image(data[: len(data) // 2])


def test_fit_within_downscales_large_images():
    src = PixelBuffer.blank(200, 100, (50, 60, 70, 255))

    result = fit_within(src, 50)

    assert result.size == (50, 25)


def test_fit_within_passes_small_images_through():
    src = PixelBuffer.blank(20, 10)
    assert fit_within(src, 50) is src


def test_fit_within_rejects_bad_limit():
    with pytest.raises(InvalidParameters):
        fit_within(PixelBuffer.blank(2, 2), 0)


def test_from_bytes_checks_length():
    data = bytes(range(16))
    buffer = PixelBuffer.from_bytes(2, 2, data)
    assert buffer.tobytes() == data

    with pytest.raises(InvalidParameters):
        PixelBuffer.from_bytes(2, 3, data)


def test_pixel_buffer_rejects_bad_arrays():
    with pytest.raises(InvalidParameters):
        PixelBuffer(np.zeros((2, 2, 3), dtype=np.uint8))
    with pytest.raises(InvalidParameters):
        PixelBuffer(np.zeros((2, 2, 4), dtype=np.float32))
    with pytest.raises(InvalidParameters):
        PixelBuffer(np.zeros((0, 2, 4), dtype=np.uint8))


def test_base64_helper_matches_stdlib():
    src = PixelBuffer.blank(1, 1, (9, 9, 9, 255))
    encoded = to_data_uri(src).split(",", 1)[1]
    assert base64.b64decode(encoded) == encode_png(src)


def test_read_only_array_is_copied():
    view = np.asarray(Image.new("RGBA", (3, 3), (1, 2, 3, 255)))

    buffer = PixelBuffer(view)

    assert buffer.pixels.flags.writeable
    assert buffer.pixels is not view


def test_decode_applies_exif_orientation():
    exif = Image.Exif()
    exif[0x0112] = 6  # rotated 90 degrees clockwise
    out = io.BytesIO()
    Image.new("RGB", (8, 4), (120, 30, 200)).save(out, "JPEG", exif=exif)

    assert decode_image(out.getvalue()).size == (4, 8)


def _out_of_memory(*args, **kwargs):
    raise MemoryError


def test_decode_out_of_memory_becomes_surface_unavailable(monkeypatch):
    data = _png_bytes(Image.new("RGB", (4, 4), (5, 6, 7)))
    monkeypatch.setattr(PixelBuffer, "from_image", _out_of_memory)

    with pytest.raises(SurfaceUnavailable):
        decode_image(data)


def test_fit_within_out_of_memory_becomes_surface_unavailable(monkeypatch):
    src = PixelBuffer.blank(40, 20)
    monkeypatch.setattr(PixelBuffer, "from_image", _out_of_memory)

    with pytest.raises(SurfaceUnavailable):
        fit_within(src, 10)
