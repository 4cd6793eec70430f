import numpy as np
import pytest
from PIL import Image

from anime_stylizer.errors import InvalidParameters, SurfaceUnavailable
from anime_stylizer.processing.buffer import PixelBuffer
from anime_stylizer.processing.edges import detect_edges
from anime_stylizer.processing.pipeline import (
    ANIME,
    CARTOON,
    CARTOON_PARAMETERS,
    MANGA,
    Pipeline,
    Stage,
    StyleParameters,
    anime_parameters,
    apply_cartoon,
    apply_manga,
    normalize_intensity,
    preset_parameters,
    stylize,
)


def _random_buffer(width, height, seed=0):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    return PixelBuffer(pixels)


def test_anime_on_solid_color_is_uniform():
    src = PixelBuffer.blank(4, 4, (200, 100, 50, 255))

    result = stylize(src, "anime", 0.5)

    assert result.size == (4, 4)
    flat = result.pixels.reshape(-1, 4)
    assert (flat == flat[0]).all()
    # saturation/lightness boost, 8 levels, no outlines, then a 1.10 gain
    assert flat[0].tolist() == [255, 88, 18, 255]


def test_anime_parameters_scale_with_intensity():
    params = anime_parameters(1.0)
    assert params.color_sigma == 80.0
    assert params.quantization_levels == 10
    assert params.edge_threshold == 20.0
    assert params.brightness_factor == pytest.approx(1.15)
    assert params.kernel_radius == 3

    assert anime_parameters(0.0).quantization_levels == 6


def test_cartoon_parameters_are_fixed():
    assert preset_parameters("cartoon", 0.1) == preset_parameters("cartoon", 0.9) == CARTOON_PARAMETERS
    assert CARTOON_PARAMETERS.color_sigma == 55.0
    assert CARTOON_PARAMETERS.intensity == 0.6
    assert CARTOON_PARAMETERS.quantization_levels == 8
    assert CARTOON_PARAMETERS.edge_threshold == pytest.approx(26.0)
    assert CARTOON_PARAMETERS.brightness_factor == 1.08


def test_edge_detection_order_differs_between_anime_and_cartoon():
    anime = ANIME.stage_names
    cartoon = CARTOON.stage_names

    assert anime.index("detect_edges") < anime.index("posterize")
    assert cartoon.index("detect_edges") > cartoon.index("posterize")
    assert MANGA.stage_names == ("detect_edges", "binarize", "force_outlines")


def test_manga_forces_black_where_sobel_exceeds_threshold():
    pixels = np.zeros((6, 6, 4), dtype=np.uint8)
    pixels[:, :3, :3] = 255
    pixels[:, :, 3] = 255
    src = PixelBuffer(pixels)
    edges = detect_edges(src)
    white_left = src.rgb[:, :, 0] > 128

    result = apply_manga(src)

    strong = edges.strength > 30
    assert strong.any()
    assert (result.rgb[strong] == 0).all()
    expected = np.where(white_left & ~strong, 255, 0)
    assert np.array_equal(result.rgb[:, :, 0], expected)
    assert np.array_equal(result.rgb[:, :, 1], expected)
    # the boundary column keeps white only on the unprocessed border rows
    assert result.rgb[:, 2, 0].tolist() == [255, 0, 0, 0, 0, 255]


@pytest.mark.parametrize("color", [(255, 255, 255), (0, 0, 0)])
def test_manga_is_idempotent_on_clean_black_and_white(color):
    src = PixelBuffer.blank(5, 4, color + (255,))
    expected = src.copy()

    assert apply_manga(src) == expected


def test_alpha_survives_every_preset():
    for preset in ("anime", "cartoon", "manga"):
        src = _random_buffer(9, 8, seed=1)
        src.pixels[:, :, 3] = 77
        result = stylize(src, preset, 0.7)
        assert (result.alpha == 77).all(), preset


def test_cartoon_produces_posterized_output_size():
    src = _random_buffer(10, 7, seed=3)

    result = apply_cartoon(src)

    assert result.size == (10, 7)


def test_threaded_bands_do_not_change_result():
    src = _random_buffer(12, 19, seed=6)

    single = stylize(src.copy(), "anime", 0.8, workers=1)
    banded = stylize(src.copy(), "anime", 0.8, workers=3)

    assert single == banded


def test_unknown_preset_is_rejected():
    with pytest.raises(InvalidParameters):
        stylize(PixelBuffer.blank(2, 2), "watercolor", 0.5)


def test_invalid_intensity_rejected_before_pixel_work():
    src = _random_buffer(5, 5)
    before = src.copy()

    with pytest.raises(InvalidParameters):
        stylize(src, "anime", 1.5)

    assert src == before


def test_style_parameters_report_every_problem():
    params = StyleParameters(
        intensity=0.5,
        color_sigma=-1,
        quantization_levels=1,
        edge_threshold=20,
        brightness_factor=0,
        kernel_radius=0,
    )

    with pytest.raises(InvalidParameters) as excinfo:
        params.validate()

    assert len(excinfo.value.problems) == 4


def test_custom_pipeline_runs_stages_in_order():
    src = PixelBuffer.blank(3, 3, (100, 100, 100, 255))
    pipeline = Pipeline(["posterize", "brighten"])

    result = pipeline.run(src, anime_parameters(0.5))

    # 100 -> bucket 3 of 8 -> 112, then * 1.1
    assert result.rgb[0, 0].tolist() == [123, 123, 123]


def test_pipeline_requires_edges_before_compositing():
    with pytest.raises(InvalidParameters):
        Pipeline(["smooth", "composite_edges"])
    with pytest.raises(InvalidParameters):
        Pipeline(["smooth", "sparkle"])


def test_allocation_failure_becomes_surface_unavailable():
    def _exhausted(state):
        raise MemoryError

    pipeline = Pipeline([Stage("allocate", _exhausted)])

    with pytest.raises(SurfaceUnavailable):
        pipeline.run(PixelBuffer.blank(2, 2), anime_parameters(0.5))


def test_normalize_intensity_clamps_percent_scale():
    assert normalize_intensity(80) == 0.8
    assert normalize_intensity(150) == 1.0
    assert normalize_intensity(-5) == 0.0


@pytest.mark.parametrize("preset", ["anime", "cartoon", "manga"])
def test_read_only_pixel_view_is_stylized_from_a_copy(preset):
    img = Image.new("RGBA", (6, 5), (240, 240, 240, 255))
    img.paste((10, 10, 10, 255), (3, 0, 6, 5))
    view = np.asarray(img)
    assert not view.flags.writeable

    result = stylize(PixelBuffer(view), preset, 0.5)
    expected = stylize(PixelBuffer(np.array(img)), preset, 0.5)

    assert result == expected
    assert np.array_equal(view, np.asarray(img))
