from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

from ..errors import InvalidParameters, SurfaceUnavailable
from .buffer import EdgeMap, PixelBuffer
from .edges import DEFAULT_DARKEN_FACTOR, composite_edges, detect_edges, edge_threshold_for, force_outlines
from .enhance import brighten, enhance_colors
from .posterize import binarize, posterize, posterize_levels_for
from .smoothing import DEFAULT_RADIUS, bilateral_filter, color_sigma_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StyleParameters:
    intensity: float
    color_sigma: float
    quantization_levels: int
    edge_threshold: float
    brightness_factor: float
    kernel_radius: int = DEFAULT_RADIUS
    edge_darken_factor: float = DEFAULT_DARKEN_FACTOR

    def validate(self) -> None:
        problems = []
        if not 0.0 <= self.intensity <= 1.0:
            problems.append(f"intensity must be within [0, 1], got {self.intensity}")
        if int(self.kernel_radius) != self.kernel_radius or self.kernel_radius < 1:
            problems.append(f"kernel_radius must be an integer >= 1, got {self.kernel_radius}")
        if self.color_sigma <= 0:
            problems.append(f"color_sigma must be > 0, got {self.color_sigma}")
        if int(self.quantization_levels) != self.quantization_levels or self.quantization_levels < 2:
            problems.append(f"quantization_levels must be an integer >= 2, got {self.quantization_levels}")
        if not 0.0 <= self.edge_darken_factor <= 1.0:
            problems.append(f"edge_darken_factor must be within [0, 1], got {self.edge_darken_factor}")
        if self.brightness_factor <= 0:
            problems.append(f"brightness_factor must be > 0, got {self.brightness_factor}")
        if problems:
            raise InvalidParameters(problems)

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def anime_parameters(intensity: float) -> StyleParameters:
    return StyleParameters(
        intensity=intensity,
        color_sigma=color_sigma_for(intensity),
        quantization_levels=posterize_levels_for(intensity),
        edge_threshold=edge_threshold_for(intensity),
        brightness_factor=1.05 + intensity * 0.1,
    )


# Cartoon stages each run at their own fixed strength: smoothing as if at 0.5,
# color boost at 0.6, outlines as if at 0.4.
CARTOON_PARAMETERS = StyleParameters(
    intensity=0.6,
    color_sigma=color_sigma_for(0.5),
    quantization_levels=8,
    edge_threshold=edge_threshold_for(0.4),
    brightness_factor=1.08,
)

MANGA_PARAMETERS = StyleParameters(
    intensity=0.0,
    color_sigma=color_sigma_for(0.0),
    quantization_levels=2,
    edge_threshold=30.0,
    brightness_factor=1.0,
)


class PipelineState:
    __slots__ = ("image", "edges", "params", "workers")

    def __init__(self, image: PixelBuffer, params: StyleParameters, workers: Optional[int] = None) -> None:
        self.image = image
        self.edges: Optional[EdgeMap] = None
        self.params = params
        self.workers = workers


@dataclass(frozen=True)
class Stage:
    name: str
    run: Callable[[PipelineState], None]
    needs_edges: bool = False


def _smooth(state: PipelineState) -> None:
    params = state.params
    state.image = bilateral_filter(
        state.image,
        params.intensity,
        radius=params.kernel_radius,
        color_sigma=params.color_sigma,
        workers=state.workers,
    )


def _enhance(state: PipelineState) -> None:
    enhance_colors(state.image, state.params.intensity)


def _detect_edges(state: PipelineState) -> None:
    state.edges = detect_edges(state.image, workers=state.workers)


def _posterize(state: PipelineState) -> None:
    posterize(state.image, state.params.quantization_levels)


def _composite_edges(state: PipelineState) -> None:
    composite_edges(state.image, state.edges, state.params.edge_threshold, state.params.edge_darken_factor)


def _brighten(state: PipelineState) -> None:
    brighten(state.image, state.params.brightness_factor)


def _binarize(state: PipelineState) -> None:
    binarize(state.image)


def _force_outlines(state: PipelineState) -> None:
    force_outlines(state.image, state.edges, state.params.edge_threshold)


STAGES: Dict[str, Stage] = {
    stage.name: stage
    for stage in (
        Stage("smooth", _smooth),
        Stage("enhance", _enhance),
        Stage("detect_edges", _detect_edges),
        Stage("posterize", _posterize),
        Stage("composite_edges", _composite_edges, needs_edges=True),
        Stage("brighten", _brighten),
        Stage("binarize", _binarize),
        Stage("force_outlines", _force_outlines, needs_edges=True),
    )
}


class Pipeline:
    """A fixed, ordered list of stages run over one buffer.

    Once started there is no branching and no retry. The buffer handed to
    :meth:`run` belongs to the pipeline; use the returned buffer.
    """

    def __init__(self, stages: Sequence[Union[str, Stage]], name: str = "custom") -> None:
        resolved = []
        for stage in stages:
            if isinstance(stage, str):
                if stage not in STAGES:
                    raise InvalidParameters(f"Unknown stage: {stage}")
                stage = STAGES[stage]
            resolved.append(stage)

        has_edges = False
        for stage in resolved:
            if stage.needs_edges and not has_edges:
                raise InvalidParameters(f"Stage {stage.name} needs a detect_edges stage before it")
            if stage.name == "detect_edges":
                has_edges = True

        self.name = name
        self.stages: Tuple[Stage, ...] = tuple(resolved)

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)

    def run(self, buffer: PixelBuffer, params: StyleParameters, *, workers: Optional[int] = None) -> PixelBuffer:
        params.validate()
        state = PipelineState(buffer, params, workers)
        started = time.perf_counter()
        try:
            for stage in self.stages:
                stage_start = time.perf_counter()
                stage.run(state)
                logger.debug("%s: %s took %.3fs", self.name, stage.name, time.perf_counter() - stage_start)
        except MemoryError as exc:
            raise SurfaceUnavailable(
                f"Could not allocate working buffers for a {buffer.width}x{buffer.height} image"
            ) from exc
        logger.info(
            "%s pipeline finished %dx%d in %.3fs",
            self.name,
            buffer.width,
            buffer.height,
            time.perf_counter() - started,
        )
        return state.image


# Anime takes its outlines from the color-boosted image before posterizing, so
# they follow the original detail. Cartoon takes them after posterizing, so
# they trace the flat color bands. Manga reads edges from the untouched source,
# which is why detection runs ahead of the in-place threshold.
ANIME = Pipeline(("smooth", "enhance", "detect_edges", "posterize", "composite_edges", "brighten"), name="anime")
CARTOON = Pipeline(("smooth", "enhance", "posterize", "detect_edges", "composite_edges", "brighten"), name="cartoon")
MANGA = Pipeline(("detect_edges", "binarize", "force_outlines"), name="manga")

PRESETS: Dict[str, Tuple[Pipeline, Callable[[float], StyleParameters]]] = {
    "anime": (ANIME, anime_parameters),
    "cartoon": (CARTOON, lambda _intensity: CARTOON_PARAMETERS),
    "manga": (MANGA, lambda _intensity: MANGA_PARAMETERS),
}


def preset_parameters(preset: str, intensity: float) -> StyleParameters:
    try:
        _, factory = PRESETS[preset]
    except KeyError:
        raise InvalidParameters(f"Unknown preset: {preset}") from None
    return factory(intensity)


def stylize(buffer: PixelBuffer, preset: str = "anime", intensity: float = 0.8, *, workers: Optional[int] = None) -> PixelBuffer:
    if preset not in PRESETS:
        raise InvalidParameters(f"Unknown preset: {preset}")
    if not 0.0 <= intensity <= 1.0:
        raise InvalidParameters(f"intensity must be within [0, 1], got {intensity}")
    pipeline, factory = PRESETS[preset]
    return pipeline.run(buffer, factory(intensity), workers=workers)


def apply_anime(buffer: PixelBuffer, intensity: float = 0.8) -> PixelBuffer:
    return stylize(buffer, "anime", intensity)


def apply_cartoon(buffer: PixelBuffer) -> PixelBuffer:
    return stylize(buffer, "cartoon", 0.0)


def apply_manga(buffer: PixelBuffer) -> PixelBuffer:
    return stylize(buffer, "manga", 0.0)


def normalize_intensity(percent: float) -> float:
    """Map the 0-100 slider scale onto [0, 1], clamping out-of-range input."""
    return min(1.0, max(0.0, float(percent) / 100.0))
