"""Zoom progression for a Mandelbrot zoom animation."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterator, Optional

DEFAULT_CENTER = (-0.74364388703715870475, 0.13182590420531197049)
DEFAULT_BASE_RANGE_X = 3.0
DEFAULT_SECONDS_PER_DOUBLING = 1.25


@dataclass(frozen=True)
class AnimationConfig:
    """Fixed settings of one animation run."""

    width: int
    height: int
    fps: int
    zoom_end: float
    seconds_per_doubling: float = DEFAULT_SECONDS_PER_DOUBLING
    center: tuple[float, float] = DEFAULT_CENTER
    base_range_x: float = DEFAULT_BASE_RANGE_X

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be positive")
        if self.fps <= 0:
            raise ValueError("fps must be positive")
        if not math.isfinite(self.zoom_end) or self.zoom_end <= 0:
            raise ValueError("zoom_end must be positive and finite")
        if not math.isfinite(self.seconds_per_doubling) or self.seconds_per_doubling <= 0:
            raise ValueError("seconds_per_doubling must be positive and finite")

    @property
    def aspect(self) -> float:
        return self.width / self.height

    @property
    def base_range_y(self) -> float:
        return self.base_range_x / self.aspect

    @property
    def zoom_scale_per_second(self) -> float:
        return 2.0 ** (1.0 / self.seconds_per_doubling)

    @property
    def scale_per_frame(self) -> float:
        return self.zoom_scale_per_second ** (1.0 / self.fps)


@dataclass(frozen=True)
class AnimationState:
    zoom: float
    frame_index: int
    center: tuple[float, float]
    base_range_x: float
    base_range_y: float

    @classmethod
    def initial(cls, config: AnimationConfig) -> "AnimationState":
        return cls(
            zoom=1.0,
            frame_index=0,
            center=config.center,
            base_range_x=config.base_range_x,
            base_range_y=config.base_range_y,
        )


@dataclass(frozen=True)
class AnimationSummary:
    frames: int
    final_zoom: float
    center: tuple[float, float]
    elapsed: float

    @property
    def seconds_per_frame(self) -> float:
        return self.elapsed / self.frames if self.frames else 0.0


@dataclass
class AnimationDriver:
    """Advance the zoom geometrically and render one frame per step.

    The zoom is multiplied before each frame is rendered, so the last frame
    is the first one whose zoom reaches ``zoom_end`` and usually overshoots it.
    """

    config: AnimationConfig
    renderer: Callable[[AnimationState], Any]
    state: AnimationState = field(init=False)
    scale_per_frame: float = field(init=False)

    def __post_init__(self) -> None:
        self.state = AnimationState.initial(self.config)
        self.scale_per_frame = self.config.scale_per_frame

    @property
    def done(self) -> bool:
        return self.state.zoom >= self.config.zoom_end

    def frames(self) -> Iterator[Any]:
        """Yield frames until the zoom reaches ``zoom_end``.

        ``frame_index`` advances once the consumer has taken the frame.
        """

        while not self.done:
            self.state = replace(self.state, zoom=self.state.zoom * self.scale_per_frame)
            frame = self.renderer(self.state)
            yield frame
            self.state = replace(self.state, frame_index=self.state.frame_index + 1)

    def run(
        self,
        sink: Callable[[Any], None],
        progress: Optional[Callable[[int, float], None]] = None,
    ) -> AnimationSummary:
        time_start = time.perf_counter()
        for frame in self.frames():
            sink(frame)
            if progress is not None:
                progress(self.state.frame_index, self.state.zoom)
        elapsed = time.perf_counter() - time_start
        return AnimationSummary(
            frames=self.state.frame_index,
            final_zoom=self.state.zoom,
            center=self.state.center,
            elapsed=elapsed,
        )
