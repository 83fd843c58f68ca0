"""Rendering of single Mandelbrot frames from the animation state."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .animation import AnimationState
from .colorize import DEFAULT_SCHEME, ColorScheme, colorize
from .equalize import compute_cdf, merge_histograms
from .escape import Viewport, compute_escape_field
from .workers import WorkerPool

BASE_ITERATIONS = 64
ITERATIONS_PER_DOUBLING = 64


@dataclass(frozen=True)
class Frame:
    """A finished RGB frame and the parameters it was rendered with."""

    index: int
    zoom: float
    max_iterations: int
    viewport: Viewport
    histogram: np.ndarray
    pixels: np.ndarray


def max_iterations_for_zoom(zoom: float) -> int:
    """Iteration bound for ``zoom``: 64 plus 64 per doubling of the zoom."""

    return BASE_ITERATIONS + int(math.floor(math.log2(zoom) * ITERATIONS_PER_DOUBLING))


def compute_viewport(state: AnimationState) -> Viewport:
    scale = 1.0 / state.zoom
    x_range = state.base_range_x * scale
    y_range = state.base_range_y * scale
    x_center, y_center = state.center
    return Viewport(
        x_min=x_center - x_range / 2.0,
        x_max=x_center + x_range / 2.0,
        y_min=y_center - y_range / 2.0,
        y_max=y_center + y_range / 2.0,
    )


@dataclass
class FrameRenderer:
    """Turn an :class:`AnimationState` into a colored :class:`Frame`.

    Each phase finishes on every worker before the next one starts: the
    CDF needs the complete histogram, which needs the complete field.
    """

    width: int
    height: int
    pool: WorkerPool
    scheme: ColorScheme = DEFAULT_SCHEME
    device: Optional[str] = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("frame dimensions must be positive")

    def __call__(self, state: AnimationState) -> Frame:
        return self.render(state)

    def render(self, state: AnimationState) -> Frame:
        viewport = compute_viewport(state)
        max_iterations = max_iterations_for_zoom(state.zoom)

        field = compute_escape_field(
            viewport,
            self.width,
            self.height,
            max_iterations,
            self.pool,
            device=self.device,
        )
        histogram = merge_histograms(field.histograms)
        cdf = compute_cdf(histogram, self.width * self.height)
        pixels = colorize(field, cdf, scheme=self.scheme, pool=self.pool)

        return Frame(
            index=state.frame_index,
            zoom=state.zoom,
            max_iterations=max_iterations,
            viewport=viewport,
            histogram=histogram,
            pixels=pixels,
        )
