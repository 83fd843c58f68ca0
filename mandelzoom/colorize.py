"""Map escape counts through an equalized CDF to RGB pixels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from matplotlib.colors import hsv_to_rgb

from .escape import EscapeField
from .workers import WorkerPool


@dataclass(frozen=True)
class ColorScheme:
    """Single-hue palette; brightness comes from the equalized CDF."""

    hue_degrees: float = 220.0
    saturation: float = 1.0
    gamma: float = 0.5


DEFAULT_SCHEME = ColorScheme()


def colorize_band(iterations: np.ndarray, cdf: np.ndarray, max_iterations: int, scheme: ColorScheme = DEFAULT_SCHEME) -> np.ndarray:
    """Return ``uint8`` RGB pixels for a block of escape counts."""

    interior = iterations == max_iterations
    v = np.asarray(cdf, dtype=np.float64)[iterations]
    intensity = np.rint(255.0 * np.clip(v, 0.0, 1.0) ** scheme.gamma)

    hsv = np.empty(iterations.shape + (3,), dtype=np.float64)
    hsv[..., 0] = (scheme.hue_degrees % 360.0) / 360.0
    hsv[..., 1] = scheme.saturation
    hsv[..., 2] = intensity / 255.0

    rgb = np.uint8(np.clip(np.rint(hsv_to_rgb(hsv) * 255.0), 0, 255))
    rgb[interior] = 0
    return rgb


def colorize(
    field: EscapeField,
    cdf: np.ndarray,
    *,
    scheme: ColorScheme = DEFAULT_SCHEME,
    pool: Optional[WorkerPool] = None,
) -> np.ndarray:
    """Colorize a whole escape field, splitting rows over ``pool`` when given."""

    height, width = field.shape
    if pool is None:
        return colorize_band(field.iterations, cdf, field.max_iterations, scheme)

    pixels = np.zeros((height, width, 3), dtype=np.uint8)

    def work(worker: int, start: int, stop: int) -> None:
        if start == stop:
            return
        pixels[start:stop] = colorize_band(field.iterations[start:stop], cdf, field.max_iterations, scheme)

    pool.run(work, height)
    return pixels
