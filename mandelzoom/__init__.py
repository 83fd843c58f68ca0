"""Public API for histogram-equalized Mandelbrot zoom rendering."""

from .animation import AnimationConfig, AnimationDriver, AnimationState, AnimationSummary
from .colorize import DEFAULT_SCHEME, ColorScheme, colorize
from .equalize import compute_cdf, merge_histograms
from .escape import EscapeField, Viewport, compute_escape_field
from .renderer import Frame, FrameRenderer, compute_viewport, max_iterations_for_zoom
from .workers import WorkerPool

__all__ = [
    "AnimationConfig",
    "AnimationDriver",
    "AnimationState",
    "AnimationSummary",
    "ColorScheme",
    "DEFAULT_SCHEME",
    "EscapeField",
    "Frame",
    "FrameRenderer",
    "Viewport",
    "WorkerPool",
    "colorize",
    "compute_cdf",
    "compute_escape_field",
    "compute_viewport",
    "max_iterations_for_zoom",
    "merge_histograms",
]
