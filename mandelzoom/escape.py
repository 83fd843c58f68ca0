"""Escape-time iteration over a pixel grid."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

from .workers import WorkerPool

HORIZON_SQUARED = 4.0

_BAND_SPEC = tf.TensorSpec(shape=[None, None], dtype=tf.float64)


@dataclass(frozen=True)
class Viewport:
    """Bounds of the complex-plane window mapped onto one frame."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float


@dataclass(frozen=True)
class EscapeField:
    """Escape counts for every pixel plus one private histogram per worker."""

    iterations: np.ndarray
    histograms: np.ndarray
    max_iterations: int

    @property
    def shape(self) -> tuple[int, int]:
        return self.iterations.shape


@tf.function
def _escape_step(
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance ``z <- z*z + c`` for points that are still inside the horizon."""

    zr_new = zr * zr - zi * zi + cr
    zi_new = 2.0 * zr * zi + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    ns = ns + tf.cast(active, tf.int32)
    magnitude2 = zr * zr + zi * zi
    active = tf.logical_and(active, magnitude2 <= HORIZON_SQUARED)
    return zr, zi, ns, active


@tf.function(input_signature=[_BAND_SPEC, _BAND_SPEC, tf.TensorSpec(shape=[], dtype=tf.int32)])
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate a band of points with a TensorFlow while loop and return the counts."""

    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    ns = tf.zeros(tf.shape(cr), dtype=tf.int32)
    active = tf.ones(tf.shape(cr), dtype=tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _escape_step(zr, zi, cr, ci, ns, active)
        return i + 1, zr, zi, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return ns


def pixel_coordinates(viewport: Viewport, width: int, height: int, start: int, stop: int) -> tuple[np.ndarray, np.ndarray]:
    """Real and imaginary sample coordinates for rows ``[start, stop)``."""

    cols = np.arange(width, dtype=np.float64)
    rows = np.arange(start, stop, dtype=np.float64)
    x_span = np.float64(viewport.x_max) - np.float64(viewport.x_min)
    y_span = np.float64(viewport.y_max) - np.float64(viewport.y_min)
    re = np.float64(viewport.x_min) + cols / width * x_span
    im = np.float64(viewport.y_min) + rows / height * y_span
    return re, im


def escape_band(
    viewport: Viewport,
    width: int,
    height: int,
    start: int,
    stop: int,
    max_iterations: int,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Compute escape counts for the rows ``[start, stop)`` of the frame."""

    re, im = pixel_coordinates(viewport, width, height, start, stop)
    with tf.device(device if device is not None else "/CPU:0"):
        re_tf = tf.convert_to_tensor(re, dtype=tf.float64)
        im_tf = tf.convert_to_tensor(im, dtype=tf.float64)
        CR, CI = tf.meshgrid(re_tf, im_tf)
        ns = _escape_run(CR, CI, tf.constant(max_iterations, dtype=tf.int32))
    return ns.numpy()


def compute_escape_field(
    viewport: Viewport,
    width: int,
    height: int,
    max_iterations: int,
    pool: WorkerPool,
    *,
    device: Optional[str] = None,
) -> EscapeField:
    """Compute the escape field and per-worker histograms for a full frame.

    Rows are split into one contiguous band per worker. Each worker writes
    only its own rows of ``iterations`` and its own row of ``histograms``.
    """

    iterations = np.zeros((height, width), dtype=np.int32)
    histograms = np.zeros((pool.size, max_iterations + 1), dtype=np.int64)

    def work(worker: int, start: int, stop: int) -> None:
        if start == stop:
            return
        band = escape_band(viewport, width, height, start, stop, max_iterations, device=device)
        iterations[start:stop] = band
        histograms[worker] += np.bincount(band.ravel(), minlength=max_iterations + 1)

    pool.run(work, height)
    return EscapeField(iterations=iterations, histograms=histograms, max_iterations=max_iterations)
