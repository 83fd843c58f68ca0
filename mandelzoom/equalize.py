"""Histogram merging and cumulative distributions for equalized coloring."""

from __future__ import annotations

import numpy as np


def merge_histograms(histograms: np.ndarray) -> np.ndarray:
    """Sum per-worker histograms index by index.

    ``histograms`` is a ``(workers, max_iterations + 1)`` array, or any
    sequence of equally long 1-D arrays.
    """

    stacked = np.asarray(histograms, dtype=np.int64)
    if stacked.ndim != 2:
        raise ValueError("histograms must be a 2-D array of shape (workers, max_iterations + 1)")
    return stacked.sum(axis=0, dtype=np.int64)


def compute_cdf(histogram: np.ndarray, total_pixels: int) -> np.ndarray:
    """Normalized running sum of ``histogram``; the last entry is 1 for a full frame."""

    if total_pixels <= 0:
        raise ValueError("total_pixels must be positive")
    counts = np.asarray(histogram, dtype=np.int64)
    return np.cumsum(counts, dtype=np.int64) / np.float64(total_pixels)
