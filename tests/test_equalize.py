import numpy as np
import pytest

from mandelzoom.equalize import compute_cdf, merge_histograms


def test_merge_sums_index_by_index():
    histograms = np.array([[1, 0, 2], [0, 3, 1], [4, 0, 0]])

    np.testing.assert_array_equal(merge_histograms(histograms), [5, 3, 3])


def test_merge_is_independent_of_worker_order():
    rng = np.random.default_rng(7)
    histograms = rng.integers(0, 50, size=(5, 33))

    merged = merge_histograms(histograms)
    shuffled = merge_histograms(histograms[rng.permutation(5)])

    np.testing.assert_array_equal(merged, shuffled)


def test_merge_is_independent_of_worker_count():
    counts = np.array([3, 1, 4, 1, 5, 9, 2, 6])
    split = np.array([[3, 0, 4, 0, 5, 0, 2, 0], [0, 1, 0, 1, 0, 9, 0, 6]])

    np.testing.assert_array_equal(merge_histograms(counts[np.newaxis, :]), merge_histograms(split))


def test_merge_rejects_flat_input():
    with pytest.raises(ValueError):
        merge_histograms(np.array([1, 2, 3]))


def test_cdf_is_monotonic_and_ends_at_one():
    histogram = np.array([10, 0, 3, 7, 0, 0, 20])

    cdf = compute_cdf(histogram, int(histogram.sum()))

    assert cdf.shape == histogram.shape
    assert np.all(np.diff(cdf) >= 0)
    assert cdf[0] == pytest.approx(0.25)
    assert cdf[-1] == pytest.approx(1.0, abs=1e-9)


def test_cdf_values_stay_in_unit_interval():
    histogram = np.random.default_rng(3).integers(0, 1000, size=257)

    cdf = compute_cdf(histogram, int(histogram.sum()))

    assert cdf.min() >= 0.0
    assert cdf.max() <= 1.0


def test_cdf_requires_pixels():
    with pytest.raises(ValueError):
        compute_cdf(np.zeros(4, dtype=np.int64), 0)
