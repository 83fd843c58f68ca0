import numpy as np
import pytest

from mandelzoom.colorize import DEFAULT_SCHEME, ColorScheme, colorize, colorize_band
from mandelzoom.escape import EscapeField
from mandelzoom.workers import WorkerPool


def _field(iterations, max_iterations):
    iterations = np.asarray(iterations, dtype=np.int32)
    histograms = np.bincount(iterations.ravel(), minlength=max_iterations + 1)[np.newaxis, :]
    return EscapeField(iterations=iterations, histograms=histograms, max_iterations=max_iterations)


def test_default_scheme_is_blue_with_half_gamma():
    assert DEFAULT_SCHEME.hue_degrees == 220.0
    assert DEFAULT_SCHEME.saturation == 1.0
    assert DEFAULT_SCHEME.gamma == 0.5


def test_interior_pixels_are_black_regardless_of_cdf():
    iterations = np.array([[4, 1], [4, 2]])
    cdf = np.ones(5)

    rgb = colorize_band(iterations, cdf, 4)

    np.testing.assert_array_equal(rgb[0, 0], [0, 0, 0])
    np.testing.assert_array_equal(rgb[1, 0], [0, 0, 0])
    assert rgb[0, 1].any()


def test_full_intensity_maps_to_saturated_blue():
    rgb = colorize_band(np.array([[0]]), np.array([1.0, 1.0]), 1)

    np.testing.assert_array_equal(rgb[0, 0], [0, 85, 255])


def test_gamma_brightens_low_cdf_values():
    # 0.25 ** 0.5 == 0.5, so the value channel lands on round(127.5).
    rgb = colorize_band(np.array([[0]]), np.array([0.25, 1.0]), 1)

    assert rgb[0, 0, 0] == 0
    assert rgb[0, 0, 2] == 128
    assert rgb[0, 0, 1] == pytest.approx(128 / 3, abs=1)


def test_brightness_follows_the_cdf():
    iterations = np.array([[0, 1, 2, 3]])
    cdf = np.array([0.1, 0.4, 0.7, 1.0, 1.0])

    rgb = colorize_band(iterations, cdf, 4)

    assert np.all(np.diff(rgb[0, :, 2].astype(int)) > 0)


def test_custom_scheme_changes_hue():
    red = ColorScheme(hue_degrees=0.0, saturation=1.0, gamma=1.0)

    rgb = colorize_band(np.array([[0]]), np.array([1.0, 1.0]), 1, red)

    np.testing.assert_array_equal(rgb[0, 0], [255, 0, 0])


def test_parallel_colorize_matches_single_pass():
    rng = np.random.default_rng(11)
    iterations = rng.integers(0, 31, size=(13, 9))
    field = _field(iterations, 30)
    cdf = np.cumsum(field.histograms[0]) / iterations.size

    with WorkerPool(4) as pool:
        parallel = colorize(field, cdf, pool=pool)
    serial = colorize(field, cdf)

    assert parallel.dtype == np.uint8
    assert parallel.shape == (13, 9, 3)
    np.testing.assert_array_equal(parallel, serial)
    np.testing.assert_array_equal(parallel[iterations == 30], 0)
