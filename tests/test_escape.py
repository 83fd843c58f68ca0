import numpy as np
import pytest

from mandelzoom.equalize import merge_histograms
from mandelzoom.escape import Viewport, compute_escape_field, pixel_coordinates
from mandelzoom.workers import WorkerPool

SQUARE = Viewport(x_min=-2.0, x_max=2.0, y_min=-2.0, y_max=2.0)


@pytest.fixture
def pool():
    with WorkerPool(3) as pool:
        yield pool


def test_pixel_coordinates_divide_by_the_pixel_count():
    re, im = pixel_coordinates(SQUARE, 4, 4, 1, 3)

    np.testing.assert_array_equal(re, [-2.0, -1.0, 0.0, 1.0])
    np.testing.assert_array_equal(im, [-1.0, 0.0])


def test_escape_values_stay_within_bounds(pool):
    field = compute_escape_field(SQUARE, 4, 4, 10, pool)

    assert field.iterations.shape == (4, 4)
    assert field.iterations.min() >= 0
    assert field.iterations.max() <= 10


def test_known_escape_counts(pool):
    field = compute_escape_field(SQUARE, 4, 4, 10, pool)

    # c = -2 - 2i leaves the radius-2 disk after one step.
    assert field.iterations[0, 0] == 1
    # c = 0 never escapes.
    assert field.iterations[2, 2] == 10
    # c = -2 settles on |z| == 2 exactly, which still counts as bounded.
    assert field.iterations[2, 0] == 10


def test_histograms_account_for_every_pixel(pool):
    viewport = Viewport(x_min=-2.5, x_max=1.0, y_min=-1.2, y_max=1.2)
    field = compute_escape_field(viewport, 23, 17, 50, pool)

    assert field.histograms.shape == (pool.size, 51)
    assert merge_histograms(field.histograms).sum() == 23 * 17


def test_histogram_matches_field_counts(pool):
    viewport = Viewport(x_min=-2.5, x_max=1.0, y_min=-1.2, y_max=1.2)
    field = compute_escape_field(viewport, 20, 11, 40, pool)

    expected = np.bincount(field.iterations.ravel(), minlength=41)
    np.testing.assert_array_equal(merge_histograms(field.histograms), expected)


def test_field_is_reproducible_across_runs_and_worker_counts():
    fields = []
    for workers in (1, 2, 4, 4):
        with WorkerPool(workers) as pool:
            fields.append(compute_escape_field(SQUARE, 4, 4, 10, pool))

    reference = fields[0]
    for field in fields[1:]:
        np.testing.assert_array_equal(field.iterations, reference.iterations)
        np.testing.assert_array_equal(
            merge_histograms(field.histograms),
            merge_histograms(reference.histograms),
        )


def test_more_workers_than_rows():
    with WorkerPool(6) as pool:
        field = compute_escape_field(SQUARE, 5, 2, 12, pool)

    assert field.histograms.shape == (6, 13)
    assert field.histograms.sum() == 10
