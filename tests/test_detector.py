from __future__ import annotations

import logging

import numpy as np
import pytest

from circlegrid import CircleGridConfig, create_canonicalizer, create_circle_grid_detector
from circlegrid.core.ellipse import Ellipse
from circlegrid.core.grid import Grid
from circlegrid.detect.binarize import ThresholdBinarizer
from circlegrid.detect.clusters import EllipsesIntoClusters
from circlegrid.detect.ellipses import ContourEllipseDetector
from circlegrid.detect.grid_fit import EllipseClustersIntoGrid
from circlegrid.detector import DetectCircleGrid
from circlegrid.sim.effects import degrade
from circlegrid.sim.patterns.circle_grid import CircleGridSpec, affine_matrix, render_circle_grid


pytestmark = pytest.mark.integration


def _canonical_truth(spec: CircleGridSpec, centers: np.ndarray) -> np.ndarray:
    """Rendered centres reordered the way the detector is expected to report them."""
    g = Grid()
    g.set_shape(spec.rows, spec.cols)
    it = iter(centers.tolist())
    for r in range(spec.rows):
        for c in range(spec.cols):
            if spec.is_populated(r, c):
                x, y = next(it)
                g.cells[r * spec.cols + c] = Ellipse(x, y)
    assert create_canonicalizer(spec.pattern, spec.rows, spec.cols).canonicalize(g)
    return g.populated_centers()


def test_process_easy():
    spec = CircleGridSpec(rows=5, cols=4)
    img, centers = render_circle_grid(spec)

    alg = create_circle_grid_detector(CircleGridConfig(num_rows=5, num_cols=4))
    alg.process(img)

    grids = alg.get_grids()
    assert len(grids) == 1
    g = grids[0]
    assert (g.rows, g.columns) == (5, 4)
    assert g.num_populated == 10
    for i, e in enumerate(g.cells):
        r, c = divmod(i, g.columns)
        assert (e is not None) == ((r + c) % 2 == 0)

    pts = alg.get_calibration_points()
    assert len(pts) == 1
    assert np.allclose(pts[0], centers, atol=1.0)


@pytest.mark.parametrize("angle", [30.0, 120.0, -100.0, 180.0])
def test_process_rotated(angle):
    spec = CircleGridSpec(rows=5, cols=4, spacing_px=40.0, radius_px=15.0)
    A = affine_matrix(scale=1.0, angle_deg=angle, tx=320.0, ty=320.0)
    img, centers = render_circle_grid(spec, A, image_size=(700, 700))

    alg = create_circle_grid_detector(CircleGridConfig(num_rows=5, num_cols=4))
    alg.process(img)

    pts = alg.get_calibration_points()
    assert len(pts) == 1
    assert alg.get_grids()[0].get(0, 0) is not None
    assert np.allclose(pts[0], _canonical_truth(spec, centers), atol=1.0)


def test_process_square_target_under_affine_and_noise():
    spec = CircleGridSpec(rows=5, cols=5, spacing_px=36.0, radius_px=14.0)
    A = affine_matrix(scale=1.0, angle_deg=-35.0, tx=250.0, ty=300.0, shear=0.05)
    img, centers = render_circle_grid(spec, A, image_size=(640, 600))
    img = degrade(img, blur_fwhm_px=2.0, noise_std=3.0, seed=4)

    alg = create_circle_grid_detector(CircleGridConfig(num_rows=5, num_cols=5))
    alg.process(img)

    pts = alg.get_calibration_points()
    assert len(pts) == 1
    assert np.allclose(pts[0], _canonical_truth(spec, centers), atol=1.0)


def test_process_regular_grid():
    spec = CircleGridSpec(rows=4, cols=5, spacing_px=40.0, radius_px=12.0, pattern="regular")
    A = affine_matrix(angle_deg=90.0, tx=300.0, ty=80.0)
    img, centers = render_circle_grid(spec, A, image_size=(400, 350))

    alg = create_circle_grid_detector(CircleGridConfig(num_rows=4, num_cols=5, pattern="regular"))
    alg.process(img)

    grids = alg.get_grids()
    assert len(grids) == 1
    assert (grids[0].rows, grids[0].columns) == (4, 5)
    assert grids[0].num_populated == 20
    assert np.allclose(alg.get_calibration_points()[0], _canonical_truth(spec, centers), atol=1.0)


def test_process_two_targets():
    spec = CircleGridSpec(rows=4, cols=3, spacing_px=40.0, radius_px=15.0)
    left, _ = render_circle_grid(spec, affine_matrix(tx=60.0, ty=60.0), image_size=(700, 350))
    right, _ = render_circle_grid(spec, affine_matrix(angle_deg=15.0, tx=450.0, ty=80.0), image_size=(700, 350))
    img = np.minimum(left, right)

    alg = create_circle_grid_detector(CircleGridConfig(num_rows=4, num_cols=3))
    alg.process(img)

    assert len(alg.get_ellipses()) == 12
    assert len(alg.get_clusters()) == 2
    assert len(alg.get_grids()) == 2


def test_blank_image_finds_nothing():
    alg = create_circle_grid_detector(CircleGridConfig(num_rows=5, num_cols=4))
    alg.process(np.full((350, 400), 255, dtype=np.uint8))
    assert alg.get_grids() == []
    assert alg.get_calibration_points() == []


def test_wrong_target_size_finds_nothing():
    img, _ = render_circle_grid(CircleGridSpec(rows=5, cols=4))

    alg = create_circle_grid_detector(CircleGridConfig(num_rows=4, num_cols=4))
    alg.process(img)

    assert len(alg.get_ellipses()) == 10
    assert len(alg.get_clusters()) == 1
    assert alg.get_clusters_pruned() == []
    assert alg.get_grids() == []


def test_results_reset_between_calls():
    img, _ = render_circle_grid(CircleGridSpec(rows=5, cols=4))
    alg = create_circle_grid_detector(CircleGridConfig(num_rows=5, num_cols=4))

    alg.process(img)
    assert len(alg.get_grids()) == 1
    assert alg.get_binary().shape == (350, 400)

    big, _ = render_circle_grid(CircleGridSpec(rows=5, cols=4), image_size=(640, 480))
    alg.process(big)
    assert len(alg.get_grids()) == 1
    assert alg.get_binary().shape == (480, 640)

    alg.process(np.full((100, 120), 255, dtype=np.uint8))
    assert alg.get_grids() == []
    assert alg.get_clusters_pruned() == []
    assert alg.get_binary().shape == (100, 120)


def test_verbose_traces_each_stage(caplog):
    img, _ = render_circle_grid(CircleGridSpec(rows=5, cols=4))
    alg = create_circle_grid_detector(CircleGridConfig(num_rows=5, num_cols=4))
    assert (alg.rows, alg.columns) == (5, 4)

    with caplog.at_level(logging.INFO, logger="circlegrid"):
        alg.process(img)
    assert not caplog.records

    alg.set_verbose(True)
    with caplog.at_level(logging.INFO, logger="circlegrid"):
        alg.process(img)
    text = caplog.text
    assert "ENTER DetectCircleGrid.process()" in text
    assert "Found 10 ellipses" in text
    assert "Found 1 clusters" in text
    assert "Remaining grids after pruning 1" in text
    assert "EXIT DetectCircleGrid.process()" in text


def test_direct_construction_regular_target():
    spec = CircleGridSpec(rows=4, cols=5, spacing_px=40.0, radius_px=12.0, pattern="regular")
    img, centers = render_circle_grid(spec)

    alg = DetectCircleGrid(
        4,
        5,
        ThresholdBinarizer(),
        ContourEllipseDetector(),
        EllipsesIntoClusters(),
        EllipseClustersIntoGrid("regular"),
        create_canonicalizer("regular", 4, 5),
    )
    assert alg.expected_count == 20
    alg.process(img)

    assert [len(c) for c in alg.get_clusters_pruned()] == [20]
    assert len(alg.get_grids()) == 1
    assert np.allclose(alg.get_calibration_points()[0], _canonical_truth(spec, centers), atol=1.0)


def test_direct_construction_staggered_target():
    alg = DetectCircleGrid(
        5,
        4,
        ThresholdBinarizer(),
        ContourEllipseDetector(),
        EllipsesIntoClusters(),
        EllipseClustersIntoGrid("asymmetric"),
        create_canonicalizer("asymmetric", 5, 4),
    )
    assert alg.expected_count == 10


def test_set_verbose_reaches_collaborators():
    alg = create_circle_grid_detector(CircleGridConfig(num_rows=5, num_cols=4))
    assert not hasattr(alg.binarizer, "set_verbose")

    alg.set_verbose(True)
    assert alg.verbose
    assert alg.ellipse_detector.verbose
    assert alg.grider.verbose

    alg.set_verbose(False)
    assert not alg.ellipse_detector.verbose
    assert not alg.grider.verbose


def test_published_grids_are_not_the_fitter_grids():
    img, centers = render_circle_grid(CircleGridSpec(rows=5, cols=4))
    alg = create_circle_grid_detector(CircleGridConfig(num_rows=5, num_cols=4))
    alg.process(img)

    published = alg.get_grids()
    assert len(published) == 1
    fitted = alg.grider.get_grids()
    assert all(p is not f for p in published for f in fitted)

    # a fitter reusing its grids must not change what was published
    for f in fitted:
        f.set_shape(1, 1)
    assert (published[0].rows, published[0].columns) == (5, 4)
    assert np.allclose(alg.get_calibration_points()[0], centers, atol=1.0)
