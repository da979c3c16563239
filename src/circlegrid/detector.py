from __future__ import annotations

import numpy as np

from circlegrid.config import CircleGridConfig
from circlegrid.core.canonical import GridCanonicalizer, create_canonicalizer
from circlegrid.core.ellipse import Ellipse
from circlegrid.core.grid import Grid
from circlegrid.core.shape_filters import prune_incorrect_shape, prune_incorrect_size
from circlegrid.detect.binarize import ThresholdBinarizer
from circlegrid.detect.clusters import EllipsesIntoClusters
from circlegrid.detect.contracts import Binarizer, Cluster, ClusterFinder, EllipseDetector, GridFitter
from circlegrid.detect.ellipses import ContourEllipseDetector
from circlegrid.detect.grid_fit import EllipseClustersIntoGrid
from circlegrid.log import get_logger


log = get_logger("detector")


class DetectCircleGrid:
    """
    Finds calibration grids of circles in a gray image and puts each of them
    into the target's canonical orientation.

    One call to `process` runs binarization, ellipse detection, clustering,
    size pruning, grid fitting, shape pruning and canonicalization. Results of
    the previous call are discarded. Internal buffers are reused across calls,
    so an instance must not be shared between threads.

    Published grids are copies of the fitter output, so a fitter that reuses
    its Grid objects between calls does not alter earlier results.
    `expected_count` defaults to the marker count of the canonicalizer's
    target topology.
    """

    def __init__(
        self,
        num_rows: int,
        num_cols: int,
        binarizer: Binarizer,
        ellipse_detector: EllipseDetector,
        clustering: ClusterFinder,
        grider: GridFitter,
        canonicalizer: GridCanonicalizer,
        expected_count: int | None = None,
    ) -> None:
        self.num_rows = int(num_rows)
        self.num_cols = int(num_cols)
        self.binarizer = binarizer
        self.ellipse_detector = ellipse_detector
        self.clustering = clustering
        self.grider = grider
        self.canonicalizer = canonicalizer
        if expected_count is None:
            expected_count = canonicalizer.total_ellipses()
        self.expected_count = int(expected_count)

        self.verbose = False
        self._binary = np.zeros((1, 1), dtype=np.uint8)
        self._ellipses: list[Ellipse] = []
        self._clusters: list[Cluster] = []
        self._clusters_pruned: list[Cluster] = []
        self._valid_grids: list[Grid] = []

    def process(self, gray: np.ndarray) -> None:
        """Process the image and find grids. Retrieve them with `get_grids()`."""
        if self.verbose:
            log.info("ENTER DetectCircleGrid.process()")

        gray = np.asarray(gray)
        if self._binary.shape != gray.shape[:2]:
            self._binary = np.zeros(gray.shape[:2], dtype=np.uint8)

        self.binarizer.process(gray, self._binary)

        self.ellipse_detector.process(gray, self._binary)
        self._ellipses = list(self.ellipse_detector.get_found_ellipses())
        if self.verbose:
            log.info("  Found %d ellipses", len(self._ellipses))

        self._clusters.clear()
        self.clustering.process(self._ellipses, self._clusters)
        self._clusters_pruned.clear()
        self._clusters_pruned.extend(self._clusters)
        if self.verbose:
            log.info("  Found %d clusters", len(self._clusters))

        prune_incorrect_size(self._clusters_pruned, self.expected_count)
        if self.verbose:
            log.info("  Remaining clusters after pruning %d", len(self._clusters_pruned))

        self.grider.process(self._ellipses, self._clusters_pruned)
        grids = list(self.grider.get_grids())
        if self.verbose:
            log.info("  Found %d grids", len(grids))

        prune_incorrect_shape(grids, self.num_rows, self.num_cols)
        if self.verbose:
            log.info("  Remaining grids after pruning %d", len(grids))

        self._valid_grids = []
        for g in grids:
            if self.canonicalizer.canonicalize(g):
                self._valid_grids.append(g.copy())

        if self.verbose:
            log.info("  Canonical grids %d", len(self._valid_grids))
            log.info("EXIT DetectCircleGrid.process()")

    def get_grids(self) -> list[Grid]:
        """Grids found by the last call to `process`, in canonical orientation."""
        return self._valid_grids

    def get_calibration_points(self) -> list[np.ndarray]:
        """Per grid, the (N,2) centres of populated cells in canonical row-major order."""
        return [g.populated_centers() for g in self._valid_grids]

    def get_clusters(self) -> list[Cluster]:
        return self._clusters

    def get_clusters_pruned(self) -> list[Cluster]:
        return self._clusters_pruned

    def get_ellipses(self) -> list[Ellipse]:
        return self._ellipses

    def get_binary(self) -> np.ndarray:
        return self._binary

    @property
    def rows(self) -> int:
        return self.num_rows

    @property
    def columns(self) -> int:
        return self.num_cols

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = bool(verbose)
        for part in (self.binarizer, self.ellipse_detector, self.clustering, self.grider):
            setter = getattr(part, "set_verbose", None)
            if setter is not None:
                setter(self.verbose)


def create_circle_grid_detector(config: CircleGridConfig) -> DetectCircleGrid:
    """Wire the default OpenCV based collaborators for the configured target."""
    return DetectCircleGrid(
        config.num_rows,
        config.num_cols,
        binarizer=ThresholdBinarizer(config.threshold),
        ellipse_detector=ContourEllipseDetector(config.ellipse),
        clustering=EllipsesIntoClusters(config.cluster),
        grider=EllipseClustersIntoGrid(config.pattern, config.grid),
        canonicalizer=create_canonicalizer(config.pattern, config.num_rows, config.num_cols),
    )
