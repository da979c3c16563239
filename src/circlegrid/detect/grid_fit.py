from __future__ import annotations

from collections import deque

import numpy as np
from scipy.spatial import cKDTree as KDTree

from circlegrid.config import GridFitConfig
from circlegrid.core.canonical import Pattern
from circlegrid.core.ellipse import Ellipse, centers_array
from circlegrid.core.grid import Grid
from circlegrid.core.shape_filters import total_ellipses
from circlegrid.log import get_logger


log = get_logger("grid_fit")

# self + 8 neighbours
_NUM_NEIGHBORS = 9


def estimate_lattice_basis(origin: np.ndarray, neighbors: np.ndarray) -> np.ndarray:
    """
    Two lattice steps as the columns of a 2x2 matrix: the shortest offset from
    `origin` and the shortest offset that is not close to parallel to it.

    When all neighbours are collinear the second step is the first one rotated
    by 90 degrees.
    """
    offsets = np.asarray(neighbors, dtype=np.float64).reshape(-1, 2) - origin
    lengths = np.linalg.norm(offsets, axis=1)
    order = np.argsort(lengths)
    offsets = offsets[order]
    lengths = lengths[order]

    b1 = offsets[0]
    b2 = None
    for d, n in zip(offsets[1:], lengths[1:]):
        sin = abs(b1[0] * d[1] - b1[1] * d[0]) / max(lengths[0] * n, 1e-12)
        if sin > 0.5:
            b2 = d
            break
    if b2 is None:
        b2 = np.array([-b1[1], b1[0]], dtype=np.float64)
    return np.stack([b1, b2], axis=1)


class EllipseClustersIntoGrid:
    """
    Arranges each cluster into a rows x columns Grid.

    Integer lattice coordinates are propagated breadth first from the marker
    closest to the cluster centroid. Every step is solved in a basis that is
    updated from the steps already taken, which tolerates moderate perspective.
    For staggered targets the nearest neighbours are the diagonals, so the
    lattice basis is diagonal in grid space: col = a + b, row = a - b.

    Clusters that cannot be assigned consistently, or whose markers do not
    fill the bounding rectangle as the pattern requires, produce no grid.
    """

    def __init__(self, pattern: Pattern, config: GridFitConfig | None = None) -> None:
        if pattern not in ("asymmetric", "regular"):
            raise ValueError(f"unknown pattern: {pattern}")
        self.pattern = pattern
        self.config = config or GridFitConfig()
        self.verbose = False
        self._grids: list[Grid] = []

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = bool(verbose)

    def get_grids(self) -> list[Grid]:
        return self._grids

    def process(self, ellipses: list[Ellipse], clusters: list[list[int]]) -> None:
        self._grids.clear()
        for cluster in clusters:
            g = self.fit_cluster([ellipses[i] for i in cluster])
            if g is not None:
                self._grids.append(g)

    def fit_cluster(self, members: list[Ellipse]) -> Grid | None:
        n = len(members)
        if n == 0:
            return None
        if n == 1:
            return Grid(rows=1, columns=1, cells=[members[0]])

        pts = centers_array(members)
        coords = self._assign_lattice(pts)
        if coords is None:
            return None

        if self.pattern == "regular":
            rc = np.stack([coords[:, 1], coords[:, 0]], axis=1)
        else:
            rc = np.stack([coords[:, 0] - coords[:, 1], coords[:, 0] + coords[:, 1]], axis=1)
        rc -= rc.min(axis=0)
        rows = int(rc[:, 0].max()) + 1
        cols = int(rc[:, 1].max()) + 1

        if self.pattern == "regular":
            expected = rows * cols
        else:
            parity = int(rc[0, 0] + rc[0, 1]) % 2
            expected = total_ellipses(rows, cols) if parity == 0 else rows * cols - total_ellipses(rows, cols)
        if n != expected:
            if self.verbose:
                log.info("  cluster of %d does not fill a %dx%d grid (%d expected)", n, rows, cols, expected)
            return None

        g = Grid()
        g.set_shape(rows, cols)
        for e, (r, c) in zip(members, rc.tolist(), strict=True):
            g.cells[r * cols + c] = e
        return g

    def _assign_lattice(self, pts: np.ndarray) -> np.ndarray | None:
        """Integer lattice coordinates (N,2) of every point, or None on conflict."""
        tol = self.config.lattice_tolerance
        n = len(pts)
        tree = KDTree(pts)
        k = min(n, _NUM_NEIGHBORS)
        _, nn = tree.query(pts, k=k)
        nn = np.asarray(nn).reshape(n, k)

        centroid = pts.mean(axis=0)
        seed = int(np.argmin(np.linalg.norm(pts - centroid, axis=1)))
        basis0 = estimate_lattice_basis(pts[seed], pts[nn[seed, 1:]])
        if abs(np.linalg.det(basis0)) < 1e-9:
            return None

        coords: dict[int, tuple[int, int]] = {seed: (0, 0)}
        owner: dict[tuple[int, int], int] = {(0, 0): seed}
        bases: dict[int, np.ndarray] = {seed: basis0}
        frontier = deque([seed])

        while frontier:
            i = frontier.popleft()
            basis = bases[i]
            ci = coords[i]
            for j in nn[i, 1:].tolist():
                d = pts[j] - pts[i]
                step = np.linalg.solve(basis, d)
                rstep = np.round(step)
                if np.any(np.abs(step - rstep) > tol) or np.any(np.abs(rstep) > 1) or not rstep.any():
                    continue
                sa, sb = int(rstep[0]), int(rstep[1])
                cj = (ci[0] + sa, ci[1] + sb)

                if j in coords:
                    if coords[j] != cj:
                        if self.verbose:
                            log.info("  inconsistent lattice coordinates for marker %d", j)
                        return None
                    continue
                if cj in owner:
                    if self.verbose:
                        log.info("  lattice cell %s claimed twice", cj)
                    return None

                new_basis = basis.copy()
                if sb == 0:
                    new_basis[:, 0] = d * sa
                elif sa == 0:
                    new_basis[:, 1] = d * sb
                if abs(np.linalg.det(new_basis)) < 1e-9:
                    new_basis = basis

                coords[j] = cj
                owner[cj] = j
                bases[j] = new_basis
                frontier.append(j)

        if len(coords) != n:
            if self.verbose:
                log.info("  lattice reached %d of %d markers", len(coords), n)
            return None
        return np.asarray([coords[i] for i in range(n)], dtype=np.int64)
