from __future__ import annotations

from typing import Protocol

import numpy as np

from circlegrid.core.ellipse import Ellipse
from circlegrid.core.grid import Grid


Cluster = list[int]


class Binarizer(Protocol):
    def process(self, gray: np.ndarray, out: np.ndarray) -> None:
        """Write a 0/1 mask of `gray` into `out`, which has the same shape."""


class EllipseDetector(Protocol):
    def process(self, gray: np.ndarray, binary: np.ndarray) -> None: ...

    def get_found_ellipses(self) -> list[Ellipse]: ...


class ClusterFinder(Protocol):
    def process(self, ellipses: list[Ellipse], out_clusters: list[Cluster]) -> None:
        """Append clusters (lists of indices into `ellipses`) to `out_clusters`."""


class GridFitter(Protocol):
    def process(self, ellipses: list[Ellipse], clusters: list[Cluster]) -> None: ...

    def get_grids(self) -> list[Grid]: ...
