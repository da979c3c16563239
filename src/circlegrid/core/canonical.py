"""
Orientation resolution for detected grids.

A fitted grid can come out in any of the eight dihedral orientations of the
physical target. Canonicalization picks one of them using only marker
positions:

- the winding of the (0,0), "right" and "down" reference cells must be
  counter-clockwise in image coordinates (y down),
- among the orientations left, the one whose (0,0) marker is closest to the
  image origin wins,
- staggered targets additionally require cell (0,0) to be populated.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

from circlegrid.core.grid import Grid, GridTransforms
from circlegrid.core.shape_filters import total_ellipses, total_ellipses_regular


Pattern = Literal["asymmetric", "regular"]


def is_clockwise(g: Grid) -> bool:
    """
    Uses the cross product to determine if the grid is in clockwise order.

    Grids with a single row or column have collinear reference cells and are
    reported as not clockwise.
    """
    if g.rows < 2 or g.columns < 2:
        return False

    v00 = g.get(0, 0)
    v02 = g.get(1, 1) if g.columns < 3 else g.get(0, 2)
    v20 = g.get(1, 1) if g.rows < 3 else g.get(2, 0)

    a_x = v02.center_x - v00.center_x
    a_y = v02.center_y - v00.center_y

    b_x = v20.center_x - v00.center_x
    b_y = v20.center_y - v00.center_y

    return a_x * b_y - a_y * b_x < 0


def closest_corner4(g: Grid) -> int:
    """
    Number of CCW rotations which bring the corner closest to the image origin
    into cell (0,0).

    Corners are checked in the order (0,0), (0,last), (last,last), (last,0) and
    the best one only changes on a strict improvement.
    """
    best_distance = g.get(0, 0).norm_sq()
    best_idx = 0

    d = g.get(0, g.columns - 1).norm_sq()
    if d < best_distance:
        best_distance = d
        best_idx = 3
    d = g.get(g.rows - 1, g.columns - 1).norm_sq()
    if d < best_distance:
        best_distance = d
        best_idx = 2
    d = g.get(g.rows - 1, 0).norm_sq()
    if d < best_distance:
        best_idx = 1

    return best_idx


def _last_corner_closer(g: Grid) -> bool:
    return g.get(g.rows - 1, g.columns - 1).norm_sq() < g.get(0, 0).norm_sq()


class GridCanonicalizer(ABC):
    """Puts grids of one target topology into its canonical orientation."""

    def __init__(self, num_rows: int, num_cols: int) -> None:
        self.num_rows = int(num_rows)
        self.num_cols = int(num_cols)
        self.transforms = GridTransforms()

    @abstractmethod
    def canonicalize(self, g: Grid) -> bool:
        """Reorder `g` in place. Returns False if no canonical form could be reached."""

    @abstractmethod
    def total_ellipses(self) -> int:
        """Number of markers on the target."""

    def _rotate(self, g: Grid, times: int) -> None:
        for _ in range(times):
            self.transforms.rotate_ccw(g)


class RegularGridCanonicalizer(GridCanonicalizer):
    """Fully populated dot grids."""

    def total_ellipses(self) -> int:
        return total_ellipses_regular(self.num_rows, self.num_cols)

    def canonicalize(self, g: Grid) -> bool:
        t = self.transforms

        # first put it into a plausible solution
        if g.columns != self.num_cols:
            t.rotate_ccw(g)

        if is_clockwise(g):
            t.flip_horizontal(g)

        if g.rows == g.columns:
            self._rotate(g, closest_corner4(g))
        elif _last_corner_closer(g):
            t.reverse(g)
        return True


class AsymmetricGridCanonicalizer(GridCanonicalizer):
    """
    Staggered grids, where cell (r, c) is populated when r + c is even.

    Only the orientations that keep (0,0) populated are candidates, which
    leaves four of them for odd square grids, two when rows + columns is even
    and one otherwise.
    """

    def total_ellipses(self) -> int:
        return total_ellipses(self.num_rows, self.num_cols)

    def canonicalize(self, g: Grid) -> bool:
        t = self.transforms

        if g.columns != self.num_cols:
            t.rotate_ccw(g)

        if g.get(0, 0) is None:
            if (g.rows + g.columns) % 2 == 1:
                t.reverse(g)
            else:
                t.flip_horizontal(g)
            if g.get(0, 0) is None:
                return False

        # mirror with a reflection that maps populated cells onto populated cells
        if is_clockwise(g):
            if g.columns % 2 == 1:
                t.flip_horizontal(g)
            elif g.rows % 2 == 1:
                t.flip_vertical(g)
            elif g.rows == g.columns:
                # anti-diagonal reflection
                t.flip_horizontal(g)
                t.rotate_ccw(g)
            else:
                return False

        if g.rows == g.columns and g.rows % 2 == 1:
            self._rotate(g, closest_corner4(g))
        elif (g.rows + g.columns) % 2 == 0 and _last_corner_closer(g):
            t.reverse(g)

        return g.get(0, 0) is not None


def create_canonicalizer(pattern: Pattern, num_rows: int, num_cols: int) -> GridCanonicalizer:
    if pattern == "asymmetric":
        return AsymmetricGridCanonicalizer(num_rows, num_cols)
    if pattern == "regular":
        return RegularGridCanonicalizer(num_rows, num_cols)
    raise ValueError(f"unknown pattern: {pattern}")
