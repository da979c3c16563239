from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from circlegrid.core.ellipse import Ellipse


@dataclass(eq=False)
class Grid:
    """
    A rows x columns arrangement of markers, stored as a flat row-major list.

    Empty cells hold None (staggered targets leave every other cell empty).
    `rows` and `columns` describe the grid as currently oriented, which can be
    swapped relative to the target's declared shape until it is canonicalized.
    """

    rows: int = 0
    columns: int = 0
    cells: list[Ellipse | None] = field(default_factory=list)

    def get(self, row: int, col: int) -> Ellipse | None:
        return self.cells[row * self.columns + col]

    def set_shape(self, rows: int, columns: int) -> None:
        self.rows = int(rows)
        self.columns = int(columns)
        self.cells = [None] * (self.rows * self.columns)

    def copy(self) -> Grid:
        """Shallow copy: a new cell list referencing the same markers."""
        return Grid(rows=self.rows, columns=self.columns, cells=list(self.cells))

    @property
    def num_populated(self) -> int:
        return sum(1 for e in self.cells if e is not None)

    def centers(self) -> np.ndarray:
        """(rows*columns, 2) marker centres, NaN where a cell is empty."""
        out = np.full((len(self.cells), 2), np.nan, dtype=np.float64)
        for i, e in enumerate(self.cells):
            if e is not None:
                out[i] = (e.center_x, e.center_y)
        return out

    def populated_centers(self) -> np.ndarray:
        """(N,2) centres of populated cells in row-major order."""
        pts = [(e.center_x, e.center_y) for e in self.cells if e is not None]
        if not pts:
            return np.zeros((0, 2), dtype=np.float64)
        return np.asarray(pts, dtype=np.float64)


class GridTransforms:
    """
    In-place orientation changes of a Grid.

    Each operation writes the complete new cell order into a scratch list owned
    by this instance and then swaps it into the grid, so a grid is never seen
    half permuted. The scratch list is reused between calls; one instance must
    not be shared between threads.
    """

    def __init__(self) -> None:
        self.work: list[Ellipse | None] = []

    def _swap_in(self, g: Grid) -> None:
        g.cells = list(self.work)
        self.work.clear()

    def rotate_ccw(self, g: Grid) -> None:
        """Rotate 90 degrees counter-clockwise: old (r, c) lands on (c, rows-1-r)."""
        rows, cols = g.rows, g.columns
        self.work.clear()
        self.work.extend([None] * (rows * cols))
        for row in range(rows):
            for col in range(cols):
                self.work[col * rows + row] = g.get(rows - row - 1, col)
        self._swap_in(g)
        g.rows, g.columns = cols, rows

    def reverse(self, g: Grid) -> None:
        """Reverse the flat cell order, equal to a 180 degree rotation."""
        self.work.clear()
        self.work.extend(reversed(g.cells))
        self._swap_in(g)

    def flip_horizontal(self, g: Grid) -> None:
        self.work.clear()
        for row in range(g.rows):
            for col in range(g.columns):
                self.work.append(g.get(row, g.columns - col - 1))
        self._swap_in(g)

    def flip_vertical(self, g: Grid) -> None:
        self.work.clear()
        for row in range(g.rows):
            for col in range(g.columns):
                self.work.append(g.get(g.rows - row - 1, col))
        self._swap_in(g)
