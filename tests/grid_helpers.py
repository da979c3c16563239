from __future__ import annotations

from circlegrid.core.ellipse import Ellipse
from circlegrid.core.grid import Grid, GridTransforms


def make_grid(rows: int, cols: int, *, staggered: bool = True, x0: float = 30.0, y0: float = 40.0, step: float = 20.0) -> Grid:
    """
    Grid laid out the canonical way in image coordinates: columns along +x,
    rows along +y, (0,0) nearest the origin. Staggered grids leave odd
    parity cells empty.
    """
    g = Grid()
    g.set_shape(rows, cols)
    for r in range(rows):
        for c in range(cols):
            if staggered and (r + c) % 2 == 1:
                continue
            g.cells[r * cols + c] = Ellipse(x0 + c * step, y0 + r * step, 5.0, 5.0, 0.0)
    return g


def dihedral_variants(g: Grid) -> list[Grid]:
    """The 4 rotations and 4 mirrored rotations of `g`, as copies."""
    t = GridTransforms()
    out = []
    for mirrored in (False, True):
        for k in range(4):
            v = g.copy()
            if mirrored:
                t.flip_horizontal(v)
            for _ in range(k):
                t.rotate_ccw(v)
            out.append(v)
    return out


def same_cells(a: Grid, b: Grid) -> bool:
    return (
        a.rows == b.rows
        and a.columns == b.columns
        and len(a.cells) == len(b.cells)
        and all(x is y for x, y in zip(a.cells, b.cells))
    )
