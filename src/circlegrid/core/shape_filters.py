from __future__ import annotations

from typing import Sequence

from circlegrid.core.grid import Grid


def total_ellipses(num_rows: int, num_cols: int) -> int:
    """
    Number of markers on a staggered target.

    Even rows are populated on even columns and odd rows on odd columns.
    """
    return (num_rows // 2) * (num_cols // 2) + ((num_rows + 1) // 2) * ((num_cols + 1) // 2)


def total_ellipses_regular(num_rows: int, num_cols: int) -> int:
    return num_rows * num_cols


def prune_incorrect_size(clusters: list[Sequence[int]], n: int) -> None:
    """Remove clusters which do not have exactly `n` members."""
    for i in range(len(clusters) - 1, -1, -1):
        if len(clusters[i]) != n:
            del clusters[i]


def prune_incorrect_shape(grids: list[Grid], num_rows: int, num_cols: int) -> None:
    """Remove grids whose shape matches the target in neither orientation."""
    for i in range(len(grids) - 1, -1, -1):
        g = grids[i]
        if (g.rows != num_rows or g.columns != num_cols) and (g.rows != num_cols or g.columns != num_rows):
            del grids[i]
