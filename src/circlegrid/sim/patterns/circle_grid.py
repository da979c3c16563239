from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from circlegrid.core.canonical import Pattern


_SHIFT = 4


@dataclass(frozen=True)
class CircleGridSpec:
    rows: int
    cols: int
    spacing_px: float = 40.0
    radius_px: float = 20.0
    pattern: Pattern = "asymmetric"

    def is_populated(self, row: int, col: int) -> bool:
        if self.pattern == "regular":
            return True
        return (row + col) % 2 == 0

    def board_points(self) -> np.ndarray:
        """(N,2) dot centres on the board plane, row-major, populated cells only."""
        pts = [
            (col * self.spacing_px, row * self.spacing_px)
            for row in range(self.rows)
            for col in range(self.cols)
            if self.is_populated(row, col)
        ]
        return np.asarray(pts, dtype=np.float64).reshape(-1, 2)


def affine_matrix(
    scale: float = 1.0, angle_deg: float = 0.0, tx: float = 0.0, ty: float = 0.0, shear: float = 0.0
) -> np.ndarray:
    """2x3 affine transform: rotation and uniform scale, optional x-shear, then translation."""
    t = np.deg2rad(angle_deg)
    c, s = np.cos(t), np.sin(t)
    linear = scale * np.array([[c, -s], [s, c]], dtype=np.float64) @ np.array([[1.0, shear], [0.0, 1.0]])
    return np.hstack([linear, np.array([[tx], [ty]], dtype=np.float64)])


def render_circle_grid(
    spec: CircleGridSpec,
    affine: np.ndarray | None = None,
    image_size: tuple[int, int] = (400, 350),
    background: int = 255,
    foreground: int = 0,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Draw dark dots on a light uint8 canvas of size (width, height).

    Returns the image and the (N,2) pixel centres of the drawn dots in
    row-major order of the populated cells.
    """
    A = affine_matrix(tx=100.0, ty=100.0) if affine is None else np.asarray(affine, dtype=np.float64).reshape(2, 3)
    w, h = image_size
    img = np.full((h, w), background, dtype=np.uint8)

    board = spec.board_points()
    centers = board @ A[:, :2].T + A[:, 2]

    # a circle seen through the linear part of the affine is an ellipse
    U, S, _ = np.linalg.svd(A[:, :2])
    axes = (int(round(spec.radius_px * S[0] * (1 << _SHIFT))), int(round(spec.radius_px * S[1] * (1 << _SHIFT))))
    angle = float(np.degrees(np.arctan2(U[1, 0], U[0, 0])))

    for x, y in centers:
        center = (int(round(x * (1 << _SHIFT))), int(round(y * (1 << _SHIFT))))
        cv2.ellipse(img, center, axes, angle, 0, 360, int(foreground), -1, cv2.LINE_AA, _SHIFT)

    return img, centers
