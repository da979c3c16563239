from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class Ellipse:
    """
    A detected marker in image pixel coordinates.

    `a` and `b` are the semi-major and semi-minor axes, `phi` is the rotation of
    the major axis in radians. Instances compare by identity: two markers that
    happen to share a centre are still different markers.
    """

    center_x: float
    center_y: float
    a: float = 0.0
    b: float = 0.0
    phi: float = 0.0

    @property
    def center(self) -> np.ndarray:
        return np.array([self.center_x, self.center_y], dtype=np.float64)

    def norm_sq(self) -> float:
        """Squared distance of the centre from the image origin."""
        return float(self.center_x * self.center_x + self.center_y * self.center_y)


def ellipse_from_cv2(box: tuple[tuple[float, float], tuple[float, float], float]) -> Ellipse:
    """
    Convert an OpenCV rotated rect as returned by `cv2.fitEllipse`.

    OpenCV reports full axis lengths and an angle in degrees.
    """
    (cx, cy), (w, h), angle_deg = box
    phi = float(np.deg2rad(angle_deg))
    a, b = 0.5 * float(w), 0.5 * float(h)
    if b > a:
        a, b = b, a
        phi += 0.5 * np.pi
    return Ellipse(center_x=float(cx), center_y=float(cy), a=a, b=b, phi=phi)


def centers_array(ellipses: list[Ellipse]) -> np.ndarray:
    if not ellipses:
        return np.zeros((0, 2), dtype=np.float64)
    return np.asarray([(e.center_x, e.center_y) for e in ellipses], dtype=np.float64)
