from __future__ import annotations

import math

import cv2
import numpy as np

from circlegrid.config import EllipseDetectorConfig
from circlegrid.core.ellipse import Ellipse, ellipse_from_cv2
from circlegrid.log import get_logger


log = get_logger("ellipses")


class ContourEllipseDetector:
    """
    Fits an ellipse to every outer contour of the binary mask and keeps the
    blobs whose area agrees with the fitted ellipse.
    """

    def __init__(self, config: EllipseDetectorConfig | None = None) -> None:
        self.config = config or EllipseDetectorConfig()
        self.verbose = False
        self._found: list[Ellipse] = []

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = bool(verbose)

    def get_found_ellipses(self) -> list[Ellipse]:
        return self._found

    def process(self, gray: np.ndarray, binary: np.ndarray) -> None:
        cfg = self.config
        self._found.clear()

        mask = np.ascontiguousarray(binary, dtype=np.uint8)
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)

        rejected = 0
        for cnt in contours:
            if len(cnt) < cfg.min_contour_points:
                rejected += 1
                continue
            area = float(cv2.contourArea(cnt))
            if area < cfg.min_area_px or (cfg.max_area_px is not None and area > cfg.max_area_px):
                rejected += 1
                continue

            ellipse = ellipse_from_cv2(cv2.fitEllipse(cnt))
            fit_area = math.pi * ellipse.a * ellipse.b
            if fit_area <= 0.0 or abs(area - fit_area) / fit_area > cfg.max_fit_error:
                rejected += 1
                continue
            self._found.append(ellipse)

        if self.verbose:
            log.info("  contours %d, ellipses %d, rejected %d", len(contours), len(self._found), rejected)
