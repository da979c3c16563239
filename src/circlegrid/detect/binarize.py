from __future__ import annotations

import cv2
import numpy as np

from circlegrid.config import ThresholdConfig


class ThresholdBinarizer:
    """
    Global threshold. A fixed value is used when configured, Otsu otherwise.

    With `down=True` pixels darker than the threshold become 1, which is what
    dark dots printed on white paper need.
    """

    def __init__(self, config: ThresholdConfig | None = None) -> None:
        self.config = config or ThresholdConfig()
        self.last_threshold: float | None = None

    def process(self, gray: np.ndarray, out: np.ndarray) -> None:
        if gray.shape != out.shape:
            raise ValueError(f"output shape {out.shape} != input shape {gray.shape}")
        img = gray if gray.dtype == np.uint8 else np.clip(gray, 0, 255).astype(np.uint8)

        kind = cv2.THRESH_BINARY_INV if self.config.down else cv2.THRESH_BINARY
        if self.config.threshold is None:
            t, mask = cv2.threshold(img, 0, 1, kind + cv2.THRESH_OTSU)
        else:
            t, mask = cv2.threshold(img, float(self.config.threshold), 1, kind)
        self.last_threshold = float(t)
        out[...] = mask
