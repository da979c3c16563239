from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError


def load_gray_u8(path: str | Path) -> np.ndarray:
    """
    Load an image as grayscale uint8.

    OpenCV is tried first; Pillow covers formats the OpenCV build cannot decode.
    Deeper images are clipped into [0,255].
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing {p}")

    img = cv2.imread(str(p), cv2.IMREAD_GRAYSCALE)
    if img is not None:
        if img.dtype != np.uint8:
            img = np.clip(img, 0, 255).astype(np.uint8)
        return img

    try:
        with Image.open(p) as im:
            return np.asarray(im.convert("L"), dtype=np.uint8)
    except UnidentifiedImageError as e:
        raise FileNotFoundError(f"Cannot decode {p}") from e


def save_gray_u8(path: str | Path, img: np.ndarray) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.asarray(img, dtype=np.uint8)).save(p)
    return p
