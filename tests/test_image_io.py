from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from circlegrid.core.image_io import load_gray_u8, save_gray_u8


def test_load_gray_u8_png_and_rgb(tmp_path: Path) -> None:
    arr = (np.arange(64, dtype=np.uint8).reshape(8, 8) * 4) % 255
    p_png = tmp_path / "a.png"
    Image.fromarray(arr).save(p_png)

    rgb = np.stack([arr, arr, arr], axis=-1)
    p_rgb = tmp_path / "rgb.png"
    Image.fromarray(rgb).save(p_rgb)

    a = load_gray_u8(p_png)
    b = load_gray_u8(p_rgb)

    assert a.shape == (8, 8)
    assert b.shape == (8, 8)
    assert a.dtype == np.uint8
    assert np.array_equal(a, arr)
    assert np.abs(b.astype(int) - arr.astype(int)).max() <= 1


def test_save_gray_u8_creates_parent(tmp_path: Path) -> None:
    arr = np.full((5, 7), 200, dtype=np.uint8)
    p = save_gray_u8(tmp_path / "sub" / "x.png", arr)
    assert p.exists()
    assert np.array_equal(load_gray_u8(p), arr)


def test_load_gray_u8_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_gray_u8(tmp_path / "missing.png")

    junk = tmp_path / "junk.png"
    junk.write_bytes(b"not an image")
    with pytest.raises(FileNotFoundError):
        load_gray_u8(junk)
