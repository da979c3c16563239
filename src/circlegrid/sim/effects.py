from __future__ import annotations

import cv2
import numpy as np


def fwhm_to_sigma(fwhm: float) -> float:
    return float(fwhm) / 2.3548200450309493


def gaussian_blur_u8(img_u8: np.ndarray, sigma: float) -> np.ndarray:
    """Isotropic Gaussian blur of a uint8 image; sigma <= 0 returns the input."""
    if sigma <= 0:
        return img_u8
    return cv2.GaussianBlur(img_u8, ksize=(0, 0), sigmaX=float(sigma), sigmaY=float(sigma), borderType=cv2.BORDER_REFLECT)


def add_gaussian_noise_u8(img_u8: np.ndarray, std: float, rng: np.random.Generator) -> np.ndarray:
    """Additive Gaussian noise, `std` in gray levels."""
    if std <= 0:
        return img_u8
    noisy = img_u8.astype(np.float32) + rng.normal(0.0, float(std), size=img_u8.shape).astype(np.float32)
    return np.clip(noisy + 0.5, 0.0, 255.0).astype(np.uint8)


def degrade(img_u8: np.ndarray, blur_fwhm_px: float = 0.0, noise_std: float = 0.0, seed: int = 0) -> np.ndarray:
    """Blur then add noise, the order a camera applies them."""
    rng = np.random.default_rng(seed)
    out = gaussian_blur_u8(img_u8, fwhm_to_sigma(blur_fwhm_px))
    return add_gaussian_noise_u8(out, noise_std, rng)
