# inpaint/utils/gradient_utils.py
from typing import Tuple

import cv2
import numpy as np


def gradient_at(m: np.ndarray, y: int, x: int) -> Tuple[float, float]:
    """
    Sobel gradient (gx, gy) of a single channel image at one pixel.

    Only intended for sparse evaluations; use cv2.Sobel for dense fields.
    No bounds checking is done, (y, x) must not lie on the image border.
    """
    w = m[y - 1 : y + 2, x - 1 : x + 2].astype(np.float32)
    gx = (w[0, 2] - w[0, 0]) + 2.0 * (w[1, 2] - w[1, 0]) + (w[2, 2] - w[2, 0])
    gy = (w[2, 0] - w[0, 0]) + 2.0 * (w[2, 1] - w[0, 1]) + (w[2, 2] - w[0, 2])
    return float(gx), float(gy)


def normalized_gradient(m: np.ndarray, y: int, x: int) -> Tuple[float, float]:
    """Unit length gradient at one pixel, (0, 0) where the gradient vanishes."""
    gx, gy = gradient_at(m, y, x)
    norm = np.sqrt(gx * gx + gy * gy)
    if norm == 0:
        return 0.0, 0.0
    return gx / norm, gy / norm


def sobel_gradients(m: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """float32 Sobel gradients of m with replicated borders."""
    gx = cv2.Sobel(m, cv2.CV_32F, 1, 0, ksize=3, borderType=cv2.BORDER_REPLICATE)
    gy = cv2.Sobel(m, cv2.CV_32F, 0, 1, ksize=3, borderType=cv2.BORDER_REPLICATE)
    return gx, gy


def compute_isophotes(image: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Isophote field of a BGR image.

    The image is blurred with a 3x3 box filter first, which balances the data
    term against the confidence term better than raw gradients. Channel
    gradients are averaged and scaled to [-1, 1] per unit of intensity, then
    rotated by 90 degrees.

    Returns:
        (iso_x, iso_y): float32 (H, W) arrays
    """
    blurred = cv2.blur(image, (3, 3))
    gx, gy = sobel_gradients(blurred)
    if gx.ndim == 3:
        gx = gx.sum(axis=2)
        gy = gy.sum(axis=2)
    scale = np.float32(3 * 255)
    gx = (gx / scale).astype(np.float32)
    gy = (gy / scale).astype(np.float32)
    return -gy, gx
