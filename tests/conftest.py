import cv2
import numpy as np
import pytest


@pytest.fixture
def random_lines_image():
    """Factory for square grayscale images with random lines on black."""

    def _make(size: int, n_lines: int, seed: int = 10) -> np.ndarray:
        rng = np.random.default_rng(seed)
        m = np.zeros((size, size), dtype=np.uint8)
        for _ in range(n_lines):
            x1, y1, x2, y2 = (int(v) for v in rng.integers(0, size, 4))
            color = int(rng.integers(10, 255))
            thickness = int(rng.integers(1, 10))
            cv2.line(m, (x1, y1), (x2, y2), color, thickness)
        return m

    return _make


@pytest.fixture
def uniform_noise_image():
    """Factory for square grayscale images of uniform noise."""

    def _make(size: int, seed: int = 10) -> np.ndarray:
        rng = np.random.default_rng(seed)
        return rng.integers(0, 255, (size, size), dtype=np.uint8)

    return _make


@pytest.fixture
def shift_image():
    """Factory moving an image content by (dy, dx), padding with zeros."""

    def _shift(img: np.ndarray, dy: int, dx: int) -> np.ndarray:
        out = np.zeros_like(img)
        h, w = img.shape[:2]
        out[dy:, dx:] = img[: h - dy, : w - dx]
        return out

    return _shift


@pytest.fixture
def striped_image():
    """64x64 BGR image of vertical stripes, 8 pixels wide, in two colors."""
    colors = np.array([[200, 40, 40], [30, 160, 220]], dtype=np.uint8)
    columns = (np.arange(64) // 8) % 2
    return np.ascontiguousarray(np.broadcast_to(colors[columns], (64, 64, 3)))
