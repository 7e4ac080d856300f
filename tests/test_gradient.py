import cv2
import numpy as np
import pytest

from inpaint.utils.gradient_utils import compute_isophotes, gradient_at, normalized_gradient


def test_gradient_matches_sobel(random_lines_image):
    img = random_lines_image(50, 50)
    ref_x = cv2.Sobel(img, cv2.CV_32F, 1, 0, ksize=3, borderType=cv2.BORDER_CONSTANT)
    ref_y = cv2.Sobel(img, cv2.CV_32F, 0, 1, ksize=3, borderType=cv2.BORDER_CONSTANT)

    for y in range(1, img.shape[0] - 1):
        for x in range(1, img.shape[1] - 1):
            gx, gy = gradient_at(img, y, x)
            assert gx == pytest.approx(ref_x[y, x])
            assert gy == pytest.approx(ref_y[y, x])

            norm = np.sqrt(ref_x[y, x] ** 2 + ref_y[y, x] ** 2)
            nx, ny = normalized_gradient(img, y, x)
            if norm == 0:
                assert (nx, ny) == (0.0, 0.0)
            else:
                assert nx == pytest.approx(ref_x[y, x] / norm, abs=1e-6)
                assert ny == pytest.approx(ref_y[y, x] / norm, abs=1e-6)


def test_isophotes_run_along_edges():
    img = np.zeros((20, 20, 3), dtype=np.uint8)
    img[:, 10:] = 255

    iso_x, iso_y = compute_isophotes(img)

    assert iso_x.dtype == np.float32
    # A vertical edge has a horizontal gradient, so its isophote is vertical.
    assert iso_x[10, 10] == 0
    assert iso_y[10, 10] > 0
    assert iso_x[10, 2] == 0
    assert iso_y[10, 2] == 0
