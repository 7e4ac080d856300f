# inpaint/patch.py
"""
Rectangular patch views into images and scalar fields.

Patches are addressed either by their top-left corner and size or by a
center pixel and a half size (a 3x3 window has half size 1). Two orthogonal
switches select the behavior:

- clamp: shrink the rectangle to the image bounds. Without it the caller
  guarantees the rectangle is in bounds, which is the fastest path.
- copy: return an independent buffer instead of a view that aliases the
  source array.

All points are given as (y, x) in numpy order.
"""

from typing import NamedTuple, Tuple

import numpy as np


class PatchRect(NamedTuple):
    y: int
    x: int
    height: int
    width: int

    @property
    def area(self) -> int:
        return self.height * self.width

    @property
    def slices(self) -> Tuple[slice, slice]:
        return slice(self.y, self.y + self.height), slice(self.x, self.x + self.width)

    def contains(self, y: int, x: int) -> bool:
        return self.y <= y < self.y + self.height and self.x <= x < self.x + self.width


def top_left_rect(
    shape: Tuple[int, ...], y: int, x: int, height: int, width: int, clamp: bool = False
) -> PatchRect:
    """Rectangle anchored at (y, x), optionally intersected with a grid of the given shape."""
    if not clamp:
        return PatchRect(y, x, height, width)

    rows, cols = shape[:2]
    y0 = min(max(y, 0), rows)
    x0 = min(max(x, 0), cols)
    y1 = min(max(y + height, 0), rows)
    x1 = min(max(x + width, 0), cols)
    return PatchRect(y0, x0, max(y1 - y0, 0), max(x1 - x0, 0))


def centered_rect(
    shape: Tuple[int, ...], y: int, x: int, half_patch_size: int, clamp: bool = False
) -> PatchRect:
    """Rectangle of size (2 * half_patch_size + 1) centered on (y, x)."""
    size = 2 * half_patch_size + 1
    return top_left_rect(
        shape, y - half_patch_size, x - half_patch_size, size, size, clamp=clamp
    )


def top_left_patch(
    m: np.ndarray,
    y: int,
    x: int,
    height: int,
    width: int,
    clamp: bool = False,
    copy: bool = False,
) -> np.ndarray:
    """
    Returns a patch anchored on the given top-left corner.

    Args:
        m: Underlying image or scalar field, (H, W) or (H, W, C).
        y: Row of the patch top-left corner.
        x: Column of the patch top-left corner.
        height: Extension along the y-axis.
        width: Extension along the x-axis.
        clamp: Shrink the patch to the bounds of m. The result may be empty.
        copy: Return an independent copy instead of a view on m.
    """
    rect = top_left_rect(m.shape, y, x, height, width, clamp=clamp)
    patch = m[rect.slices]
    return patch.copy() if copy else patch


def centered_patch(
    m: np.ndarray,
    y: int,
    x: int,
    half_patch_size: int,
    clamp: bool = False,
    copy: bool = False,
) -> np.ndarray:
    """Returns a patch centered around (y, x). See top_left_patch for the switches."""
    rect = centered_rect(m.shape, y, x, half_patch_size, clamp=clamp)
    patch = m[rect.slices]
    return patch.copy() if copy else patch


def comparable_patch_regions(
    a: np.ndarray,
    b: np.ndarray,
    a_center: Tuple[int, int],
    b_center: Tuple[int, int],
    half_patch_size: int,
) -> Tuple[PatchRect, PatchRect]:
    """
    Given two centered patches in two images, compute the region that can be
    compared in both images.

    Both rectangles have the same size and the same offset relative to their
    centers, and each lies within its own image. The size shrinks
    independently on every side where either patch crosses a border. A zero
    area means the patches do not overlap any comparable pixels.
    """
    ay, ax = a_center
    by, bx = b_center
    a_rows, a_cols = a.shape[:2]
    b_rows, b_cols = b.shape[:2]

    left = max(-half_patch_size, -ax, -bx)
    right = min(half_patch_size + 1, a_cols - ax, b_cols - bx)
    top = max(-half_patch_size, -ay, -by)
    bottom = min(half_patch_size + 1, a_rows - ay, b_rows - by)

    width = max(right - left, 0)
    height = max(bottom - top, 0)
    return (
        PatchRect(ay + top, ax + left, height, width),
        PatchRect(by + top, bx + left, height, width),
    )


def is_centered_patch_crossing_boundary(
    point: Tuple[int, int], half_patch_size: int, image: np.ndarray
) -> bool:
    """True if the unclamped patch centered on point extends outside image."""
    rows, cols = image.shape[:2]
    h = half_patch_size
    inner = PatchRect(h, h, rows - 2 * h, cols - 2 * h)
    return not inner.contains(*point)
