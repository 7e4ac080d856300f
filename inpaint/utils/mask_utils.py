# inpaint/utils/mask_utils.py
from typing import Optional, Tuple

import cv2
import numpy as np

from ..consts import MASK_OFF, MASK_ON
from ..errors import PreconditionError


def ensure_mask(
    mask: Optional[np.ndarray], shape: Tuple[int, int], name: str = "mask"
) -> Optional[np.ndarray]:
    """Checks that mask is a 2D uint8 array of the given (H, W). None passes through."""
    if mask is None:
        return None
    if not isinstance(mask, np.ndarray) or mask.dtype != np.uint8 or mask.ndim != 2:
        raise PreconditionError(f"{name} must be a 2D uint8 array")
    if mask.shape != tuple(shape):
        raise PreconditionError(
            f"{name} shape {mask.shape} does not match image shape {tuple(shape)}"
        )
    return mask


def to_binary_mask(mask: np.ndarray) -> np.ndarray:
    """Maps any nonzero entry to 255 and returns a new uint8 array."""
    return np.where(mask > 0, MASK_ON, MASK_OFF).astype(np.uint8)


def clear_border(mask: np.ndarray, width: int) -> np.ndarray:
    """Zeroes a frame of the given width along every image border, in place."""
    if width <= 0:
        return mask
    mask[:width, :] = MASK_OFF
    mask[-width:, :] = MASK_OFF
    mask[:, :width] = MASK_OFF
    mask[:, -width:] = MASK_OFF
    return mask


def erode_mask(mask: np.ndarray, half_size: int) -> np.ndarray:
    """
    Erodes mask with a (2 * half_size + 1) square structuring element.

    Pixels outside the image do not erode the mask, so only zero pixels
    inside the image shrink the result.
    """
    kernel = cv2.getStructuringElement(
        cv2.MORPH_RECT, (2 * half_size + 1, 2 * half_size + 1)
    )
    return cv2.erode(mask, kernel)
