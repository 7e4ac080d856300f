# inpaint/utils/image_utils.py
from typing import Sequence

import numpy as np

from ..errors import PreconditionError


def num_channels(image: np.ndarray) -> int:
    return 1 if image.ndim == 2 else image.shape[2]


def ensure_uint8_image(
    image: np.ndarray, name: str = "image", channels: Sequence[int] = (1, 3)
) -> np.ndarray:
    """
    Checks that image is an 8-bit array with an accepted channel count.

    Args:
        image: Array to check.
        name: Name used in error messages.
        channels: Accepted channel counts. A 2D array counts as one channel.

    Returns:
        The unchanged image.
    """
    if not isinstance(image, np.ndarray):
        raise PreconditionError(f"{name} must be a numpy array, got {type(image).__name__}")
    if image.dtype != np.uint8:
        raise PreconditionError(f"{name} must be uint8, got {image.dtype}")
    if image.ndim not in (2, 3):
        raise PreconditionError(f"{name} must be 2D or 3D, got shape {image.shape}")
    if num_channels(image) not in channels:
        raise PreconditionError(
            f"{name} must have {' or '.join(map(str, channels))} channel(s), got {num_channels(image)}"
        )
    return image


def remap_with_correspondence(target: np.ndarray, corrs: np.ndarray) -> np.ndarray:
    """
    Rebuilds a source-shaped image by sampling target at every correspondence.

    Args:
        target: (H_t, W_t) or (H_t, W_t, C) image the correspondences point into.
        corrs: (H_s, W_s, 2) int field holding (x, y) target positions.

    Returns:
        (H_s, W_s) or (H_s, W_s, C) image.
    """
    xs = np.clip(corrs[..., 0], 0, target.shape[1] - 1)
    ys = np.clip(corrs[..., 1], 0, target.shape[0] - 1)
    return target[ys, xs]
