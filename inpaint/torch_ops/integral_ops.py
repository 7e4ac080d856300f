# inpaint/torch_ops/integral_ops.py
"""
Integral image (summed area table) operations.

Integral images are stored as int64 tensors of shape (C, H+1, W+1) where
entry (c, y, x) holds the sum of channel c over all pixels with row < y and
col < x. Rectangle sums then cost four lookups. No bounds checking is done
at query time; rectangles must lie within [0, H] x [0, W].
"""

from typing import Tuple, Union

import numpy as np
import torch

from ..patch import PatchRect


def build_integral_images(image: Union[np.ndarray, torch.Tensor]) -> torch.Tensor:
    """
    Compute per-channel integral images.

    Args:
        image: (H, W) or (H, W, C) array or tensor

    Returns:
        integrals: (C, H+1, W+1) int64 tensor
    """
    if isinstance(image, np.ndarray):
        image = torch.from_numpy(np.ascontiguousarray(image))
    if image.dim() == 2:
        image = image.unsqueeze(2)

    H, W, C = image.shape
    channels = image.permute(2, 0, 1).to(torch.int64)

    integrals = torch.zeros((C, H + 1, W + 1), dtype=torch.int64)
    integrals[:, 1:, 1:] = channels.cumsum(dim=1).cumsum(dim=2)
    return integrals


def rect_sum(integrals: torch.Tensor, rect: PatchRect) -> torch.Tensor:
    """Sum of every channel inside rect. Returns a (C,) int64 tensor."""
    y0, x0 = rect.y, rect.x
    y1, x1 = rect.y + rect.height, rect.x + rect.width
    return (
        integrals[:, y1, x1]
        - integrals[:, y1, x0]
        - integrals[:, y0, x1]
        + integrals[:, y0, x0]
    )


def rect_mean(integrals: torch.Tensor, rect: PatchRect) -> torch.Tensor:
    """Mean of every channel inside rect. Returns a (C,) float64 tensor."""
    return rect_sum(integrals, rect).double() / rect.area


def box_sums(
    integrals: torch.Tensor, rect: PatchRect, out_shape: Tuple[int, int]
) -> torch.Tensor:
    """
    Sums of rect shifted to every anchor of an out_shape grid.

    Entry (c, ay, ax) of the result is the channel-c sum of rect translated
    by (ay, ax). Equivalent to calling rect_sum once per anchor.

    Returns:
        sums: (C, out_h, out_w) int64 tensor
    """
    out_h, out_w = out_shape
    y0, x0 = rect.y, rect.x
    y1, x1 = rect.y + rect.height, rect.x + rect.width
    return (
        integrals[:, y1 : y1 + out_h, x1 : x1 + out_w]
        - integrals[:, y1 : y1 + out_h, x0 : x0 + out_w]
        - integrals[:, y0 : y0 + out_h, x1 : x1 + out_w]
        + integrals[:, y0 : y0 + out_h, x0 : x0 + out_w]
    )
