# inpaint/torch_ops/patch_ops.py
"""
Vectorized patch error computations.

Both kernels walk the (2h+1)^2 patch offsets once and gather one pixel per
patch and offset, so the work for N patches is done in (2h+1)^2 tensor
operations instead of N Python-level comparisons. All arithmetic on pixel
values is done in int64, which keeps results exact and identical to the
per-patch computations in patchmatch_ops.
"""

from typing import Optional, Union

import numpy as np
import torch

from ..consts import MAX_DISTANCE, NORM_INF, NORM_L1, NORM_L2, NORM_L2SQR

CHUNK_SIZE = 4096


def as_int64_image(image: Union[np.ndarray, torch.Tensor]) -> torch.Tensor:
    """(H, W) or (H, W, C) array -> (H, W, C) int64 tensor."""
    if isinstance(image, np.ndarray):
        image = torch.from_numpy(np.ascontiguousarray(image))
    if image.dim() == 2:
        image = image.unsqueeze(2)
    return image.to(torch.int64)


def masked_patch_errors(
    image: torch.Tensor,
    template: torch.Tensor,
    known_mask: torch.Tensor,
    centers: torch.Tensor,
    half_patch_size: int,
) -> torch.Tensor:
    """
    L1 error between a template and the patches of image centered at centers,
    restricted to the template pixels flagged in known_mask.

    Args:
        image: (H, W, C) int64 tensor
        template: (2h+1, 2h+1, C) int64 tensor
        known_mask: (2h+1, 2h+1) bool tensor of template pixels to compare
        centers: (N, 2) long tensor of (y, x) centers. Every patch must lie
                 inside image.
        half_patch_size: h

    Returns:
        errors: (N,) int64 tensor
    """
    offsets = known_mask.nonzero(as_tuple=False) - half_patch_size
    reference = template[known_mask]  # (K, C)

    errors = torch.zeros(centers.shape[0], dtype=torch.int64)
    # Chunk over centers to bound the size of the gathered (n, C) blocks.
    for start in range(0, centers.shape[0], CHUNK_SIZE):
        chunk = centers[start : start + CHUNK_SIZE]
        cy, cx = chunk[:, 0], chunk[:, 1]
        acc = torch.zeros(chunk.shape[0], dtype=torch.int64)
        for k in range(offsets.shape[0]):
            dy, dx = int(offsets[k, 0]), int(offsets[k, 1])
            acc += (image[cy + dy, cx + dx] - reference[k]).abs().sum(dim=1)
        errors[start : start + CHUNK_SIZE] = acc
    return errors


def compute_patch_distances_vectorized(
    source: torch.Tensor,
    target: torch.Tensor,
    target_valid: Optional[torch.Tensor],
    source_yx: torch.Tensor,
    target_yx: torch.Tensor,
    half_patch_size: int,
    norm: int,
) -> torch.Tensor:
    """
    Distance between the source patches at source_yx and the target patches
    at target_yx, pairwise.

    The comparison covers the part of the patch that lies inside the source
    image. A pair gets MAX_DISTANCE when the target patch crosses the target
    border, or when any compared target pixel is invalid.

    Args:
        source: (H_s, W_s, C) int64 tensor
        target: (H_t, W_t, C) int64 tensor
        target_valid: Optional (H_t, W_t) bool tensor
        source_yx: (N, 2) long tensor of (y, x) source centers, inside source
        target_yx: (N, 2) long tensor of (y, x) target centers
        half_patch_size: h
        norm: One of the NORM_* constants

    Returns:
        distances: (N,) float64 tensor
    """
    H_s, W_s = source.shape[:2]
    H_t, W_t = target.shape[:2]
    h = half_patch_size

    sy, sx = source_yx[:, 0], source_yx[:, 1]
    ty, tx = target_yx[:, 0], target_yx[:, 1]

    crossing = (tx < h) | (tx >= W_t - h) | (ty < h) | (ty >= H_t - h)
    # Crossing pairs are discarded below; clamping only keeps the gathers in range.
    ty = ty.clamp(h, max(H_t - h - 1, h))
    tx = tx.clamp(h, max(W_t - h - 1, h))

    acc = torch.zeros(source_yx.shape[0], dtype=torch.int64)
    invalid = crossing.clone()

    for dy in range(-h, h + 1):
        py = sy + dy
        row_ok = (py >= 0) & (py < H_s)
        py = py.clamp(0, H_s - 1)
        qy = (ty + dy).clamp(0, H_t - 1)
        for dx in range(-h, h + 1):
            px = sx + dx
            inside = row_ok & (px >= 0) & (px < W_s)
            px = px.clamp(0, W_s - 1)
            qx = (tx + dx).clamp(0, W_t - 1)

            diff = (source[py, px] - target[qy, qx]).abs()
            if norm == NORM_L1:
                term = diff.sum(dim=1)
            elif norm == NORM_INF:
                term = diff.max(dim=1).values
            else:
                term = (diff * diff).sum(dim=1)
            term = torch.where(inside, term, torch.zeros_like(term))

            if norm == NORM_INF:
                acc = torch.maximum(acc, term)
            else:
                acc += term

            if target_valid is not None:
                invalid |= inside & ~target_valid[qy, qx]

    distances = acc.double()
    if norm == NORM_L2:
        distances = distances.sqrt()
    elif norm not in (NORM_L1, NORM_L2SQR, NORM_INF):
        raise ValueError(f"Unknown norm: {norm}")

    distances[invalid] = MAX_DISTANCE
    return distances
