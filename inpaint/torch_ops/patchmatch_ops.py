# inpaint/torch_ops/patchmatch_ops.py
"""
PatchMatch operations for dense correspondence search.

This module implements the core PatchMatch operations:
- PatchDistance: Distance of a single source/target patch pair
- random_init: Uniform random correspondences over valid target centers
- initial_distances: Distances for a whole correspondence field
- propagation_step: Spatial coherence via neighbor propagation
- random_search_step: Exploration in shrinking windows

Correspondence fields are int32 (H_s, W_s, 2) arrays of (x, y) target
positions. Distance fields are float64 (H_s, W_s) arrays.
"""

from typing import Optional

import numpy as np
import torch

from ..consts import MAX_DISTANCE, NORM_INF, NORM_L1, NORM_L2, NORM_L2SQR
from ..errors import PreconditionError
from ..patch import comparable_patch_regions, is_centered_patch_crossing_boundary
from ..utils.mask_utils import erode_mask
from .patch_ops import compute_patch_distances_vectorized


def apply_norm(diff: np.ndarray, norm: int) -> float:
    """Reduces an integer difference array to a distance."""
    if norm == NORM_L1:
        return float(np.abs(diff).sum(dtype=np.int64))
    if norm == NORM_INF:
        return float(np.abs(diff).max())
    sq = diff.astype(np.int64)
    sq = int((sq * sq).sum())
    if norm == NORM_L2SQR:
        return float(sq)
    if norm == NORM_L2:
        return float(np.sqrt(np.float64(sq)))
    raise ValueError(f"Unknown norm: {norm}")


class PatchDistance:
    """
    Distance between a source patch and a target patch.

    The compared area is the part of both patches that lies inside both
    images. MAX_DISTANCE is returned when the target patch crosses the
    target border, when the compared area is empty, or when a compared
    target pixel is masked out.
    """

    def __init__(
        self,
        source: np.ndarray,
        target: np.ndarray,
        target_mask: Optional[np.ndarray],
        half_patch_size: int,
        norm: int,
    ):
        self.source = source.astype(np.int32)
        self.target = target.astype(np.int32)
        self.target_valid = None if target_mask is None else target_mask > 0
        self.half_patch_size = half_patch_size
        self.norm = norm

    def __call__(self, sy: int, sx: int, ty: int, tx: int) -> float:
        h = self.half_patch_size
        if is_centered_patch_crossing_boundary((ty, tx), h, self.target):
            return MAX_DISTANCE

        rs, rt = comparable_patch_regions(self.source, self.target, (sy, sx), (ty, tx), h)
        if rs.area == 0:
            return MAX_DISTANCE
        if self.target_valid is not None and not self.target_valid[rt.slices].all():
            return MAX_DISTANCE

        return apply_norm(self.source[rs.slices] - self.target[rt.slices], self.norm)


def valid_target_centers(
    target_shape, target_mask: Optional[np.ndarray], half_patch_size: int
) -> np.ndarray:
    """(H_t, W_t) bool map of centers whose whole patch is inside and valid."""
    H_t, W_t = target_shape[:2]
    h = half_patch_size
    valid = np.zeros((H_t, W_t), dtype=bool)
    valid[h : H_t - h, h : W_t - h] = True
    if target_mask is not None:
        valid &= erode_mask(target_mask, h) > 0
    return valid


def random_init(
    corrs: np.ndarray,
    target_shape,
    target_mask: Optional[np.ndarray],
    half_patch_size: int,
    generator: Optional[torch.Generator] = None,
):
    """Fills corrs in place with uniformly drawn valid target centers."""
    H_t, W_t = target_shape[:2]
    flat = np.flatnonzero(valid_target_centers(target_shape, target_mask, half_patch_size))
    if flat.size == 0:
        raise PreconditionError("target has no valid patch center to initialize from")

    H_s, W_s = corrs.shape[:2]
    picks = torch.randint(0, flat.size, (H_s * W_s,), generator=generator).numpy()
    chosen = flat[picks]
    corrs[..., 0] = (chosen % W_t).reshape(H_s, W_s)
    corrs[..., 1] = (chosen // W_t).reshape(H_s, W_s)


def initial_distances(
    distances: np.ndarray,
    corrs: np.ndarray,
    source_t: torch.Tensor,
    target_t: torch.Tensor,
    target_valid_t: Optional[torch.Tensor],
    half_patch_size: int,
    norm: int,
):
    """Evaluates the distance of every correspondence into distances, in place."""
    H_s, W_s = distances.shape
    ys, xs = torch.meshgrid(torch.arange(H_s), torch.arange(W_s), indexing="ij")
    source_yx = torch.stack([ys.reshape(-1), xs.reshape(-1)], dim=1)
    corrs_t = torch.from_numpy(corrs).reshape(-1, 2).long()
    target_yx = corrs_t[:, [1, 0]]
    d = compute_patch_distances_vectorized(
        source_t, target_t, target_valid_t, source_yx, target_yx, half_patch_size, norm
    )
    distances[...] = d.reshape(H_s, W_s).numpy()


def propagation_step(
    corrs: np.ndarray,
    distances: np.ndarray,
    distance: PatchDistance,
    forward: bool,
):
    """
    Propagation step: try neighbors' matches for spatial coherence.

    - forward=True  => Raster order. Look Left/Top, propagate +1
    - forward=False => Reverse raster order. Look Right/Bottom, propagate -1

    The sweep is sequential so improvements travel along the scan direction
    within a single pass. Pixels with a zero distance are already perfect.
    """
    H, W = distances.shape
    step = 1 if forward else -1
    rows = range(H) if forward else range(H - 1, -1, -1)
    cols = range(W) if forward else range(W - 1, -1, -1)

    for y in rows:
        for x in cols:
            if distances[y, x] == 0:
                continue

            # --- Horizontal neighbor ---
            nx = x - step
            if 0 <= nx < W:
                cx = int(corrs[y, nx, 0]) + step
                cy = int(corrs[y, nx, 1])
                if cx != corrs[y, x, 0] or cy != corrs[y, x, 1]:
                    d = distance(y, x, cy, cx)
                    if d < distances[y, x]:
                        corrs[y, x] = (cx, cy)
                        distances[y, x] = d

            # --- Vertical neighbor ---
            ny = y - step
            if 0 <= ny < H:
                cx = int(corrs[ny, x, 0])
                cy = int(corrs[ny, x, 1]) + step
                if cx != corrs[y, x, 0] or cy != corrs[y, x, 1]:
                    d = distance(y, x, cy, cx)
                    if d < distances[y, x]:
                        corrs[y, x] = (cx, cy)
                        distances[y, x] = d


def random_search_step(
    corrs: np.ndarray,
    distances: np.ndarray,
    source_t: torch.Tensor,
    target_t: torch.Tensor,
    target_valid_t: Optional[torch.Tensor],
    half_patch_size: int,
    norm: int,
    decay: float,
    generator: Optional[torch.Generator] = None,
):
    """
    Random search in windows of exponentially decreasing radius around the
    current best match.

    Each pixel's search only depends on its own correspondence, so all pixels
    with a nonzero distance run their rounds together. The window of round k
    has radius int(max(W_t, H_t) * decay^k), clipped to the target, and
    rounds continue while that radius exceeds 1.
    """
    corrs_t = torch.from_numpy(corrs)
    dist_t = torch.from_numpy(distances)

    active = dist_t != 0
    y_coords, x_coords = active.nonzero(as_tuple=True)
    num_active = y_coords.numel()
    if num_active == 0:
        return

    H_t, W_t = target_t.shape[:2]
    source_yx = torch.stack([y_coords, x_coords], dim=1)
    best = corrs_t[y_coords, x_coords].long()  # (N, 2) as (x, y)
    best_d = dist_t[y_coords, x_coords].clone()

    max_radius = max(W_t, H_t)
    k = 0
    radius = int(max_radius)
    while radius > 1:
        lo_x = (best[:, 0] - radius).clamp(min=0)
        hi_x = (best[:, 0] + radius + 1).clamp(max=W_t)
        lo_y = (best[:, 1] - radius).clamp(min=0)
        hi_y = (best[:, 1] + radius + 1).clamp(max=H_t)

        width_x = (hi_x - lo_x).clamp(min=1)
        width_y = (hi_y - lo_y).clamp(min=1)
        rand_x = torch.rand(num_active, generator=generator, dtype=torch.float64)
        rand_y = torch.rand(num_active, generator=generator, dtype=torch.float64)
        cand_x = lo_x + torch.minimum((rand_x * width_x).long(), width_x - 1)
        cand_y = lo_y + torch.minimum((rand_y * width_y).long(), width_y - 1)

        cand_d = compute_patch_distances_vectorized(
            source_t,
            target_t,
            target_valid_t,
            source_yx,
            torch.stack([cand_y, cand_x], dim=1),
            half_patch_size,
            norm,
        )

        improved = cand_d < best_d
        best[improved, 0] = cand_x[improved]
        best[improved, 1] = cand_y[improved]
        best_d[improved] = cand_d[improved]

        k += 1
        radius = int(max_radius * decay**k)

    corrs_t[y_coords, x_coords] = best.to(corrs_t.dtype)
    dist_t[y_coords, x_coords] = best_d
