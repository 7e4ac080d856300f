# inpaint/torch_ops/template_match_ops.py
"""
Candidate positions for template matching using integral image based weak
classifiers ("Speed-up Template Matching through Integral Image based Weak
Classifiers", Wu et al.).

The template is split into a grid of blocks. Each block gets one weak
classifier per channel: +1 if its mean is above the template mean, -1
otherwise. A position in the source image is a candidate if its mean is
close to the template mean and few of its block classifiers disagree with
the template's. All positions are evaluated at once from the integral images.
"""

from typing import List, Optional, Tuple

import numpy as np
import torch

from ..errors import PreconditionError
from ..patch import PatchRect
from ..utils.image_utils import ensure_uint8_image, num_channels
from .integral_ops import box_sums, build_integral_images


def compute_block_rects(
    size: Tuple[int, int], partitions: Tuple[int, int]
) -> List[PatchRect]:
    """
    Partition a (height, width) area into a (rows, cols) grid of blocks.

    The last row and column of blocks absorb the remainder when the size is
    not evenly divisible. An area smaller than the grid becomes one block.
    """
    height, width = size
    rows, cols = partitions
    block_h = height // rows
    block_w = width // cols

    if block_h == 0 or block_w == 0:
        return [PatchRect(0, 0, height, width)]

    last_h = height - block_h * (rows - 1)
    last_w = width - block_w * (cols - 1)

    rects = []
    for by in range(rows):
        for bx in range(cols):
            rects.append(
                PatchRect(
                    by * block_h,
                    bx * block_w,
                    last_h if by == rows - 1 else block_h,
                    last_w if bx == cols - 1 else block_w,
                )
            )
    return rects


def remove_invalid_blocks(
    template_mask: Optional[np.ndarray], rects: List[PatchRect]
) -> List[PatchRect]:
    """Drops blocks that are not entirely covered by the mask."""
    if template_mask is None:
        return list(rects)
    return [r for r in rects if np.count_nonzero(template_mask[r.slices]) == r.area]


def weak_classifiers_for_template(
    template: np.ndarray,
    template_mask: Optional[np.ndarray],
    rects: List[PatchRect],
) -> Tuple[List[List[bool]], List[float]]:
    """
    Computes the template's weak classifiers.

    Returns:
        classifiers: classifiers[c][r] is True when block r of channel c has a
                     mean above the template mean (+1), False otherwise (-1).
        means: per-channel template mean over the masked pixels.
    """
    h, w = template.shape[:2]
    channels = template.reshape(h, w, -1)
    C = channels.shape[2]

    selected = (
        np.ones((h, w), dtype=bool) if template_mask is None else template_mask > 0
    )
    count = int(np.count_nonzero(selected))

    # Integer sums divided once keep template and image statistics bit-identical.
    means = [
        int(channels[..., c][selected].sum(dtype=np.int64)) / count if count else 0.0
        for c in range(C)
    ]

    classifiers = [[False] * len(rects) for _ in range(C)]
    for r_idx, rect in enumerate(rects):
        block = channels[rect.slices]
        for c in range(C):
            block_mean = int(block[..., c].sum(dtype=np.int64)) / rect.area
            classifiers[c][r_idx] = block_mean > means[c]
    return classifiers, means


class TemplateMatchCandidates:
    """
    Finds candidate positions for matching templates of a fixed size against
    one source image. The integral images are built once by initialize() and
    reused for every template query.
    """

    def __init__(
        self,
        image: np.ndarray,
        template_size: Tuple[int, int],
        partition_size: Tuple[int, int] = (3, 3),
    ):
        """
        Args:
            image: (H, W) or (H, W, 3) uint8 source image.
            template_size: (height, width) of the templates to be queried.
            partition_size: (rows, cols) of weak classifier blocks.
        """
        self.image = ensure_uint8_image(image, "source image")
        self.template_size = tuple(template_size)
        self.partition_size = tuple(partition_size)
        self.integrals: Optional[torch.Tensor] = None
        self.blocks: List[PatchRect] = []

    def initialize(self):
        th, tw = self.template_size
        rows, cols = self.partition_size
        if th <= 0 or tw <= 0:
            raise PreconditionError(f"template size must be positive, got {self.template_size}")
        if rows <= 0 or cols <= 0:
            raise PreconditionError(
                f"partition size must be positive, got {self.partition_size}"
            )
        if th > self.image.shape[0] or tw > self.image.shape[1]:
            raise PreconditionError(
                f"template size {self.template_size} exceeds image size {self.image.shape[:2]}"
            )

        self.integrals = build_integral_images(self.image)
        self.blocks = compute_block_rects(self.template_size, self.partition_size)

    def find_candidates(
        self,
        template: np.ndarray,
        template_mask: Optional[np.ndarray] = None,
        max_weak_errors: int = 3,
        max_mean_difference: float = 20.0,
    ) -> np.ndarray:
        """
        Marks the top-left template positions worth an exact comparison.

        Args:
            template: Template with the configured size and the image's channel count.
            template_mask: Optional (th, tw) uint8 mask of template pixels to use.
                Blocks not fully inside the mask are ignored.
            max_weak_errors: Number of disagreeing block classifiers tolerated per channel.
            max_mean_difference: Largest accepted difference between the
                template mean and the position mean, per channel.

        Returns:
            candidates: (H - th + 1, W - tw + 1) uint8 mask, 255 = candidate.
        """
        if self.integrals is None:
            raise PreconditionError("initialize() must be called before find_candidates()")
        ensure_uint8_image(template, "template")
        if num_channels(template) != num_channels(self.image):
            raise PreconditionError("template and image channel counts differ")
        if template.shape[:2] != self.template_size:
            raise PreconditionError(
                f"template shape {template.shape[:2]} does not match template size {self.template_size}"
            )
        if template_mask is not None and template_mask.shape[:2] != self.template_size:
            raise PreconditionError("template mask must have the template size")

        th, tw = self.template_size
        H, W = self.image.shape[:2]
        out_shape = (H - th + 1, W - tw + 1)

        blocks = remove_invalid_blocks(template_mask, self.blocks)
        classifiers, template_means = weak_classifiers_for_template(
            template, template_mask, blocks
        )

        full_rect = PatchRect(0, 0, th, tw)
        position_means = box_sums(self.integrals, full_rect, out_shape).double() / full_rect.area

        candidates = torch.ones(out_shape, dtype=torch.bool)
        for c in range(self.integrals.shape[0]):
            position_mean = position_means[c]
            candidates &= (position_mean - template_means[c]).abs() <= max_mean_difference

            errors = torch.zeros(out_shape, dtype=torch.int64)
            channel_integral = self.integrals[c : c + 1]
            for r_idx, block in enumerate(blocks):
                block_mean = (
                    box_sums(channel_integral, block, out_shape)[0].double() / block.area
                )
                errors += ((block_mean > position_mean) != classifiers[c][r_idx]).long()
            candidates &= errors <= max_weak_errors

        return candidates.to(torch.uint8).mul_(255).numpy()


def find_template_match_candidates(
    image: np.ndarray,
    template: np.ndarray,
    template_mask: Optional[np.ndarray] = None,
    partition_size: Tuple[int, int] = (3, 3),
    max_weak_errors: int = 3,
    max_mean_difference: float = 20.0,
) -> np.ndarray:
    """One-shot candidate search. See TemplateMatchCandidates.find_candidates."""
    ensure_uint8_image(template, "template")
    tmc = TemplateMatchCandidates(image, template.shape[:2], partition_size)
    tmc.initialize()
    return tmc.find_candidates(
        template, template_mask, max_weak_errors, max_mean_difference
    )
