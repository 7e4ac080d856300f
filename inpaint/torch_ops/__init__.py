# inpaint/torch_ops/__init__.py
"""
PyTorch operations for exemplar based inpainting and PatchMatch.

This package contains vectorized PyTorch implementations of the dense
kernels (integral images, template match candidates, patch errors, random
search) used by the engines.
"""

from .integral_ops import box_sums, build_integral_images, rect_mean, rect_sum
from .patch_ops import (
    as_int64_image,
    compute_patch_distances_vectorized,
    masked_patch_errors,
)
from .patchmatch_ops import (
    PatchDistance,
    initial_distances,
    propagation_step,
    random_init,
    random_search_step,
)
from .template_match_ops import (
    TemplateMatchCandidates,
    compute_block_rects,
    find_template_match_candidates,
    remove_invalid_blocks,
    weak_classifiers_for_template,
)

__all__ = [
    # Integral image operations
    "build_integral_images",
    "rect_sum",
    "rect_mean",
    "box_sums",
    # Patch operations
    "as_int64_image",
    "masked_patch_errors",
    "compute_patch_distances_vectorized",
    # Template match operations
    "TemplateMatchCandidates",
    "compute_block_rects",
    "remove_invalid_blocks",
    "weak_classifiers_for_template",
    "find_template_match_candidates",
    # PatchMatch operations
    "PatchDistance",
    "random_init",
    "initial_distances",
    "propagation_step",
    "random_search_step",
]
