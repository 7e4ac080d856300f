# inpaint/engines/patch_match_engine.py
from typing import Optional, Tuple

import numpy as np
import torch
from tqdm import tqdm

from ..config import PatchMatchConfig
from ..consts import NORM_NAMES
from ..errors import PreconditionError
from ..torch_ops import (
    PatchDistance,
    as_int64_image,
    initial_distances,
    propagation_step,
    random_init,
    random_search_step,
)
from ..utils.image_utils import ensure_uint8_image, num_channels
from ..utils.mask_utils import ensure_mask
from .base import BaseEngine


class PatchMatchEngine(BaseEngine):
    """
    Dense approximate nearest neighbor fields ("PatchMatch: A Randomized
    Correspondence Algorithm for Structural Image Editing", Barnes et al.).

    For every pixel of the source image the engine finds the target pixel
    whose surrounding patch is closest under the configured norm.
    """

    name = "PatchMatch Engine"

    def __init__(self, config: Optional[PatchMatchConfig] = None):
        super().__init__(config or PatchMatchConfig())
        self.norm = NORM_NAMES[self.config.norm]
        print(
            f"PatchMatch Engine initialized with norm: '{self.config.norm}', "
            f"half patch size: {self.config.half_patch_size}"
        )

    def _validate(
        self,
        source: np.ndarray,
        target: np.ndarray,
        target_mask: Optional[np.ndarray],
        corrs: Optional[np.ndarray],
        distances: Optional[np.ndarray],
    ):
        ensure_uint8_image(source, "source")
        ensure_uint8_image(target, "target")
        if num_channels(source) != num_channels(target):
            raise PreconditionError("source and target must have the same channel count")
        ensure_mask(target_mask, target.shape[:2], "target mask")

        h = self.config.half_patch_size
        if h <= 0:
            raise PreconditionError(f"half patch size must be positive, got {h}")
        if self.config.iterations < 0:
            raise PreconditionError(
                f"iterations must be non-negative, got {self.config.iterations}"
            )
        if target.shape[0] <= 2 * h or target.shape[1] <= 2 * h:
            raise PreconditionError(
                f"target of size {target.shape[:2]} cannot hold a patch of size {2 * h + 1}"
            )

        H_s, W_s = source.shape[:2]
        if corrs is not None:
            if corrs.dtype != np.int32 or corrs.shape != (H_s, W_s, 2):
                raise PreconditionError(
                    "corrs must be an int32 array of shape (H_s, W_s, 2)"
                )
        if distances is not None:
            if corrs is None:
                raise PreconditionError("distances can only be given together with corrs")
            if distances.dtype != np.float64 or distances.shape != (H_s, W_s):
                raise PreconditionError(
                    "distances must be a float64 array of shape (H_s, W_s)"
                )

    def run(
        self,
        source: np.ndarray,
        target: np.ndarray,
        target_mask: Optional[np.ndarray] = None,
        corrs: Optional[np.ndarray] = None,
        distances: Optional[np.ndarray] = None,
        generator: Optional[torch.Generator] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Computes the correspondence field from source to target.

        Args:
            source: (H_s, W_s) or (H_s, W_s, 3) uint8 image.
            target: uint8 image with the source's channel count.
            target_mask: Optional (H_t, W_t) uint8 mask. Target patches touching
                a zero pixel are never matched.
            corrs: Optional int32 (H_s, W_s, 2) prior of (x, y) target positions,
                refined in place.
            distances: Optional float64 (H_s, W_s) distances of the prior,
                refined in place. Requires corrs.
            generator: Random stream. Defaults to one seeded from config.seed.

        Returns:
            (corrs, distances)
        """
        self._validate(source, target, target_mask, corrs, distances)

        if generator is None:
            generator = torch.Generator()
            if self.config.seed is not None:
                generator.manual_seed(self.config.seed)
            else:
                generator.seed()

        h = self.config.half_patch_size
        H_s, W_s = source.shape[:2]

        source_t = as_int64_image(source)
        target_t = as_int64_image(target)
        target_valid_t = None if target_mask is None else torch.from_numpy(target_mask > 0)

        if corrs is None:
            corrs = np.zeros((H_s, W_s, 2), dtype=np.int32)
            random_init(corrs, target.shape, target_mask, h, generator)

        if distances is None:
            distances = np.empty((H_s, W_s), dtype=np.float64)
            initial_distances(
                distances, corrs, source_t, target_t, target_valid_t, h, self.norm
            )

        distance = PatchDistance(source, target, target_mask, h, self.norm)

        for i in tqdm(range(self.config.iterations), desc="PatchMatch"):
            propagation_step(corrs, distances, distance, forward=(i % 2 == 0))
            random_search_step(
                corrs,
                distances,
                source_t,
                target_t,
                target_valid_t,
                h,
                self.norm,
                self.config.search_decay,
                generator,
            )

        return corrs, distances

    def compute(self, *args, **kwargs) -> Tuple[np.ndarray, np.ndarray]:
        return self.run(*args, **kwargs)
