# inpaint/engines/criminisi_engine.py
from typing import Optional, Tuple

import cv2
import numpy as np
import torch
from tqdm import tqdm

from ..config import InpaintConfig
from ..consts import DATA_TERM_EPSILON, INVALID_LOCATION, MASK_OFF, MASK_ON
from ..errors import ExhaustionError, PreconditionError
from ..patch import centered_patch, centered_rect
from ..torch_ops import TemplateMatchCandidates, as_int64_image, masked_patch_errors
from ..utils.gradient_utils import compute_isophotes, normalized_gradient
from ..utils.image_utils import ensure_uint8_image
from ..utils.mask_utils import clear_border, ensure_mask, erode_mask, to_binary_mask
from .base import BaseEngine


class CriminisiInpainter(BaseEngine):
    """
    Exemplar based inpainting ("Region Filling and Object Removal by
    Exemplar-Based Image Inpainting", Criminisi et al.).

    The target region is filled patch by patch. Each step picks the fill
    front pixel with the highest priority (confidence times data term), finds
    the known patch that best matches its surroundings and copies the missing
    pixels over. Usage follows the engine pattern:

        inpainter = CriminisiInpainter(config)
        inpainter.set_source_image(image)
        inpainter.set_target_mask(mask)
        inpainter.initialize()
        while inpainter.has_more_steps():
            inpainter.step()
        result = inpainter.image
    """

    name = "Criminisi Inpainter"

    def __init__(self, config: Optional[InpaintConfig] = None):
        super().__init__(config or InpaintConfig())

        self._input_image: Optional[np.ndarray] = None
        self._input_target_mask: Optional[np.ndarray] = None
        self._input_source_mask: Optional[np.ndarray] = None
        self._patch_size = self.config.patch_size

        self._image: Optional[np.ndarray] = None
        self._image_t: Optional[torch.Tensor] = None
        self._target_region: Optional[np.ndarray] = None
        self._source_region: Optional[np.ndarray] = None
        self._border_region: Optional[np.ndarray] = None
        self._source_mask: Optional[np.ndarray] = None
        self._confidence: Optional[np.ndarray] = None
        self._isophote_x: Optional[np.ndarray] = None
        self._isophote_y: Optional[np.ndarray] = None
        self._fill_front = np.empty((0, 2), dtype=np.int64)
        self._tmc: Optional[TemplateMatchCandidates] = None

        self._half_patch_size = 0
        self._half_match_size = 0
        self._start = 0
        self._end_y = -1
        self._end_x = -1

    # --- Inputs ---

    def set_source_image(self, image: np.ndarray):
        """3-channel uint8 image to be inpainted. It is copied on initialize()."""
        self._input_image = image

    def set_target_mask(self, mask: np.ndarray):
        """Nonzero pixels of mask are filled."""
        self._input_target_mask = mask

    def set_source_mask(self, mask: Optional[np.ndarray]):
        """Restricts source patch centers to nonzero pixels. None or all zero means no restriction."""
        self._input_source_mask = mask

    def set_patch_size(self, patch_size: int):
        self._patch_size = patch_size

    # --- State ---

    @property
    def image(self) -> np.ndarray:
        return self._image

    @property
    def target_region(self) -> np.ndarray:
        return self._target_region

    @property
    def source_region(self) -> np.ndarray:
        return self._source_region

    @property
    def confidence(self) -> np.ndarray:
        return self._confidence

    @property
    def half_patch_size(self) -> int:
        return self._half_patch_size

    @property
    def half_match_size(self) -> int:
        return self._half_match_size

    # --- Algorithm ---

    def initialize(self):
        image = ensure_uint8_image(self._input_image, "image", channels=(3,))
        H, W = image.shape[:2]

        if self._input_target_mask is None:
            raise PreconditionError("target mask must be set before initialize()")
        target_mask = ensure_mask(self._input_target_mask, (H, W), "target mask")
        source_mask = ensure_mask(self._input_source_mask, (H, W), "source mask")

        if self._patch_size < 2:
            raise PreconditionError(f"patch size must be at least 2, got {self._patch_size}")

        self._half_patch_size = self._patch_size // 2
        self._half_match_size = int(self._half_patch_size * self.config.match_size_factor)
        hm = self._half_match_size
        if H < 2 * hm + 1 or W < 2 * hm + 1:
            raise PreconditionError(
                f"image of size {(H, W)} is smaller than the match patch ({2 * hm + 1})"
            )

        self._image = image.copy()
        self._image_t = as_int64_image(self._image)

        self._target_region = clear_border(to_binary_mask(target_mask), hm)
        self._source_mask = None
        if source_mask is not None and np.count_nonzero(source_mask) > 0:
            self._source_mask = to_binary_mask(source_mask)
        self._update_source_region()

        self._isophote_x, self._isophote_y = compute_isophotes(self._image)

        self._confidence = np.ones((H, W), dtype=np.float32)
        self._confidence[self._target_region > 0] = 0

        # Valid centers for match patches, inclusive on both ends
        self._start = hm
        self._end_y = H - hm - 1
        self._end_x = W - hm - 1

        self._tmc = None
        if self.config.use_candidate_filter:
            # Integral images are not refreshed as pixels get filled. That only
            # makes the filter less selective, the exhaustive pass still runs.
            self._tmc = TemplateMatchCandidates(
                self._image, (2 * hm + 1, 2 * hm + 1), self.config.partition_size
            )
            self._tmc.initialize()

    def has_more_steps(self) -> bool:
        return np.count_nonzero(self._target_region) > 0

    def step(self):
        if self._image is None:
            raise PreconditionError("initialize() must be called before step()")

        self._update_fill_front()
        target = self._find_target_patch_location()

        source = INVALID_LOCATION
        if self._tmc is not None:
            source = self._find_source_patch_location(target, use_candidate_filter=True)
        if source == INVALID_LOCATION:
            source = self._find_source_patch_location(target, use_candidate_filter=False)
        if source == INVALID_LOCATION:
            raise ExhaustionError(f"no source patch available to fill around {target}")

        self._propagate_patch(target, source)

    def compute(
        self,
        image: np.ndarray,
        target_mask: np.ndarray,
        source_mask: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Inpaints image in one call.

        Args:
            image: (H, W, 3) uint8 image.
            target_mask: (H, W) uint8 mask, nonzero = fill.
            source_mask: Optional (H, W) uint8 mask of allowed source centers.

        Returns:
            The inpainted copy of image.
        """
        self.set_source_image(image)
        self.set_target_mask(target_mask)
        self.set_source_mask(source_mask)
        self.initialize()

        remaining = int(np.count_nonzero(self._target_region))
        with tqdm(total=remaining, desc="Inpainting") as pbar:
            while self.has_more_steps():
                self.step()
                left = int(np.count_nonzero(self._target_region))
                pbar.update(remaining - left)
                remaining = left
        return self._image

    # --- Steps ---

    def _update_source_region(self):
        hm = self._half_match_size
        source = (MASK_ON - self._target_region).astype(np.uint8)
        clear_border(source, hm)
        source = erode_mask(source, hm)
        if self._source_mask is not None:
            source[self._source_mask == 0] = MASK_OFF
        self._source_region = source

    def _update_fill_front(self):
        # 2nd order derivative used to find border. Negative responses inside
        # the target saturate to zero, leaving known pixels next to it.
        self._border_region = cv2.Laplacian(
            self._target_region, cv2.CV_8U, ksize=3, borderType=cv2.BORDER_REPLICATE
        )

        s = self._start
        window = self._border_region[s : self._end_y + 1, s : self._end_x + 1]
        self._fill_front = np.argwhere(window > 0) + s

        # Sequential on purpose: later front pixels see updated confidences.
        for y, x in self._fill_front:
            self._confidence[y, x] = self._confidence_for_patch_location(y, x)

    def _confidence_for_patch_location(self, y: int, x: int) -> float:
        c = centered_patch(self._confidence, y, x, self._half_patch_size, clamp=True)
        return float(c.sum()) / c.size

    def _find_target_patch_location(self) -> Tuple[int, int]:
        if len(self._fill_front) == 0:
            raise ExhaustionError("fill front is empty but target pixels remain")

        ys, xs = self._fill_front[:, 0], self._fill_front[:, 1]

        # Front pixels never touch the border, so the 3x3 Sobel window fits
        normals = np.array(
            [normalized_gradient(self._target_region, y, x) for y, x in zip(ys, xs)],
            dtype=np.float32,
        )
        data = (
            np.abs(
                normals[:, 0] * self._isophote_x[ys, xs]
                + normals[:, 1] * self._isophote_y[ys, xs]
            )
            + np.float32(DATA_TERM_EPSILON)
        )
        priority = self._confidence[ys, xs] * data

        # argmax keeps the first maximum in raster order
        best = int(np.argmax(priority))
        return int(ys[best]), int(xs[best])

    def _find_source_patch_location(
        self, target: Tuple[int, int], use_candidate_filter: bool
    ) -> Tuple[int, int]:
        ty, tx = target
        hm = self._half_match_size
        s = self._start

        template = centered_patch(self._image, ty, tx, hm)
        known = centered_patch(self._target_region, ty, tx, hm) == 0

        eligible = self._source_region[s : self._end_y + 1, s : self._end_x + 1] > 0
        if use_candidate_filter:
            # Candidates are indexed by top-left corner, which is exactly the
            # center shifted by the half match size.
            candidates = self._tmc.find_candidates(
                template,
                np.where(known, MASK_ON, MASK_OFF).astype(np.uint8),
                self.config.max_weak_errors,
                self.config.max_mean_difference,
            )
            eligible &= candidates > 0

        centers = np.argwhere(eligible) + s
        if len(centers) == 0:
            return INVALID_LOCATION

        errors = masked_patch_errors(
            self._image_t,
            as_int64_image(template),
            torch.from_numpy(known),
            torch.from_numpy(centers),
            hm,
        )
        best = int(torch.argmin(errors))
        return int(centers[best, 0]), int(centers[best, 1])

    def _propagate_patch(self, target: Tuple[int, int], source: Tuple[int, int]):
        ty, tx = target
        sy, sx = source
        hp = self._half_patch_size

        copy_mask = centered_patch(self._target_region, ty, tx, hp) > 0

        for field in (self._image, self._isophote_x, self._isophote_y):
            dst = centered_patch(field, ty, tx, hp)
            dst[copy_mask] = centered_patch(field, sy, sx, hp)[copy_mask]

        c_patch = self._confidence[ty, tx]
        centered_patch(self._confidence, ty, tx, hp)[copy_mask] = c_patch

        centered_patch(self._target_region, ty, tx, hp)[copy_mask] = MASK_OFF

        rect = centered_rect(self._image.shape, ty, tx, hp)
        self._image_t[rect.slices] = as_int64_image(self._image[rect.slices])

        self._update_source_region()
