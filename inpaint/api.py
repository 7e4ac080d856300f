from typing import Optional, Tuple

import numpy as np

from .config import InpaintConfig, PatchMatchConfig, TemplateMatchConfig
from .engines.criminisi_engine import CriminisiInpainter
from .engines.patch_match_engine import PatchMatchEngine
from .errors import PreconditionError
from .torch_ops import template_match_ops
from .utils.image_utils import ensure_uint8_image
from .utils.mask_utils import ensure_mask


def inpaint(
    image: np.ndarray,
    target_mask: np.ndarray,
    source_mask: Optional[np.ndarray] = None,
    patch_size: int = 9,
    config: Optional[InpaintConfig] = None,
) -> np.ndarray:
    """
    Fills the masked region of an image from its known surroundings.

    Args:
        image (np.ndarray): (H, W, 3) uint8 BGR image. It is not modified.
        target_mask (np.ndarray): (H, W) uint8 mask, nonzero pixels are filled.
        source_mask (Optional[np.ndarray]): (H, W) uint8 mask restricting
            where source patches may be taken from.
        patch_size (int): Side length of the copied patches. Ignored when a
            config is given.
        config (Optional[InpaintConfig]): Full inpainter configuration.

    Returns:
        np.ndarray: The inpainted image.
    """
    if config is None:
        config = InpaintConfig(patch_size=patch_size)

    ensure_uint8_image(image, "image", channels=(3,))
    ensure_mask(target_mask, image.shape[:2], "target mask")
    if config.patch_size < 2:
        raise PreconditionError(f"patch size must be at least 2, got {config.patch_size}")
    if not np.any(target_mask):
        print("Target mask is empty, nothing to inpaint.")
        return image.copy()

    inpainter = CriminisiInpainter(config)
    result = inpainter.compute(image, target_mask, source_mask)
    print("Inpainting finished.")
    return result


def compute_correspondence(
    source: np.ndarray,
    target: np.ndarray,
    target_mask: Optional[np.ndarray] = None,
    corrs: Optional[np.ndarray] = None,
    distances: Optional[np.ndarray] = None,
    half_patch_size: int = 5,
    iterations: int = 5,
    norm: str = "l2sqr",
    seed: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Dense patch correspondences from source to target with PatchMatch.

    Args:
        source (np.ndarray): (H_s, W_s) or (H_s, W_s, 3) uint8 image.
        target (np.ndarray): uint8 image with the source's channel count.
        target_mask (Optional[np.ndarray]): (H_t, W_t) uint8 mask of usable target pixels.
        corrs (Optional[np.ndarray]): int32 (H_s, W_s, 2) prior, refined in place.
        distances (Optional[np.ndarray]): float64 (H_s, W_s) prior distances,
            refined in place. Only valid together with corrs.
        half_patch_size (int): Patches are (2 * half_patch_size + 1) wide.
        iterations (int): Number of propagation and random search passes.
        norm (str): 'l1', 'l2', 'l2sqr' or 'inf'.
        seed (Optional[int]): Seed of the random stream.

    Returns:
        Tuple[np.ndarray, np.ndarray]: (corrs, distances). corrs holds (x, y)
            target positions per source pixel.
    """
    config = PatchMatchConfig(
        half_patch_size=half_patch_size, iterations=iterations, norm=norm, seed=seed
    )
    engine = PatchMatchEngine(config)
    return engine.run(source, target, target_mask, corrs, distances)


def find_template_match_candidates(
    image: np.ndarray,
    template: np.ndarray,
    template_mask: Optional[np.ndarray] = None,
    partition_size: Tuple[int, int] = (3, 3),
    max_weak_errors: int = 3,
    max_mean_difference: float = 20.0,
) -> np.ndarray:
    """
    Positions of image worth an exact comparison with template.

    Returns:
        np.ndarray: (H - th + 1, W - tw + 1) uint8 mask indexed by the
            template's top-left corner, 255 = candidate.
    """
    config = TemplateMatchConfig(
        partition_size=partition_size,
        max_weak_errors=max_weak_errors,
        max_mean_difference=max_mean_difference,
    )
    return template_match_ops.find_template_match_candidates(
        image,
        template,
        template_mask,
        config.partition_size,
        config.max_weak_errors,
        config.max_mean_difference,
    )
