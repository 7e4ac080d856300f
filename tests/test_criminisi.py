import cv2
import numpy as np
import pytest

from inpaint import CriminisiInpainter, InpaintConfig, inpaint
from inpaint.errors import ExhaustionError, PreconditionError


@pytest.fixture
def noise_bgr(uniform_noise_image):
    return cv2.cvtColor(uniform_noise_image(50), cv2.COLOR_GRAY2BGR)


@pytest.fixture
def hole_mask():
    mask = np.zeros((64, 64), dtype=np.uint8)
    mask[24:40, 24:40] = 255
    return mask


def test_empty_target_leaves_image_unchanged(noise_bgr):
    inpainter = CriminisiInpainter()
    inpainter.set_source_image(noise_bgr)
    inpainter.set_target_mask(np.zeros(noise_bgr.shape[:2], dtype=np.uint8))
    inpainter.set_patch_size(9)
    inpainter.initialize()

    assert inpainter.image.shape == noise_bgr.shape
    assert np.array_equal(inpainter.image, noise_bgr)
    assert not inpainter.has_more_steps()


def test_inpaint_with_empty_mask_returns_identical_image(noise_bgr):
    result = inpaint(noise_bgr, np.zeros(noise_bgr.shape[:2], dtype=np.uint8))
    assert np.array_equal(result, noise_bgr)

    tiny = noise_bgr[:3, :3].copy()
    assert np.array_equal(inpaint(tiny, np.zeros((3, 3), dtype=np.uint8)), tiny)


def test_initialize_derives_regions(striped_image, hole_mask):
    inpainter = CriminisiInpainter(InpaintConfig(patch_size=9))
    inpainter.set_source_image(striped_image)
    inpainter.set_target_mask(hole_mask)
    inpainter.initialize()

    hm = inpainter.half_match_size
    assert inpainter.half_patch_size == 4
    assert hm == 5
    assert np.array_equal(inpainter.target_region > 0, hole_mask > 0)

    source = inpainter.source_region > 0
    assert not source[: 2 * hm].any()
    assert not source[24 - hm : 40 + hm, 24 - hm : 40 + hm].any()
    assert source[2 * hm, 2 * hm]

    assert np.all(inpainter.confidence[hole_mask > 0] == 0)
    assert np.all(inpainter.confidence[hole_mask == 0] == 1)


def test_step_shrinks_target_and_grows_source(striped_image, hole_mask):
    inpainter = CriminisiInpainter()
    inpainter.set_source_image(striped_image)
    inpainter.set_target_mask(hole_mask)
    inpainter.initialize()

    target_before = np.count_nonzero(inpainter.target_region)
    source_before = inpainter.source_region > 0
    inpainter.step()

    assert np.count_nonzero(inpainter.target_region) < target_before
    assert np.all(inpainter.source_region[source_before] > 0)
    assert inpainter.confidence.min() >= 0
    assert inpainter.confidence.max() <= 1


def test_every_step_strictly_shrinks_target(striped_image, hole_mask):
    inpainter = CriminisiInpainter(InpaintConfig(patch_size=9))
    inpainter.set_source_image(striped_image)
    inpainter.set_target_mask(hole_mask)
    inpainter.initialize()

    initial = np.count_nonzero(inpainter.target_region)
    remaining = initial
    steps = 0
    while inpainter.has_more_steps():
        inpainter.step()
        steps += 1
        left = np.count_nonzero(inpainter.target_region)
        assert left < remaining
        remaining = left

    assert 0 < steps <= initial


def test_inpaint_fills_hole_with_known_colors(striped_image, hole_mask):
    damaged = striped_image.copy()
    damaged[hole_mask > 0] = (0, 0, 255)

    result = inpaint(damaged, hole_mask, patch_size=9)

    assert result.shape == damaged.shape
    assert np.array_equal(result[hole_mask == 0], striped_image[hole_mask == 0])
    colors = {tuple(c) for c in striped_image.reshape(-1, 3)}
    assert {tuple(c) for c in result.reshape(-1, 3)} <= colors
    assert np.array_equal(damaged[hole_mask > 0], np.tile([0, 0, 255], (256, 1)))


def test_compute_runs_to_completion_without_candidate_filter(striped_image, hole_mask):
    damaged = striped_image.copy()
    damaged[hole_mask > 0] = 0
    inpainter = CriminisiInpainter(InpaintConfig(patch_size=7, use_candidate_filter=False))

    result = inpainter.compute(damaged, hole_mask)

    assert not inpainter.has_more_steps()
    assert not (result[hole_mask > 0] == 0).all(axis=1).any()


def test_mask_pixels_in_border_band_are_ignored(striped_image):
    mask = np.zeros((64, 64), dtype=np.uint8)
    mask[0:3, 10:20] = 255
    mask[30:34, 30:34] = 255
    damaged = striped_image.copy()
    damaged[mask > 0] = 0

    result = inpaint(damaged, mask)

    assert np.array_equal(result[0:3, 10:20], damaged[0:3, 10:20])
    assert not (result[30:34, 30:34] == 0).all(axis=2).any()


def test_source_mask_restricts_source_region(striped_image, hole_mask):
    source_mask = np.zeros((64, 64), dtype=np.uint8)
    source_mask[:, 40:] = 255

    inpainter = CriminisiInpainter()
    inpainter.set_source_image(striped_image)
    inpainter.set_target_mask(hole_mask)
    inpainter.set_source_mask(source_mask)
    inpainter.initialize()

    assert inpainter.source_region[:, :40].max() == 0
    assert inpainter.source_region[:, 40:].max() == 255


def test_unreachable_source_raises_exhaustion(striped_image, hole_mask):
    inpainter = CriminisiInpainter()
    inpainter.set_source_image(striped_image)
    inpainter.set_target_mask(hole_mask)
    inpainter.set_source_mask(hole_mask)
    inpainter.initialize()

    with pytest.raises(ExhaustionError):
        inpainter.step()


def test_preconditions(striped_image, hole_mask):
    gray = striped_image[..., 0].copy()
    with pytest.raises(PreconditionError):
        inpaint(gray, hole_mask)
    with pytest.raises(PreconditionError):
        inpaint(striped_image.astype(np.float32), hole_mask)
    with pytest.raises(PreconditionError):
        inpaint(striped_image, hole_mask[:32])
    with pytest.raises(PreconditionError):
        inpaint(striped_image, hole_mask, source_mask=hole_mask[:, :10])
    with pytest.raises(PreconditionError):
        inpaint(striped_image, hole_mask, patch_size=1)

    empty = np.zeros(striped_image.shape[:2], dtype=np.uint8)
    for patch_size in (0, -3):
        with pytest.raises(PreconditionError):
            inpaint(striped_image, empty, patch_size=patch_size)

    inpainter = CriminisiInpainter()
    inpainter.set_source_image(striped_image)
    with pytest.raises(PreconditionError):
        inpainter.initialize()
