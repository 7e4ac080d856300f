import numpy as np

import inpaint
from inpaint import (
    InpaintConfig,
    PreconditionError,
    compute_correspondence,
    find_template_match_candidates,
    remap_with_correspondence,
)
from inpaint.errors import ExhaustionError, InpaintError


def test_error_hierarchy():
    assert issubclass(PreconditionError, InpaintError)
    assert issubclass(PreconditionError, ValueError)
    assert issubclass(ExhaustionError, InpaintError)
    assert issubclass(ExhaustionError, RuntimeError)


def test_inpaint_uses_given_config(striped_image):
    mask = np.zeros((64, 64), dtype=np.uint8)
    mask[28:36, 28:36] = 255
    damaged = striped_image.copy()
    damaged[mask > 0] = 0

    result = inpaint.inpaint(damaged, mask, config=InpaintConfig(patch_size=5))

    assert result is not damaged
    assert not (result[mask > 0] == 0).all(axis=1).any()


def test_remap_with_correspondence_samples_target():
    target = np.arange(12, dtype=np.uint8).reshape(3, 4)
    corrs = np.array([[[3, 2], [0, 0]], [[1, 1], [9, -4]]], dtype=np.int32)

    out = remap_with_correspondence(target, corrs)

    assert out.tolist() == [[11, 0], [5, 3]]


def test_correspondence_of_image_with_itself_is_perfect_inside(uniform_noise_image):
    img = np.stack([uniform_noise_image(32, seed=s) for s in (1, 2, 3)], axis=2)

    corrs, distances = compute_correspondence(img, img, half_patch_size=2, iterations=4, seed=0)

    assert corrs.shape == (32, 32, 2)
    assert np.mean(distances[2:30, 2:30] == 0) > 0.9


def test_find_template_match_candidates_via_api(uniform_noise_image):
    img = uniform_noise_image(50)
    template = img[12:24, 30:42]

    candidates = find_template_match_candidates(img, template, max_weak_errors=0)

    assert candidates.shape == (39, 39)
    assert candidates[12, 30] == 255
