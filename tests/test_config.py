import pytest
from pydantic import ValidationError

from inpaint.config import InpaintConfig, PatchMatchConfig, TemplateMatchConfig


def test_defaults():
    cfg = InpaintConfig()
    assert cfg.patch_size == 9
    assert cfg.match_size_factor == 1.25
    assert cfg.use_candidate_filter
    assert cfg.max_weak_errors == 3
    assert cfg.max_mean_difference == 10.0

    pm = PatchMatchConfig()
    assert (pm.half_patch_size, pm.iterations, pm.norm) == (5, 5, "l2sqr")
    assert pm.search_decay == 0.5
    assert pm.seed is None

    tm = TemplateMatchConfig()
    assert tm.partition_size == (3, 3)
    assert tm.max_mean_difference == 20.0


def test_unknown_norm_is_rejected():
    with pytest.raises(ValidationError):
        PatchMatchConfig(norm="hamming")


@pytest.mark.parametrize("decay", [0.0, 1.0, 1.5])
def test_search_decay_must_shrink_the_window(decay):
    with pytest.raises(ValidationError):
        PatchMatchConfig(search_decay=decay)


def test_negative_thresholds_are_rejected():
    with pytest.raises(ValidationError):
        InpaintConfig(max_weak_errors=-1)
    with pytest.raises(ValidationError):
        TemplateMatchConfig(max_mean_difference=-5.0)
