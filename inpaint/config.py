from typing import Optional, Tuple

from pydantic import BaseModel, Field, validator

from .consts import (
    CRIMINISI_MAX_MEAN_DIFFERENCE,
    CRIMINISI_MAX_WEAK_ERRORS,
    MATCH_SIZE_FACTOR,
    NORM_NAMES,
    SEARCH_DECAY,
)


class TemplateMatchConfig(BaseModel):
    partition_size: Tuple[int, int] = (3, 3)  # (rows, cols) of sub-blocks
    max_weak_errors: int = Field(3, ge=0)
    max_mean_difference: float = Field(20.0, ge=0.0)


class InpaintConfig(BaseModel):
    # Validated by CriminisiInpainter.initialize so bad sizes raise PreconditionError
    patch_size: int = 9
    match_size_factor: float = Field(MATCH_SIZE_FACTOR, ge=1.0)
    # The candidate filter only speeds up the source search; disabling it
    # runs the exhaustive scan directly.
    use_candidate_filter: bool = True
    partition_size: Tuple[int, int] = (3, 3)
    max_weak_errors: int = Field(CRIMINISI_MAX_WEAK_ERRORS, ge=0)
    max_mean_difference: float = Field(CRIMINISI_MAX_MEAN_DIFFERENCE, ge=0.0)


class PatchMatchConfig(BaseModel):
    # Validated by PatchMatchEngine.run so bad sizes raise PreconditionError
    half_patch_size: int = 5
    iterations: int = 5
    norm: str = "l2sqr"  # 'l1', 'l2', 'l2sqr' or 'inf'
    search_decay: float = Field(SEARCH_DECAY, gt=0.0, lt=1.0)
    seed: Optional[int] = None

    @validator("norm")
    def norm_must_be_valid(cls, v):
        if v not in NORM_NAMES:
            raise ValueError(f"norm must be one of {sorted(NORM_NAMES)}")
        return v
