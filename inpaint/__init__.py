# inpaint/__init__.py
"""
Exemplar based image inpainting (Criminisi) and dense patch
correspondences (PatchMatch).
"""

from .api import compute_correspondence, find_template_match_candidates, inpaint
from .config import InpaintConfig, PatchMatchConfig, TemplateMatchConfig
from .engines import CriminisiInpainter, PatchMatchEngine
from .errors import ExhaustionError, InpaintError, PreconditionError
from .torch_ops import TemplateMatchCandidates
from .utils.image_utils import remap_with_correspondence

__all__ = [
    # Core API
    "inpaint",
    "compute_correspondence",
    "find_template_match_candidates",
    "remap_with_correspondence",
    # Engines
    "CriminisiInpainter",
    "PatchMatchEngine",
    "TemplateMatchCandidates",
    # Configuration
    "InpaintConfig",
    "PatchMatchConfig",
    "TemplateMatchConfig",
    # Errors
    "InpaintError",
    "PreconditionError",
    "ExhaustionError",
]
