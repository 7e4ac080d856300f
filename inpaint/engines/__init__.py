# inpaint/engines/__init__.py
from .base import BaseEngine
from .criminisi_engine import CriminisiInpainter
from .patch_match_engine import PatchMatchEngine

__all__ = ["BaseEngine", "CriminisiInpainter", "PatchMatchEngine"]
