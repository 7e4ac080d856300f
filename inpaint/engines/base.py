# inpaint/engines/base.py
from abc import ABC, abstractmethod

from pydantic import BaseModel


class BaseEngine(ABC):
    """
    Abstract base class for the inpainting and correspondence engines.

    Engines own their configuration and all intermediate state of a run.
    """

    name = "Engine"

    def __init__(self, config: BaseModel):
        print(f"Initializing {self.name}...")
        self.config = config

    @abstractmethod
    def compute(self, *args, **kwargs):
        """Runs the engine on fresh inputs and returns its result."""
        pass
