class InpaintError(Exception):
    """Base class for errors raised by the inpaint library."""


class PreconditionError(InpaintError, ValueError):
    """Malformed input: mismatched shapes, wrong dtype or channel count, bad sizes."""


class ExhaustionError(InpaintError, RuntimeError):
    """The greedy inpainter has no eligible source patch (or fill front) left."""
