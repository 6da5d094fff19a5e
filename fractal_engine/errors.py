"""Typed failures raised by the fractal engine."""


class FractalError(Exception):
    """Base class for every failure surfaced by a render call."""


class InvalidParameterError(FractalError, ValueError):
    """A render parameter violates its invariant."""


class UnsupportedFractalKindError(FractalError, NotImplementedError):
    """The requested fractal kind has no rendering algorithm."""

    def __init__(self, kind):
        self.kind = kind
        name = getattr(kind, "value", kind)
        super().__init__(f"fractal kind '{name}' has no rendering algorithm")


class RenderCancelledError(FractalError):
    """A render was aborted through its cancellation token."""
