"""
Exception types raised by the effect library.
"""


class ProceduralArtError(Exception):
    """Base class for all library errors."""


class InvalidImageDimensions(ProceduralArtError, ValueError):
    """A source image has zero width or height."""

    def __init__(self, width, height, what="source image"):
        super().__init__(f"{what} has invalid dimensions {width}x{height}")
        self.width = width
        self.height = height


class EmptySampleSet(ProceduralArtError):
    """No qualifying grid points were found to seed from."""


class EffectDisposed(ProceduralArtError, RuntimeError):
    """step() was called on an effect after dispose()."""


class UnknownEffect(ProceduralArtError, KeyError):
    """Registry lookup for an effect name that does not exist."""


class MissingImages(ProceduralArtError, ValueError):
    """An image-driven effect was created with too few sources."""
