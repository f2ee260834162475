"""Domain errors raised by the generation client and the studio controller."""

from __future__ import annotations


class SongCraftError(Exception):
    """Base class for all user-facing SongCraft failures."""


class AuthenticationRequired(SongCraftError):
    """No usable API key has been selected."""

    def __init__(self, message: str = "Please select an API key to enable generation."):
        super().__init__(message)


class GenerationFailed(SongCraftError):
    """The song request could not be turned into a JSON object."""

    def __init__(self, message: str = "Failed to generate song. Please try a different topic."):
        super().__init__(message)


class ImageGenerationFailed(SongCraftError):
    """The image model returned no usable inline image, or the call failed."""

    def __init__(self, message: str = "Image generation failed"):
        super().__init__(message)


class ImageEditFailed(SongCraftError):
    def __init__(self, message: str = "Image edit failed"):
        super().__init__(message)


class InvalidTransition(SongCraftError):
    """A studio action was requested from a phase that does not allow it."""
