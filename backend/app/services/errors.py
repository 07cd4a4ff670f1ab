"""Domain errors raised by the Second Brain services."""


class SecondBrainError(Exception):
    """Base class for service-level errors."""


class ItemNotFoundError(SecondBrainError):
    """No brain item matched the given id and owner."""

    def __init__(self, item_id, user_id: str):
        super().__init__(f"Brain item {item_id} not found for user")
        self.item_id = item_id
        self.user_id = user_id


class ImageProcessingError(SecondBrainError):
    """Downloading an image from LINE or storing it failed."""


class InvalidImageUrlError(SecondBrainError):
    """A public image URL does not point into the image bucket."""
