"""Exceptions related to cos-image-import."""

__all__ = [
    "ImageImportException",
    "InputException",
    "ScopeException",
    "CloudException",
    "CloudObjectNotFoundError",
    "ObjectNotFoundError",
]


class ImageImportException(Exception):
    """Generic base exception used for this library."""


class InputException(ImageImportException):
    """Raised when the input documents or values are not formatted as expected."""


class ScopeException(ImageImportException):
    """Raised when an image scope cannot be built or is used after close."""


class CloudException(ImageImportException):
    """Raised when a call to the cloud image service fails."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        super().__init__(f"{operation} failed: {message or 'Unknown error'}")
        self.operation = operation
        self.message = message


class CloudObjectNotFoundError(CloudException):
    """Raised when the cloud image service reports the object does not exist."""


class ObjectNotFoundError(ImageImportException):
    """Raised when an object is not found in the store."""
