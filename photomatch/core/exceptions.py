"""Custom exceptions for the photo matching service."""
from typing import Optional


class PhotoMatchError(Exception):
    """Base exception for photo matching operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize photo matching error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.details = details or {}


class InvalidDescriptorError(PhotoMatchError):
    """Raised when a face descriptor cannot be parsed or is unusable."""
    pass


class DescriptorDimensionError(InvalidDescriptorError):
    """Raised when descriptors do not have the configured dimensionality.

    On ingest this rejects a single malformed descriptor. When raised by
    :class:`~photomatch.core.utils.descriptor.DimensionGuard` it
    signals that the stored population itself has drifted to another length.
    """
    pass


class InvalidImageError(PhotoMatchError):
    """Raised when the provided image is invalid or cannot be processed."""
    pass


class NoFaceDetectedError(PhotoMatchError):
    """Raised when no face is detected in the image."""
    pass


class MultipleFacesError(PhotoMatchError):
    """Raised when multiple faces are found in an image that expects only one face."""
    pass


class ModelLoadError(PhotoMatchError):
    """Raised when the face detection model fails to load."""
    pass


class DetectionUnavailableError(PhotoMatchError):
    """Raised when server-side detection is requested but not enabled."""
    pass


class PersonNotFoundError(PhotoMatchError):
    """Raised when a person id does not match any cluster of an event."""
    pass


class ServiceNotInitializedError(PhotoMatchError):
    """Raised when a service is requested before the container is initialized."""
    pass


class StoreError(PhotoMatchError):
    """Base exception for photo store operations."""
    pass


class EventNotFoundError(StoreError):
    """Raised when attempting to access a non-existent event."""
    pass


class PhotoNotFoundError(StoreError):
    """Raised when attempting to access a non-existent photo."""
    pass
