"""Service interfaces package."""
from .detection import FaceDetector
from .storage import PhotoStore

__all__ = ["FaceDetector", "PhotoStore"]
