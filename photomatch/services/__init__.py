"""Application services."""
from .face_indexing import FaceIndexingService
from .face_matching import FaceMatchingService
from .gallery import GalleryService

__all__ = ["FaceIndexingService", "FaceMatchingService", "GalleryService"]
