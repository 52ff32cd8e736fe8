"""Domain entities package."""
from .face import BoundingBox, DetectedFace, FaceObservation, PersonCluster
from .photo import Event, Photo, PhotoMetadata

__all__ = [
    "BoundingBox",
    "DetectedFace",
    "Event",
    "FaceObservation",
    "PersonCluster",
    "Photo",
    "PhotoMetadata",
]
