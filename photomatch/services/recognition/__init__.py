"""Face recognition engine: deduplication, matching and photo filtering.

The InsightFace detector lives in :mod:`.insight_face` and is imported on
demand since it needs the optional ``detection`` dependencies.
"""
from .clustering import DEDUPE_THRESHOLD, dedupe_faces
from .filtering import FILTER_THRESHOLD, build_photo_face_index, photos_for_person
from .matching import MATCH_THRESHOLD, match_face

__all__ = [
    "DEDUPE_THRESHOLD",
    "FILTER_THRESHOLD",
    "MATCH_THRESHOLD",
    "build_photo_face_index",
    "dedupe_faces",
    "match_face",
    "photos_for_person",
]
