"""Shared fixtures: descriptors, an in-memory store and a fake detector."""
from typing import List, Optional

import numpy as np
import pytest

from photomatch.domain.entities.face import BoundingBox, DetectedFace, FaceObservation
from photomatch.domain.interfaces.detection.face_detector import FaceDetector
from photomatch.infrastructure.database import (
    SqlAlchemyPhotoStore,
    create_engine,
    create_session_factory,
    init_models,
)

DIMENSION = 128


def vector(*head: float, dimension: int = DIMENSION) -> np.ndarray:
    """Descriptor whose first components are ``head`` and the rest zeros."""
    descriptor = np.zeros(dimension, dtype=np.float64)
    descriptor[:len(head)] = head
    return descriptor


class FakeDetector(FaceDetector):
    """Detector returning a preset list of faces for any image."""

    def __init__(self, faces: Optional[List[DetectedFace]] = None, dimension: int = DIMENSION) -> None:
        self.faces = faces or []
        self.dimension = dimension
        self.calls = []

    @property
    def descriptor_dimension(self) -> int:
        return self.dimension

    async def detect_faces(self, image_bytes, max_faces=None, min_confidence=None):
        self.calls.append({"image_bytes": image_bytes, "max_faces": max_faces})
        faces = list(self.faces)
        if max_faces is not None:
            faces = faces[:max_faces]
        return faces


@pytest.fixture
def make_observation():
    """Factory for face observations."""
    def _make(face_id: str, descriptor, photo_id: str = "photo-1", confidence: float = 0.9) -> FaceObservation:
        return FaceObservation(
            id=face_id,
            descriptor=descriptor,
            source_photo_id=photo_id,
            confidence=confidence
        )
    return _make


@pytest.fixture
def make_detected_face():
    """Factory for detected faces as a client would submit them."""
    def _make(descriptor, confidence: float = 0.9) -> DetectedFace:
        return DetectedFace(
            confidence=confidence,
            descriptor=descriptor,
            bounding_box=BoundingBox(left=0.1, top=0.2, width=0.3, height=0.4),
            thumbnail="data:image/jpeg;base64,AAAA"
        )
    return _make


@pytest.fixture
async def db_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite+aiosqlite://")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(db_engine) -> SqlAlchemyPhotoStore:
    return SqlAlchemyPhotoStore(create_session_factory(db_engine))


@pytest.fixture
async def event(store):
    return await store.create_event(name="Summer Wedding", location="Lisbon")


@pytest.fixture
def fake_detector() -> FakeDetector:
    return FakeDetector()
