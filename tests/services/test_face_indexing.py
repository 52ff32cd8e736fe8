"""Tests for the face indexing service."""
import pytest
from sqlalchemy.exc import OperationalError

from conftest import FakeDetector, vector
from photomatch.core.exceptions import (
    DescriptorDimensionError,
    DetectionUnavailableError,
    EventNotFoundError,
    StoreError,
)
from photomatch.domain.entities.photo import PhotoMetadata
from photomatch.infrastructure.database.repositories import FaceRepository
from photomatch.services.face_indexing import FaceIndexingService


@pytest.fixture
def service(store):
    return FaceIndexingService(store)


async def test_add_photo_with_faces(service, store, event, make_detected_face):
    faces = [make_detected_face(vector(1.0), 0.95), make_detected_face(vector(0.0, 1.0), 0.8)]

    photo = await service.add_photo_with_faces(
        event.id,
        "https://cdn.example.com/1.jpg",
        faces,
        PhotoMetadata(context="Two people hugging", keywords=["hug"])
    )

    assert photo.event_id == event.id
    assert [face.confidence for face in photo.faces] == [0.95, 0.8]
    assert photo.metadata.keywords == ["hug"]
    assert len(await store.list_faces(event.id)) == 2


async def test_photo_without_faces(service, event):
    photo = await service.add_photo_with_faces(event.id, "https://cdn.example.com/1.jpg", [])

    assert photo.faces == []


async def test_wrong_dimension_is_rejected_before_storing(service, store, event, make_detected_face):
    faces = [make_detected_face(vector(1.0)), make_detected_face(vector(1.0, dimension=512))]

    with pytest.raises(DescriptorDimensionError) as exc_info:
        await service.add_photo_with_faces(event.id, "https://cdn.example.com/1.jpg", faces)

    assert exc_info.value.details["face_index"] == 1
    assert await store.list_photos(event.id) == []


async def test_failed_face_write_leaves_no_partial_photo(service, store, event, make_detected_face, monkeypatch):
    create_face = FaceRepository.create
    calls = []

    async def fail_on_second_face(self, *args, **kwargs):
        calls.append(kwargs["photo_id"])
        if len(calls) == 2:
            raise OperationalError("INSERT INTO faces", {}, Exception("disk I/O error"))
        return await create_face(self, *args, **kwargs)

    monkeypatch.setattr(FaceRepository, "create", fail_on_second_face)
    faces = [make_detected_face(vector(1.0)), make_detected_face(vector(0.0, 1.0))]

    with pytest.raises(StoreError):
        await service.add_photo_with_faces(event.id, "https://cdn.example.com/1.jpg", faces)

    assert len(calls) == 2
    assert await store.list_photos(event.id) == []
    assert await store.list_faces(event.id) == []


async def test_unknown_event(service, make_detected_face):
    with pytest.raises(EventNotFoundError):
        await service.add_photo_with_faces("missing", "https://cdn.example.com/1.jpg", [])


async def test_index_image_requires_detector(service, event):
    with pytest.raises(DetectionUnavailableError):
        await service.index_image(event.id, "https://cdn.example.com/1.jpg", b"jpeg")


async def test_index_image_stores_detected_faces(store, event, make_detected_face):
    detector = FakeDetector([make_detected_face(vector(0.5)), make_detected_face(vector(0.0, 0.5))])
    service = FaceIndexingService(store, detector, max_faces=1)

    photo = await service.index_image(event.id, "https://cdn.example.com/1.jpg", b"jpeg")

    assert detector.calls == [{"image_bytes": b"jpeg", "max_faces": 1}]
    assert len(photo.faces) == 1


async def test_index_image_without_faces_stores_photo(store, event):
    service = FaceIndexingService(store, FakeDetector([]))

    photo = await service.index_image(event.id, "https://cdn.example.com/1.jpg", b"jpeg")

    assert photo.faces == []
    assert [p.id for p in await store.list_photos(event.id)] == [photo.id]
