"""SQLAlchemy implementation of the photo store."""
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncGenerator, List, Optional, Sequence

import numpy as np
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from photomatch.core.exceptions import InvalidDescriptorError, StoreError
from photomatch.core.logging import get_logger
from photomatch.core.utils.descriptor import format_descriptor, parse_descriptor
from photomatch.domain.entities.face import BoundingBox, DetectedFace, FaceObservation
from photomatch.domain.entities.photo import Event, Photo, PhotoMetadata
from photomatch.domain.interfaces.storage.photo_store import PhotoStore
from photomatch.infrastructure.database import models
from photomatch.infrastructure.database.session import get_db_session
from photomatch.infrastructure.database.unit_of_work import UnitOfWork

logger = get_logger(__name__)


def to_observation(row: models.Face) -> FaceObservation:
    """Convert a face row to a FaceObservation.

    A descriptor string that no longer parses becomes an empty descriptor,
    which the engine skips, instead of failing the whole snapshot.
    """
    try:
        descriptor = parse_descriptor(row.descriptor or "")
    except InvalidDescriptorError as e:
        logger.warning("Stored descriptor is malformed", face_id=row.id, error=str(e))
        descriptor = np.empty(0, dtype=np.float64)

    bounding_box = None
    if row.bbox_left is not None and row.bbox_top is not None:
        bounding_box = BoundingBox(
            left=row.bbox_left,
            top=row.bbox_top,
            width=row.bbox_width or 0.0,
            height=row.bbox_height or 0.0
        )

    return FaceObservation(
        id=row.id,
        descriptor=descriptor,
        source_photo_id=row.photo_id,
        confidence=row.confidence,
        thumbnail=row.thumbnail,
        bounding_box=bounding_box
    )


def to_photo(row: models.Photo) -> Photo:
    return Photo(
        id=row.id,
        event_id=row.event_id,
        url=row.url,
        created_at=row.created_at,
        faces=[to_observation(face) for face in row.faces],
        metadata=PhotoMetadata(
            context=row.context,
            keywords=row.keywords or [],
            event_type=row.event_type,
            people_count=row.people_count,
            setting=row.setting,
            colors=row.colors or [],
            objects=row.objects or [],
            mood=row.mood,
            context_text=row.context_text
        )
    )


def to_event(row: models.Event) -> Event:
    return Event(
        id=row.id,
        name=row.name,
        description=row.description,
        location=row.location,
        event_date=row.event_date,
        created_at=row.created_at
    )


class SqlAlchemyPhotoStore(PhotoStore):
    """Photo store backed by a relational database.

    Each call runs in its own unit of work: committed on success, rolled
    back on error.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncGenerator[UnitOfWork, None]:
        try:
            async with get_db_session(self._session_factory) as session:
                async with UnitOfWork(session) as uow:
                    yield uow
        except SQLAlchemyError as e:
            raise StoreError(f"Database operation failed: {e}")

    async def create_event(
        self,
        name: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
        event_date: Optional[date] = None,
    ) -> Event:
        async with self._unit_of_work() as uow:
            row = await uow.events.create(
                name=name,
                description=description,
                location=location,
                event_date=event_date
            )
            event = to_event(row)
        logger.info("Created event", event_id=event.id)
        return event

    async def get_event(self, event_id: str) -> Event:
        async with self._unit_of_work() as uow:
            return to_event(await uow.events.get(event_id))

    async def add_photo(
        self,
        event_id: str,
        url: str,
        metadata: Optional[PhotoMetadata] = None,
    ) -> Photo:
        metadata = metadata or PhotoMetadata()
        async with self._unit_of_work() as uow:
            await uow.events.get(event_id)
            row = await uow.photos.create(event_id=event_id, url=url, **metadata.model_dump())
            photo = to_photo(row)
        logger.debug("Stored photo", photo_id=photo.id, event_id=event_id)
        return photo

    async def add_face(
        self,
        photo_id: str,
        descriptor: np.ndarray,
        confidence: float,
        thumbnail: Optional[str] = None,
        bounding_box: Optional[BoundingBox] = None,
    ) -> FaceObservation:
        async with self._unit_of_work() as uow:
            await uow.photos.get(photo_id)
            row = await uow.faces.create(
                photo_id=photo_id,
                descriptor=format_descriptor(descriptor),
                confidence=confidence,
                thumbnail=thumbnail,
                bbox_left=bounding_box.left if bounding_box else None,
                bbox_top=bounding_box.top if bounding_box else None,
                bbox_width=bounding_box.width if bounding_box else None,
                bbox_height=bounding_box.height if bounding_box else None
            )
            return to_observation(row)

    async def add_photo_with_faces(
        self,
        event_id: str,
        url: str,
        faces: Sequence[DetectedFace],
        metadata: Optional[PhotoMetadata] = None,
    ) -> Photo:
        metadata = metadata or PhotoMetadata()
        async with self._unit_of_work() as uow:
            await uow.events.get(event_id)
            row = await uow.photos.create(event_id=event_id, url=url, **metadata.model_dump())
            face_rows = []
            for face in faces:
                box = face.bounding_box
                face_rows.append(await uow.faces.create(
                    photo_id=row.id,
                    descriptor=format_descriptor(face.descriptor),
                    confidence=face.confidence,
                    thumbnail=face.thumbnail,
                    bbox_left=box.left if box else None,
                    bbox_top=box.top if box else None,
                    bbox_width=box.width if box else None,
                    bbox_height=box.height if box else None
                ))
            photo = to_photo(row).model_copy(
                update={"faces": [to_observation(face_row) for face_row in face_rows]}
            )
        logger.debug(
            "Stored photo with faces",
            photo_id=photo.id,
            event_id=event_id,
            faces_count=len(photo.faces)
        )
        return photo

    async def get_photo(self, photo_id: str) -> Photo:
        async with self._unit_of_work() as uow:
            return to_photo(await uow.photos.get(photo_id))

    async def list_photos(self, event_id: str) -> List[Photo]:
        async with self._unit_of_work() as uow:
            await uow.events.get(event_id)
            rows = await uow.photos.list_by_event(event_id)
            return [to_photo(row) for row in rows]

    async def list_faces(self, event_id: str) -> List[FaceObservation]:
        async with self._unit_of_work() as uow:
            await uow.events.get(event_id)
            rows = await uow.faces.list_by_event(event_id)
            return [to_observation(row) for row in rows]

    async def delete_photo(self, photo_id: str) -> None:
        async with self._unit_of_work() as uow:
            await uow.photos.delete(photo_id)
        logger.info("Deleted photo", photo_id=photo_id)

    async def search_photos(
        self,
        query: str = "",
        event_id: Optional[str] = None,
        keywords: Optional[List[str]] = None,
    ) -> List[Photo]:
        terms = [term for term in query.split() if term]
        wanted = {keyword.lower() for keyword in keywords or []}

        async with self._unit_of_work() as uow:
            rows = await uow.photos.search(terms + sorted(wanted), event_id=event_id)
            photos = [to_photo(row) for row in rows]

        if wanted:
            photos = [
                photo for photo in photos
                if wanted <= {keyword.lower() for keyword in photo.metadata.keywords}
            ]
        return photos
