"""Database repositories for events, photos and faces."""
from datetime import date
from typing import List, Optional

from sqlalchemy import String, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from photomatch.core.exceptions import EventNotFoundError, PhotoNotFoundError
from photomatch.infrastructure.database.models import Event, Face, Photo


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class EventRepository:
    """Repository for event operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, event_id: str) -> Event:
        """Get event by id.

        Raises:
            EventNotFoundError: If event not found
        """
        event = await self._session.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(f"Event not found: {event_id}", details={"event_id": event_id})
        return event

    async def create(
        self,
        name: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
        event_date: Optional[date] = None,
    ) -> Event:
        event = Event(
            name=name,
            description=description,
            location=location,
            event_date=event_date
        )
        self._session.add(event)
        await self._session.flush()
        return event


class PhotoRepository:
    """Repository for photo operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, event_id: str, url: str, **metadata) -> Photo:
        """Create a photo record; ``metadata`` holds the AI-derived columns."""
        photo = Photo(event_id=event_id, url=url, faces=[], **metadata)
        self._session.add(photo)
        await self._session.flush()
        return photo

    async def get(self, photo_id: str) -> Photo:
        """Get photo with faces by id.

        Raises:
            PhotoNotFoundError: If photo not found
        """
        stmt = (
            select(Photo)
            .where(Photo.id == photo_id)
            .options(selectinload(Photo.faces))
        )
        result = await self._session.execute(stmt)
        photo = result.scalar_one_or_none()
        if photo is None:
            raise PhotoNotFoundError(f"Photo not found: {photo_id}", details={"photo_id": photo_id})
        return photo

    async def list_by_event(self, event_id: str) -> List[Photo]:
        """Photos of an event with their faces, newest first."""
        stmt = (
            select(Photo)
            .where(Photo.event_id == event_id)
            .options(selectinload(Photo.faces))
            .order_by(Photo.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def search(self, terms: List[str], event_id: Optional[str] = None) -> List[Photo]:
        """Photos whose context, context text or keywords contain every term."""
        stmt = select(Photo).options(selectinload(Photo.faces))
        if event_id is not None:
            stmt = stmt.where(Photo.event_id == event_id)
        for term in terms:
            pattern = _like_pattern(term)
            stmt = stmt.where(
                or_(
                    Photo.context.ilike(pattern, escape="\\"),
                    Photo.context_text.ilike(pattern, escape="\\"),
                    cast(Photo.keywords, String).ilike(pattern, escape="\\"),
                )
            )
        stmt = stmt.order_by(Photo.created_at.desc())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def delete(self, photo_id: str) -> None:
        """Delete a photo and its faces.

        Raises:
            PhotoNotFoundError: If photo not found
        """
        photo = await self.get(photo_id)
        await self._session.delete(photo)
        await self._session.flush()


class FaceRepository:
    """Repository for face operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        photo_id: str,
        descriptor: str,
        confidence: float,
        thumbnail: Optional[str] = None,
        bbox_left: Optional[float] = None,
        bbox_top: Optional[float] = None,
        bbox_width: Optional[float] = None,
        bbox_height: Optional[float] = None,
    ) -> Face:
        """Create a new face record.

        Args:
            photo_id: Photo the face was detected in
            descriptor: Delimited descriptor string
            confidence: Face detection confidence score
            thumbnail: Cropped face image URL or data URI
            bbox_left: Bounding box left coordinate
            bbox_top: Bounding box top coordinate
            bbox_width: Bounding box width
            bbox_height: Bounding box height

        Returns:
            Face: Created face record
        """
        face = Face(
            photo_id=photo_id,
            descriptor=descriptor,
            confidence=confidence,
            thumbnail=thumbnail,
            bbox_left=bbox_left,
            bbox_top=bbox_top,
            bbox_width=bbox_width,
            bbox_height=bbox_height
        )
        self._session.add(face)
        await self._session.flush()
        return face

    async def list_by_event(self, event_id: str) -> List[Face]:
        """All faces across the photos of an event."""
        stmt = (
            select(Face)
            .join(Photo, Face.photo_id == Photo.id)
            .where(Photo.event_id == event_id)
            .order_by(Photo.created_at.desc(), Face.created_at)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
