"""Photo store interface for events, photos and faces."""
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence

import numpy as np

from ...entities.face import BoundingBox, DetectedFace, FaceObservation
from ...entities.photo import Event, Photo, PhotoMetadata


class PhotoStore(ABC):
    """Interface for persisting events, photos and detected faces."""

    @abstractmethod
    async def create_event(
        self,
        name: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
        event_date: Optional[date] = None,
    ) -> Event:
        """Create a new event."""
        pass

    @abstractmethod
    async def get_event(self, event_id: str) -> Event:
        """
        Get an event by id.

        Raises:
            EventNotFoundError: If the event does not exist
        """
        pass

    @abstractmethod
    async def add_photo(
        self,
        event_id: str,
        url: str,
        metadata: Optional[PhotoMetadata] = None,
    ) -> Photo:
        """
        Store a photo for an event.

        Raises:
            EventNotFoundError: If the event does not exist
            StoreError: If the photo cannot be stored
        """
        pass

    @abstractmethod
    async def add_face(
        self,
        photo_id: str,
        descriptor: np.ndarray,
        confidence: float,
        thumbnail: Optional[str] = None,
        bounding_box: Optional[BoundingBox] = None,
    ) -> FaceObservation:
        """
        Store a face detected in a photo.

        Raises:
            PhotoNotFoundError: If the photo does not exist
            StoreError: If the face cannot be stored
        """
        pass

    @abstractmethod
    async def add_photo_with_faces(
        self,
        event_id: str,
        url: str,
        faces: Sequence[DetectedFace],
        metadata: Optional[PhotoMetadata] = None,
    ) -> Photo:
        """
        Store a photo and all of its faces in one transaction.

        Either the photo and every face are stored, or nothing is.

        Raises:
            EventNotFoundError: If the event does not exist
            StoreError: If the photo or any face cannot be stored
        """
        pass

    @abstractmethod
    async def get_photo(self, photo_id: str) -> Photo:
        """
        Get a photo with its faces.

        Raises:
            PhotoNotFoundError: If the photo does not exist
        """
        pass

    @abstractmethod
    async def list_photos(self, event_id: str) -> List[Photo]:
        """
        List the photos of an event, newest first, faces attached.

        Raises:
            EventNotFoundError: If the event does not exist
        """
        pass

    @abstractmethod
    async def list_faces(self, event_id: str) -> List[FaceObservation]:
        """
        List every face observation across the photos of an event.

        Raises:
            EventNotFoundError: If the event does not exist
        """
        pass

    @abstractmethod
    async def delete_photo(self, photo_id: str) -> None:
        """
        Delete a photo together with its faces.

        Raises:
            PhotoNotFoundError: If the photo does not exist
        """
        pass

    @abstractmethod
    async def search_photos(
        self,
        query: str = "",
        event_id: Optional[str] = None,
        keywords: Optional[List[str]] = None,
    ) -> List[Photo]:
        """
        Search photos by their AI-derived text.

        Every term of ``query`` must appear in the context, context text or
        keywords of a photo, and every entry of ``keywords`` must be one of
        its keywords.
        """
        pass
