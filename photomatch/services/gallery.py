"""Gallery service for events, photo listings and text search."""
from datetime import date
from typing import List, Optional

from photomatch.core.logging import get_logger
from photomatch.domain.entities.photo import Event, Photo
from photomatch.domain.interfaces.storage.photo_store import PhotoStore

logger = get_logger(__name__)


class GalleryService:
    """Thin service over the photo store for the gallery pages."""

    def __init__(self, store: PhotoStore) -> None:
        self._store = store

    async def create_event(
        self,
        name: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
        event_date: Optional[date] = None,
    ) -> Event:
        return await self._store.create_event(name, description, location, event_date)

    async def get_event(self, event_id: str) -> Event:
        return await self._store.get_event(event_id)

    async def list_photos(self, event_id: str) -> List[Photo]:
        return await self._store.list_photos(event_id)

    async def delete_photo(self, photo_id: str) -> None:
        await self._store.delete_photo(photo_id)

    async def search_photos(
        self,
        query: str = "",
        event_id: Optional[str] = None,
        keywords: Optional[List[str]] = None,
    ) -> List[Photo]:
        """Photos whose AI description mentions every query term and keyword."""
        photos = await self._store.search_photos(query, event_id=event_id, keywords=keywords)
        logger.info(
            "Searched photos",
            query=query,
            event_id=event_id,
            keywords=keywords or [],
            results_count=len(photos)
        )
        return photos
