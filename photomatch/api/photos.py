"""Photo deletion and search endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from photomatch.api.models.schemas import PhotoResponse
from photomatch.core.exceptions import PhotoNotFoundError, StoreError
from photomatch.core.logging import get_logger
from photomatch.infrastructure.dependencies import get_gallery_service
from photomatch.services.gallery import GalleryService

logger = get_logger(__name__)
router = APIRouter(tags=["photos"])


@router.get(
    "/search",
    response_model=List[PhotoResponse],
    summary="Search photos by their AI description",
    description="Every word of `q` must appear in the description or keywords; every `keyword` must be a photo keyword.",
)
async def search_photos(
    q: str = Query("", description="Free-text query"),
    event_id: Optional[str] = Query(None, description="Restrict the search to one event"),
    keyword: Optional[List[str]] = Query(None, description="Keywords the photo must carry"),
    service: GalleryService = Depends(get_gallery_service)
) -> List[PhotoResponse]:
    try:
        photos = await service.search_photos(q, event_id=event_id, keywords=keyword)
        return [PhotoResponse.from_photo(photo) for photo in photos]
    except StoreError as e:
        logger.error("Photo search failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to search photos")


@router.delete(
    "/{photo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a photo and its faces",
)
async def delete_photo(
    photo_id: str,
    service: GalleryService = Depends(get_gallery_service)
) -> Response:
    try:
        await service.delete_photo(photo_id)
    except PhotoNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        logger.error("Failed to delete photo", error=str(e), photo_id=photo_id)
        raise HTTPException(status_code=500, detail="Failed to delete photo")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
