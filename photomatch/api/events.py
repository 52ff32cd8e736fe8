"""Event, photo upload, people and live-capture match endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from photomatch.api.models.schemas import (
    EventCreateRequest,
    EventResponse,
    MatchRequest,
    MatchResponse,
    PersonResponse,
    PhotoCreateRequest,
    PhotoDetectRequest,
    PhotoResponse,
)
from photomatch.core.exceptions import (
    DescriptorDimensionError,
    DetectionUnavailableError,
    EventNotFoundError,
    InvalidDescriptorError,
    InvalidImageError,
    MultipleFacesError,
    NoFaceDetectedError,
    PersonNotFoundError,
    StoreError,
)
from photomatch.core.logging import get_logger
from photomatch.infrastructure.dependencies import (
    get_face_indexing_service,
    get_face_matching_service,
    get_gallery_service,
)
from photomatch.services.face_indexing import FaceIndexingService
from photomatch.services.face_matching import FaceMatchingService
from photomatch.services.gallery import GalleryService

logger = get_logger(__name__)
router = APIRouter(
    tags=["events"],
    responses={
        404: {"description": "Event not found"},
        500: {"description": "Internal server error"}
    }
)


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an event",
)
async def create_event(
    request: EventCreateRequest,
    service: GalleryService = Depends(get_gallery_service)
) -> EventResponse:
    try:
        event = await service.create_event(
            name=request.name,
            description=request.description,
            location=request.location,
            event_date=request.event_date
        )
        return EventResponse.from_event(event)
    except StoreError as e:
        logger.error("Failed to create event", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to store event")


@router.get("/{event_id}", response_model=EventResponse, summary="Get an event")
async def get_event(
    event_id: str,
    service: GalleryService = Depends(get_gallery_service)
) -> EventResponse:
    try:
        return EventResponse.from_event(await service.get_event(event_id))
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        logger.error("Failed to load event", error=str(e), event_id=event_id)
        raise HTTPException(status_code=500, detail="Failed to load event")


@router.get(
    "/{event_id}/photos",
    response_model=List[PhotoResponse],
    summary="List the photos of an event",
    description="Lists photos newest first. With `person_id`, only photos containing that person are returned.",
)
async def list_photos(
    event_id: str,
    person_id: Optional[str] = Query(None, description="Person (face) id to filter by"),
    gallery: GalleryService = Depends(get_gallery_service),
    matcher: FaceMatchingService = Depends(get_face_matching_service)
) -> List[PhotoResponse]:
    """List the photos of an event, optionally only those showing one person.

    Raises:
        HTTPException: 404 for an unknown event or person, 409 when stored
            descriptors no longer have the configured size
    """
    try:
        if person_id:
            photos = await matcher.photos_for_person(event_id, person_id)
        else:
            photos = await gallery.list_photos(event_id)
        return [PhotoResponse.from_photo(photo) for photo in photos]

    except (EventNotFoundError, PersonNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DescriptorDimensionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreError as e:
        logger.error("Failed to list photos", error=str(e), event_id=event_id)
        raise HTTPException(status_code=500, detail="Failed to load photos")
    except Exception as e:
        logger.error("Unexpected error while listing photos",
                     error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred.")


@router.post(
    "/{event_id}/photos",
    response_model=PhotoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a photo with client-detected faces",
)
async def add_photo(
    event_id: str,
    request: PhotoCreateRequest,
    service: FaceIndexingService = Depends(get_face_indexing_service)
) -> PhotoResponse:
    """Store a photo and the faces the uploader's browser found in it.

    Raises:
        HTTPException: 404 for an unknown event, 422 for a descriptor of the wrong size
    """
    try:
        photo = await service.add_photo_with_faces(
            event_id=event_id,
            url=request.url,
            faces=[face.to_detected_face() for face in request.faces],
            metadata=request.metadata
        )
        return PhotoResponse.from_photo(photo)

    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidDescriptorError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreError as e:
        logger.error("Failed to store photo", error=str(e), event_id=event_id)
        raise HTTPException(status_code=500, detail="Failed to store photo")


@router.post(
    "/{event_id}/photos/detect",
    response_model=PhotoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a photo and detect its faces on the server",
)
async def add_photo_with_detection(
    event_id: str,
    request: PhotoDetectRequest,
    service: FaceIndexingService = Depends(get_face_indexing_service)
) -> PhotoResponse:
    try:
        photo = await service.index_image(
            event_id=event_id,
            url=request.url,
            image_bytes=request.image,
            metadata=request.metadata
        )
        return PhotoResponse.from_photo(photo)

    except DetectionUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidImageError as e:
        logger.error("Invalid image format", error=str(e))
        raise HTTPException(
            status_code=400,
            detail="Invalid image format. Only JPEG and PNG are supported."
        )
    except InvalidDescriptorError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreError as e:
        logger.error("Failed to store photo", error=str(e), event_id=event_id)
        raise HTTPException(status_code=500, detail="Failed to store photo")
    except Exception as e:
        logger.error("Unexpected error during face detection",
                     error=str(e), exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred while processing the request"
        )


@router.get(
    "/{event_id}/people",
    response_model=List[PersonResponse],
    summary="List the distinct people of an event",
)
async def list_people(
    event_id: str,
    service: FaceMatchingService = Depends(get_face_matching_service)
) -> List[PersonResponse]:
    try:
        clusters = await service.list_people(event_id)
        return [PersonResponse.from_cluster(cluster) for cluster in clusters]

    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DescriptorDimensionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreError as e:
        logger.error("Failed to load faces", error=str(e), event_id=event_id)
        raise HTTPException(status_code=500, detail="Failed to load faces")


@router.post(
    "/{event_id}/match",
    response_model=MatchResponse,
    summary="Find the photos of the person in a live capture",
    description="Matches either a client-computed descriptor or a captured image against the people of the event.",
)
async def match_capture(
    event_id: str,
    request: MatchRequest,
    service: FaceMatchingService = Depends(get_face_matching_service)
) -> MatchResponse:
    """Match a live capture against the people of an event.

    Raises:
        HTTPException: If the request is invalid or processing fails
    """
    try:
        if request.descriptor is not None:
            result = await service.match_descriptor(event_id, request.descriptor)
        else:
            result = await service.match_image(event_id, request.image)
        return MatchResponse.from_person_photos(result)

    except NoFaceDetectedError as e:
        logger.warning("No faces detected in capture", error=str(e))
        return MatchResponse.empty()
    except MultipleFacesError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidImageError as e:
        logger.error("Invalid image format", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except DetectionUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DescriptorDimensionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreError as e:
        logger.error("Failed to load faces", error=str(e), event_id=event_id)
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error("Unexpected error during face matching",
                     error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred.")
