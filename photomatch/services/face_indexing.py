"""Face indexing service for storing photos together with their faces."""
from typing import List, Optional, Sequence

from photomatch.core.config import settings
from photomatch.core.exceptions import (
    DetectionUnavailableError,
    InvalidDescriptorError,
    InvalidImageError,
    PhotoMatchError,
    StoreError,
)
from photomatch.core.logging import get_logger
from photomatch.core.utils.descriptor import DimensionGuard
from photomatch.domain.entities.face import DetectedFace
from photomatch.domain.entities.photo import Photo, PhotoMetadata
from photomatch.domain.interfaces.detection.face_detector import FaceDetector
from photomatch.domain.interfaces.storage.photo_store import PhotoStore

logger = get_logger(__name__)


class FaceIndexingService:
    """Service for adding photos and the faces detected in them to an event.

    Faces are usually detected in the uploader's browser and arrive with
    their descriptors. When a detector is configured, raw images can be
    indexed on the server instead.

    Example:
        ```python
        service = FaceIndexingService(store, detector)

        photo = await service.index_image(
            event_id="2f1c...",
            url="https://cdn.example.com/photos/1.jpg",
            image_bytes=image_bytes,
        )
        ```
    """

    def __init__(
        self,
        store: PhotoStore,
        detector: Optional[FaceDetector] = None,
        descriptor_dimension: int = settings.DESCRIPTOR_DIMENSION,
        max_faces: int = settings.MAX_FACES_PER_IMAGE,
    ) -> None:
        """Initialize the face indexing service.

        Args:
            store: Persistence for events, photos and faces
            detector: Optional server-side face detector
            descriptor_dimension: Length every stored descriptor must have
            max_faces: Maximum number of faces kept per image
        """
        self._store = store
        self._detector = detector
        self._guard = DimensionGuard(descriptor_dimension)
        self._max_faces = max_faces

    async def add_photo_with_faces(
        self,
        event_id: str,
        url: str,
        faces: Sequence[DetectedFace],
        metadata: Optional[PhotoMetadata] = None,
    ) -> Photo:
        """Store a photo and the faces detected in it.

        Every descriptor is checked before anything is written, and the
        photo is stored together with its faces in one transaction, so a
        failed upload leaves no partial photo behind.

        Returns:
            The stored photo with its faces

        Raises:
            DescriptorDimensionError: If a descriptor has the wrong length
            EventNotFoundError: If the event does not exist
            StoreError: If storing fails
        """
        for index, face in enumerate(faces):
            try:
                self._guard.check(face.descriptor)
            except InvalidDescriptorError as e:
                e.details["face_index"] = index
                logger.warning("Rejected face descriptor", event_id=event_id, **e.details)
                raise

        try:
            stored = await self._store.add_photo_with_faces(event_id, url, faces, metadata)
        except PhotoMatchError as e:
            logger.error(
                "Failed to store photo",
                error=str(e),
                event_id=event_id,
                url=url
            )
            raise
        except Exception as e:
            logger.error(
                "Unexpected error while storing photo",
                error=str(e),
                event_id=event_id,
                exc_info=True
            )
            raise StoreError(f"Failed to store photo: {e}")

        logger.info(
            "Indexed photo",
            event_id=event_id,
            photo_id=stored.id,
            faces_count=len(stored.faces)
        )
        return stored

    async def index_image(
        self,
        event_id: str,
        url: str,
        image_bytes: bytes,
        metadata: Optional[PhotoMetadata] = None,
    ) -> Photo:
        """Detect faces in an image on the server, then store photo and faces.

        An image without faces is still stored, with an empty face list.

        Raises:
            DetectionUnavailableError: If no detector is configured
            InvalidImageError: If the image cannot be decoded
        """
        if self._detector is None:
            raise DetectionUnavailableError("Server-side face detection is not enabled")

        try:
            faces: List[DetectedFace] = await self._detector.detect_faces(
                image_bytes,
                max_faces=self._max_faces
            )
        except InvalidImageError as e:
            logger.error("Invalid image format", error=str(e), event_id=event_id)
            raise

        if not faces:
            logger.warning("No faces detected in image", event_id=event_id, url=url)

        return await self.add_photo_with_faces(event_id, url, faces, metadata)

