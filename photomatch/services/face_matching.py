"""Face matching service: people of an event, live-capture lookup and per-person photos."""
from typing import List, Optional, Tuple

from photomatch.core.config import settings
from photomatch.core.exceptions import (
    DetectionUnavailableError,
    MultipleFacesError,
    NoFaceDetectedError,
    PersonNotFoundError,
)
from photomatch.core.logging import get_logger
from photomatch.core.utils.descriptor import DescriptorLike, DimensionGuard
from photomatch.domain.entities.face import FaceObservation, PersonCluster
from photomatch.domain.entities.photo import Photo
from photomatch.domain.interfaces.detection.face_detector import FaceDetector
from photomatch.domain.interfaces.storage.photo_store import PhotoStore
from photomatch.domain.value_objects.matching import MatchResult, PersonPhotos
from photomatch.services.recognition import (
    build_photo_face_index,
    dedupe_faces,
    match_face,
    photos_for_person,
)

logger = get_logger(__name__)


class FaceMatchingService:
    """Service answering "who is in this event" and "where am I in it".

    Every call loads a fresh snapshot of the event's faces from the store
    and reruns deduplication over it; nothing is cached between calls.

    Example:
        ```python
        matcher = FaceMatchingService(store, detector)

        people = await matcher.list_people(event_id)
        found = await matcher.match_image(event_id, selfie_bytes)
        if found.match.matched:
            print(found.photo_ids)
        ```
    """

    def __init__(
        self,
        store: PhotoStore,
        detector: Optional[FaceDetector] = None,
        descriptor_dimension: int = settings.DESCRIPTOR_DIMENSION,
        dedupe_threshold: float = settings.DEDUPE_THRESHOLD,
        match_threshold: float = settings.MATCH_THRESHOLD,
        filter_threshold: float = settings.FILTER_THRESHOLD,
    ) -> None:
        """Initialize the face matching service.

        Args:
            store: Persistence for events, photos and faces
            detector: Optional server-side face detector for live captures
            descriptor_dimension: Length every stored descriptor must have
            dedupe_threshold: Distance under which two faces are one person
            match_threshold: Distance under which a live capture matches a person
            filter_threshold: Distance under which a face in a photo is the person
        """
        self._store = store
        self._detector = detector
        self._dimension = descriptor_dimension
        self._guard = DimensionGuard(descriptor_dimension)
        self._dedupe_threshold = dedupe_threshold
        self._match_threshold = match_threshold
        self._filter_threshold = filter_threshold

    def _cluster(self, observations: List[FaceObservation]) -> List[PersonCluster]:
        self._guard.verify(observation.descriptor for observation in observations)
        return dedupe_faces(observations, self._dedupe_threshold, self._dimension)

    async def _snapshot(self, event_id: str) -> Tuple[List[Photo], List[PersonCluster]]:
        photos = await self._store.list_photos(event_id)
        observations = [face for photo in photos for face in photo.faces]
        return photos, self._cluster(observations)

    def _project(
        self,
        person_id: str,
        photos: List[Photo],
        clusters: List[PersonCluster],
    ) -> List[Photo]:
        descriptors = {face.id: face.descriptor for photo in photos for face in photo.faces}
        photo_ids = photos_for_person(
            person_id,
            clusters,
            build_photo_face_index(photos),
            descriptors,
            self._filter_threshold
        )
        return [photo for photo in photos if photo.id in photo_ids]

    async def list_people(self, event_id: str) -> List[PersonCluster]:
        """Distinct people across the photos of an event.

        Raises:
            EventNotFoundError: If the event does not exist
            DescriptorDimensionError: If stored descriptors have drifted to another length
        """
        observations = await self._store.list_faces(event_id)
        clusters = self._cluster(observations)
        logger.info(
            "Found people in event",
            event_id=event_id,
            faces_count=len(observations),
            people_count=len(clusters)
        )
        return clusters

    async def photos_for_person(self, event_id: str, person_id: str) -> List[Photo]:
        """Photos of an event that contain the selected person, newest first.

        Raises:
            PersonNotFoundError: If ``person_id`` is not a face of this event
        """
        photos, clusters = await self._snapshot(event_id)
        known_ids = {face.id for photo in photos for face in photo.faces}
        if person_id not in known_ids:
            raise PersonNotFoundError(
                f"Person not found in event: {person_id}",
                details={"event_id": event_id, "person_id": person_id}
            )

        selected = self._project(person_id, photos, clusters)
        logger.info(
            "Filtered photos by person",
            event_id=event_id,
            person_id=person_id,
            photos_count=len(selected)
        )
        return selected

    async def match_descriptor(self, event_id: str, descriptor: DescriptorLike) -> PersonPhotos:
        """Match a descriptor captured on the client against the people of an event.

        A descriptor that cannot be compared yields "no match", never an error.
        """
        photos, clusters = await self._snapshot(event_id)
        match: MatchResult = match_face(
            descriptor,
            clusters,
            self._match_threshold,
            self._dimension
        )
        if not match.matched:
            logger.info(
                "No matching person found",
                event_id=event_id,
                closest_distance=match.distance
            )
            return PersonPhotos(match=match)

        selected = self._project(match.person_id, photos, clusters)
        logger.info(
            "Matched live capture",
            event_id=event_id,
            person_id=match.person_id,
            distance=match.distance,
            photos_count=len(selected)
        )
        return PersonPhotos(match=match, photo_ids=[photo.id for photo in selected])

    async def match_image(self, event_id: str, image_bytes: bytes) -> PersonPhotos:
        """Detect the single face in a live capture and match it.

        Raises:
            DetectionUnavailableError: If no detector is configured
            NoFaceDetectedError: If the capture has no face
            MultipleFacesError: If the capture has more than one face
            InvalidImageError: If the image cannot be decoded
        """
        if self._detector is None:
            raise DetectionUnavailableError("Server-side face detection is not enabled")

        faces = await self._detector.detect_faces(image_bytes)
        if not faces:
            raise NoFaceDetectedError("No face detected in capture")
        if len(faces) > 1:
            raise MultipleFacesError(
                "Multiple faces detected, only one face may be visible",
                details={"faces_count": len(faces)}
            )

        return await self.match_descriptor(event_id, faces[0].descriptor)
