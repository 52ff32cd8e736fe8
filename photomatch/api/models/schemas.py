"""API specific models for events, photos, people and matches."""
import math
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from photomatch.core.utils.image import decode_base64_image
from photomatch.domain.entities.face import BoundingBox, DetectedFace, FaceObservation, PersonCluster
from photomatch.domain.entities.photo import Event, Photo, PhotoMetadata
from photomatch.domain.value_objects.matching import PersonPhotos

# Constants for validation ranges used in API models
MIN_CONFIDENCE = 0.0
MAX_CONFIDENCE = 1.0


def _decode_image(value):
    if isinstance(value, str):
        return decode_base64_image(value)
    return value


class EventCreateRequest(BaseModel):
    """Request model for creating an event."""
    name: str = Field(..., description="Event name", min_length=1, max_length=200)
    description: Optional[str] = Field(None, description="Event description")
    location: Optional[str] = Field(None, description="Where the event took place")
    event_date: Optional[date] = Field(None, description="Date of the event")


class EventResponse(BaseModel):
    """Response model for an event."""
    id: str
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    event_date: Optional[date] = None
    created_at: datetime

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        return cls(**event.model_dump())


class FaceInput(BaseModel):
    """A face detected by the client, submitted with its descriptor."""
    descriptor: List[float] = Field(..., description="Face descriptor vector", min_length=1)
    confidence: float = Field(...,
                              description="Detection confidence score",
                              ge=MIN_CONFIDENCE, le=MAX_CONFIDENCE)
    bounding_box: Optional[BoundingBox] = Field(None, description="Face bounding box coordinates")
    thumbnail: Optional[str] = Field(None, description="Cropped face image (URL or data URI)")

    def to_detected_face(self) -> DetectedFace:
        return DetectedFace(
            confidence=self.confidence,
            descriptor=self.descriptor,
            bounding_box=self.bounding_box,
            thumbnail=self.thumbnail
        )


class PhotoCreateRequest(BaseModel):
    """Request model for adding a photo whose faces were detected by the client."""
    url: str = Field(..., description="Public URL of the uploaded photo", min_length=1)
    faces: List[FaceInput] = Field(default_factory=list, description="Faces found in the photo")
    metadata: Optional[PhotoMetadata] = Field(None, description="AI-derived description of the photo")


class PhotoDetectRequest(BaseModel):
    """Request model for adding a photo and detecting its faces on the server."""
    url: str = Field(..., description="Public URL of the uploaded photo", min_length=1)
    image: bytes = Field(..., description="Base64 encoded image, optionally as a data URI")
    metadata: Optional[PhotoMetadata] = Field(None, description="AI-derived description of the photo")

    @field_validator("image", mode="before")
    @classmethod
    def decode_image(cls, v):
        """Accept base64 text or a data URI."""
        return _decode_image(v)


class FaceResponse(BaseModel):
    """API model for a stored face."""
    id: str = Field(..., description="Unique identifier for the face")
    photo_id: str = Field(..., description="Photo the face was detected in")
    confidence: float = Field(..., description="Detection confidence score")
    bounding_box: Optional[BoundingBox] = None
    thumbnail: Optional[str] = None

    @classmethod
    def from_observation(cls, face: FaceObservation) -> "FaceResponse":
        return cls(
            id=face.id,
            photo_id=face.source_photo_id,
            confidence=face.confidence,
            bounding_box=face.bounding_box,
            thumbnail=face.thumbnail
        )


class PhotoResponse(BaseModel):
    """API model for a photo with its faces."""
    id: str
    event_id: str
    url: str
    created_at: datetime
    faces: List[FaceResponse] = Field(default_factory=list)
    metadata: PhotoMetadata = Field(default_factory=PhotoMetadata)

    @classmethod
    def from_photo(cls, photo: Photo) -> "PhotoResponse":
        return cls(
            id=photo.id,
            event_id=photo.event_id,
            url=photo.url,
            created_at=photo.created_at,
            faces=[FaceResponse.from_observation(face) for face in photo.faces],
            metadata=photo.metadata
        )


class PersonResponse(BaseModel):
    """API model for a distinct person of an event."""
    id: str = Field(..., description="Person id (id of the representative face)")
    photo_id: str = Field(..., description="Photo of the representative face")
    thumbnail: Optional[str] = Field(None, description="Thumbnail of the representative face")
    confidence: float = Field(..., description="Confidence of the representative face")
    face_count: int = Field(..., description="Number of faces merged into this person")

    @classmethod
    def from_cluster(cls, cluster: PersonCluster) -> "PersonResponse":
        return cls(
            id=cluster.id,
            photo_id=cluster.source_photo_id,
            thumbnail=cluster.representative.thumbnail,
            confidence=cluster.representative.confidence,
            face_count=cluster.size
        )


class MatchRequest(BaseModel):
    """Request model for the live-capture match.

    Exactly one of ``descriptor`` (client-side detection) or ``image``
    (server-side detection) must be given.
    """
    descriptor: Optional[List[float]] = Field(None, description="Descriptor of the captured face")
    image: Optional[bytes] = Field(None, description="Base64 encoded capture, optionally as a data URI")

    @field_validator("image", mode="before")
    @classmethod
    def decode_image(cls, v):
        """Accept base64 text or a data URI."""
        return _decode_image(v)

    @model_validator(mode="after")
    def check_one_source(self) -> "MatchRequest":
        if (self.descriptor is None) == (self.image is None):
            raise ValueError("Provide exactly one of 'descriptor' or 'image'")
        return self


class MatchResponse(BaseModel):
    """Response model for the live-capture match."""
    matched: bool = Field(..., description="Whether a person was recognized")
    person_id: Optional[str] = Field(None, description="Recognized person id")
    distance: Optional[float] = Field(None, description="Distance to the closest person, if any was compared")
    photo_ids: List[str] = Field(default_factory=list, description="Photos containing the person, newest first")

    @classmethod
    def from_person_photos(cls, result: PersonPhotos) -> "MatchResponse":
        distance = result.match.distance
        return cls(
            matched=result.match.matched,
            person_id=result.match.person_id,
            distance=distance if math.isfinite(distance) else None,
            photo_ids=result.photo_ids
        )

    @classmethod
    def empty(cls) -> "MatchResponse":
        return cls(matched=False)
