"""Event and photo domain entities."""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from photomatch.domain.entities.face import FaceObservation


class PhotoMetadata(BaseModel):
    """AI-derived description of a photo.

    Produced by the gallery front end, which captions each upload with a
    vision model, and submitted along with the photo. This service only
    stores and searches it.
    """
    context: Optional[str] = Field(None, description="Free-text description of the photo")
    keywords: List[str] = Field(default_factory=list, description="Keywords describing the content")
    event_type: Optional[str] = Field(None, description="Occasion visible in the photo")
    people_count: Optional[int] = Field(None, description="Estimated number of people", ge=0)
    setting: Optional[str] = Field(None, description="Setting or location")
    colors: List[str] = Field(default_factory=list, description="Dominant colors")
    objects: List[str] = Field(default_factory=list, description="Visible objects")
    mood: Optional[str] = Field(None, description="Overall mood")
    context_text: Optional[str] = Field(None, description="Flattened searchable text")


class Event(BaseModel):
    """Event that groups uploaded photos."""
    id: str = Field(..., description="Event identifier")
    name: str = Field(..., description="Event name")
    description: Optional[str] = Field(None, description="Event description")
    location: Optional[str] = Field(None, description="Where the event took place")
    event_date: Optional[date] = Field(None, description="Date of the event")
    created_at: datetime = Field(..., description="Creation timestamp")


class Photo(BaseModel):
    """Photo of an event along with the faces detected in it."""
    id: str = Field(..., description="Photo identifier")
    event_id: str = Field(..., description="Event the photo belongs to")
    url: str = Field(..., description="Public URL of the photo")
    created_at: datetime = Field(..., description="Upload timestamp")
    faces: List[FaceObservation] = Field(default_factory=list, description="Faces in the photo")
    metadata: PhotoMetadata = Field(default_factory=PhotoMetadata, description="AI-derived metadata")

    @property
    def face_ids(self) -> List[str]:
        return [face.id for face in self.faces]
