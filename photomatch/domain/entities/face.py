"""Core face domain entities."""
from typing import List, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from photomatch.core.utils.descriptor import to_descriptor


class BoundingBox(BaseModel):
    """Face bounding box in coordinates relative to the image (0-1)."""
    left: float = Field(..., description="Left coordinate of the bounding box")
    top: float = Field(..., description="Top coordinate of the bounding box")
    width: float = Field(..., description="Width of the bounding box")
    height: float = Field(..., description="Height of the bounding box")


class DetectedFace(BaseModel):
    """Face found by a detector, before it is stored and given an id."""
    confidence: float = Field(..., description="Detection confidence score (0-1)", ge=0.0, le=1.0)
    descriptor: np.ndarray = Field(..., description="Face descriptor vector")
    bounding_box: Optional[BoundingBox] = Field(None, description="Bounding box coordinates")
    thumbnail: Optional[str] = Field(None, description="Cropped face image (URL or data URI)")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("descriptor", mode="before")
    @classmethod
    def validate_descriptor(cls, v) -> np.ndarray:
        """Convert lists and delimited strings to a numpy array."""
        return to_descriptor(v)


class FaceObservation(BaseModel):
    """One stored face detection, read by the engine as an immutable value."""
    id: str = Field(..., description="Unique identifier of the observation")
    descriptor: np.ndarray = Field(..., description="Face descriptor vector")
    source_photo_id: str = Field(..., description="Photo the face was detected in")
    confidence: float = Field(..., description="Detection confidence score (0-1)", ge=0.0, le=1.0)
    thumbnail: Optional[str] = Field(None, description="Cropped face image, not interpreted")
    bounding_box: Optional[BoundingBox] = Field(None, description="Bounding box coordinates")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("descriptor", mode="before")
    @classmethod
    def validate_descriptor(cls, v) -> np.ndarray:
        """Convert lists and delimited strings to a numpy array."""
        return to_descriptor(v)


class PersonCluster(BaseModel):
    """Faces judged to be the same person, represented by one observation.

    The cluster has no identity of its own; its id is the representative's id.
    """
    representative: FaceObservation = Field(..., description="Observation standing for the person")
    members: List[FaceObservation] = Field(..., description="All observations, representative first")

    @property
    def id(self) -> str:
        return self.representative.id

    @property
    def descriptor(self) -> np.ndarray:
        return self.representative.descriptor

    @property
    def source_photo_id(self) -> str:
        return self.representative.source_photo_id

    @property
    def size(self) -> int:
        return len(self.members)
