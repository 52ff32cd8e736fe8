"""Face matching value objects."""
import math
from typing import List, Optional

from pydantic import BaseModel, Field


class MatchResult(BaseModel):
    """Outcome of matching one descriptor against the people of an event."""
    person_id: Optional[str] = Field(None, description="Matched person (cluster) id, None when nothing matched")
    distance: float = Field(math.inf, description="Distance to the closest person, inf when none was compared")

    @property
    def matched(self) -> bool:
        return self.person_id is not None


class PersonPhotos(BaseModel):
    """Photos found for a person, used by the live-capture flow."""
    match: MatchResult = Field(..., description="Match that selected the person")
    photo_ids: List[str] = Field(default_factory=list, description="Photos containing the person")
