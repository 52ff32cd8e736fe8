"""Value objects package."""
from .matching import MatchResult, PersonPhotos

__all__ = ["MatchResult", "PersonPhotos"]
