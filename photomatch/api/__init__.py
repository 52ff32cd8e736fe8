"""API v1 router initialization."""
from fastapi import APIRouter

from .events import router as events_router
from .photos import router as photos_router

# Create v1 router
router = APIRouter()

router.include_router(events_router, prefix="/events")
router.include_router(photos_router, prefix="/photos")
