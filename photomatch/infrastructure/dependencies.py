"""FastAPI dependency providers."""
from typing import AsyncGenerator

from fastapi import Depends

from photomatch.core.container import ServiceContainer, container
from photomatch.core.exceptions import ServiceNotInitializedError
from photomatch.services.face_indexing import FaceIndexingService
from photomatch.services.face_matching import FaceMatchingService
from photomatch.services.gallery import GalleryService


async def get_container() -> ServiceContainer:
    """Dependency provider for the global ServiceContainer instance."""
    if not container.initialized:
        raise ServiceNotInitializedError("Service container is not initialized")
    return container


async def get_face_indexing_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[FaceIndexingService, None]:
    """Dependency provider for FaceIndexingService."""
    if not container.face_indexing_service:
        raise ServiceNotInitializedError("FaceIndexingService not found in initialized container")
    yield container.face_indexing_service


async def get_face_matching_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[FaceMatchingService, None]:
    """Dependency provider for FaceMatchingService."""
    if not container.face_matching_service:
        raise ServiceNotInitializedError("FaceMatchingService not found in initialized container")
    yield container.face_matching_service


async def get_gallery_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[GalleryService, None]:
    """Dependency provider for GalleryService."""
    if not container.gallery_service:
        raise ServiceNotInitializedError("GalleryService not found in initialized container")
    yield container.gallery_service
