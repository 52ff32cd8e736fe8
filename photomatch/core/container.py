"""Service container for dependency injection."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from photomatch.core.config import settings
from photomatch.core.logging import get_logger
from photomatch.domain.interfaces.detection.face_detector import FaceDetector
from photomatch.domain.interfaces.storage.photo_store import PhotoStore
from photomatch.infrastructure.database import (
    SqlAlchemyPhotoStore,
    create_engine,
    create_session_factory,
    init_models,
)
from photomatch.services.face_indexing import FaceIndexingService
from photomatch.services.face_matching import FaceMatchingService
from photomatch.services.gallery import GalleryService

logger = get_logger(__name__)


def load_detector() -> FaceDetector:
    """Load the InsightFace detector.

    Imported here so the service runs without the ``detection`` extra
    when server-side detection is off.
    """
    from photomatch.services.recognition.insight_face import InsightFaceDetector

    detector = InsightFaceDetector()
    if detector.descriptor_dimension != settings.DESCRIPTOR_DIMENSION:
        logger.warning(
            "Detector descriptor size differs from configured dimension",
            detector_dimension=detector.descriptor_dimension,
            configured_dimension=settings.DESCRIPTOR_DIMENSION
        )
    return detector


class ServiceContainer:
    """Container for application services.

    This container manages the lifecycle and dependencies of all services in the application.
    It ensures proper initialization order and provides a single source of truth for service instances.

    Example:
        ```python
        container = ServiceContainer()
        await container.initialize()

        # Get services from container
        face_indexing = container.face_indexing_service
        face_matching = container.face_matching_service
        ```
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        detector: Optional[FaceDetector] = None,
    ) -> None:
        """Initialize empty container.

        Args:
            database_url: Overrides ``settings.DATABASE_URL``
            detector: Pre-built detector, used instead of loading InsightFace
        """
        self._database_url = database_url
        self.engine: Optional[AsyncEngine] = None

        # Core services
        self.store: Optional[PhotoStore] = None
        self.detector: Optional[FaceDetector] = detector

        # Domain services
        self.face_indexing_service: Optional[FaceIndexingService] = None
        self.face_matching_service: Optional[FaceMatchingService] = None
        self.gallery_service: Optional[GalleryService] = None

    @property
    def initialized(self) -> bool:
        return self.store is not None

    async def initialize(self) -> None:
        """Initialize all services in the correct order."""
        self.engine = create_engine(self._database_url)
        await init_models(self.engine)
        self.store = SqlAlchemyPhotoStore(create_session_factory(self.engine))

        if self.detector is None and settings.SERVER_SIDE_DETECTION:
            self.detector = load_detector()
            logger.info("Server-side face detection enabled", model=settings.MODEL_NAME)

        self.face_indexing_service = FaceIndexingService(
            store=self.store,
            detector=self.detector
        )
        self.face_matching_service = FaceMatchingService(
            store=self.store,
            detector=self.detector
        )
        self.gallery_service = GalleryService(store=self.store)

    async def cleanup(self) -> None:
        """Cleanup all services in reverse order of initialization."""
        self.face_indexing_service = None
        self.face_matching_service = None
        self.gallery_service = None
        self.store = None

        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None


# Global container instance
container = ServiceContainer()
