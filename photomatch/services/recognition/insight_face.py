"""
InsightFace-based implementation of the face detector.

Used when detection runs on the server instead of in the uploader's
browser. It decodes the image, detects faces, and returns one descriptor
and one cropped thumbnail per face.

Example:
    ```python
    detector = InsightFaceDetector()

    with open("image.jpg", "rb") as f:
        faces = await detector.detect_faces(f.read(), max_faces=5)
    ```

Note:
    buffalo_l produces 512-dimensional normalized embeddings, so
    DESCRIPTOR_DIMENSION and the distance thresholds have to be configured
    for that model when server-side detection is enabled.
"""
from typing import Any, List, Optional, TypeVar

import numpy as np
from insightface.app import FaceAnalysis
from insightface.app.common import Face as InsightFace

from photomatch.core.config import settings
from photomatch.core.exceptions import InvalidImageError, ModelLoadError
from photomatch.core.logging import get_logger
from photomatch.core.utils.image import bytes_to_numpy_array, crop_face_thumbnail, downscale_to_max_pixels
from photomatch.domain.entities.face import BoundingBox, DetectedFace
from photomatch.domain.interfaces.detection.face_detector import FaceDetector

logger = get_logger(__name__)

T = TypeVar('T', bound='InsightFaceDetector')

EMBEDDING_SIZE = 512


class InsightFaceDetector(FaceDetector):
    """
    InsightFace-based face detector.

    Attributes:
        model: InsightFace model instance for face analysis
    """

    def __init__(self, model: Optional[FaceAnalysis] = None) -> None:
        """Initialize InsightFace model, or wrap an already prepared one."""
        if model is not None:
            self.model = model
            return
        try:
            self.model = FaceAnalysis(
                name=settings.MODEL_NAME,
                root=settings.MODEL_CACHE_DIR,
                providers=['CPUExecutionProvider']
            )
            # Detection size affects accuracy significantly
            self.model.prepare(ctx_id=0, det_size=(640, 640))
        except Exception as e:
            raise ModelLoadError(f"Failed to load InsightFace model {settings.MODEL_NAME}: {e}")

    @property
    def descriptor_dimension(self) -> int:
        return EMBEDDING_SIZE

    async def __aenter__(self: T) -> T:
        logger.debug("Entering InsightFace detector context")
        return self

    async def __aexit__(self, exc_type: Optional[type], exc_val: Optional[Exception],
                        exc_tb: Optional[Any]) -> None:
        logger.debug("Cleaning up InsightFace detector resources")
        if exc_type:
            logger.error(
                "Error occurred during context exit",
                error=str(exc_val),
                exc_info=True
            )
        self.model = None

    def _load_image(self, image_bytes: bytes) -> np.ndarray:
        """Decode image bytes and shrink oversized images."""
        try:
            img = bytes_to_numpy_array(image_bytes)
        except ValueError as e:
            logger.error("Image loading failed", error=str(e))
            raise InvalidImageError(f"Invalid image format: {e}")

        resized = downscale_to_max_pixels(img, settings.MAX_IMAGE_PIXELS)
        if resized is not img:
            logger.info(
                "Resized large image",
                original_size=img.shape[1::-1],
                new_size=resized.shape[1::-1]
            )
        return resized

    def _to_detected_face(self, face_data: InsightFace, img: np.ndarray) -> DetectedFace:
        """Convert an InsightFace result to a DetectedFace with relative coordinates."""
        height, width = img.shape[:2]
        x1, y1, x2, y2 = (int(v) for v in face_data.bbox.astype(int))
        x1, y1 = max(0, x1), max(0, y1)
        x2, y2 = min(width, x2), min(height, y2)

        try:
            thumbnail = crop_face_thumbnail(img, (x1, y1, x2, y2), settings.FACE_THUMBNAIL_PADDING)
        except ValueError as e:
            logger.warning("Could not crop face thumbnail", error=str(e))
            thumbnail = None

        return DetectedFace(
            confidence=float(face_data.det_score),
            descriptor=np.asarray(face_data.normed_embedding, dtype=np.float64),
            bounding_box=BoundingBox(
                left=x1 / width,
                top=y1 / height,
                width=(x2 - x1) / width,
                height=(y2 - y1) / height
            ),
            thumbnail=thumbnail
        )

    async def detect_faces(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
        min_confidence: Optional[float] = None,
    ) -> List[DetectedFace]:
        """Detect faces, drop low-confidence ones and return them best first."""
        img = self._load_image(image_bytes)
        if min_confidence is None:
            min_confidence = settings.MIN_FACE_CONFIDENCE

        try:
            faces = self.model.get(img)
        except Exception as e:
            logger.error(
                "Face processing failed",
                error=str(e),
                image_shape=img.shape,
                exc_info=True
            )
            raise InvalidImageError(f"Face detection failed: {e}")

        confident = [
            face for face in faces
            if face.det_score >= min_confidence and face.embedding is not None
        ]
        confident.sort(key=lambda face: float(face.det_score), reverse=True)
        if max_faces is not None:
            confident = confident[:max_faces]

        logger.debug(
            "Face detection results",
            faces_found=len(faces),
            faces_kept=len(confident),
            min_confidence=min_confidence
        )
        return [self._to_detected_face(face, img) for face in confident]
