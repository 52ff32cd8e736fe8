"""Face detector interface."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ...entities.face import DetectedFace


class FaceDetector(ABC):
    """Capability that turns an image into face descriptors.

    The engine only ever sees the resulting :class:`DetectedFace` records,
    so any detection library can sit behind this interface.
    """

    @property
    @abstractmethod
    def descriptor_dimension(self) -> int:
        """Length of the descriptors this detector produces."""
        pass

    @abstractmethod
    async def detect_faces(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
        min_confidence: Optional[float] = None,
    ) -> List[DetectedFace]:
        """
        Detect faces and extract their descriptors.

        Args:
            image_bytes: Raw image data
            max_faces: Maximum number of faces to return (None for no limit)
            min_confidence: Minimum detection confidence (0-1)

        Returns:
            Detected faces, highest confidence first. Empty when the image has no faces.

        Raises:
            InvalidImageError: If the image cannot be decoded
        """
        pass
