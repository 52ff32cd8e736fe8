"""
Image processing utility functions.
"""
import base64
import binascii
import math
from typing import Tuple

import cv2
import numpy as np


def bytes_to_numpy_array(image_bytes: bytes, flags: int = cv2.IMREAD_COLOR) -> np.ndarray:
    """Convert image bytes to a numpy array.

    Args:
        image_bytes: Raw image bytes
        flags: OpenCV imread flags (default: COLOR)

    Returns:
        numpy.ndarray: Image as a numpy array

    Raises:
        ValueError: If the image cannot be decoded
    """
    np_array = np.frombuffer(image_bytes, np.uint8)
    img = cv2.imdecode(np_array, flags)

    if img is None:
        raise ValueError("Failed to decode image bytes")

    return img


def downscale_to_max_pixels(img: np.ndarray, max_pixels: int) -> np.ndarray:
    """Shrink an image so that it holds at most ``max_pixels`` pixels."""
    height, width = img.shape[:2]
    pixels = width * height
    if pixels <= max_pixels:
        return img
    scale = math.sqrt(max_pixels / pixels)
    return cv2.resize(
        img,
        (max(1, int(width * scale)), max(1, int(height * scale))),
        interpolation=cv2.INTER_AREA
    )


def padded_box(
    box: Tuple[int, int, int, int],
    image_size: Tuple[int, int],
    padding: int,
) -> Tuple[int, int, int, int]:
    """Grow an (x1, y1, x2, y2) pixel box by ``padding`` and clip it to the image.

    Args:
        box: Pixel box as x1, y1, x2, y2
        image_size: Image height and width
        padding: Pixels to add on every side
    """
    height, width = image_size
    x1, y1, x2, y2 = box
    return (
        max(0, x1 - padding),
        max(0, y1 - padding),
        min(width, x2 + padding),
        min(height, y2 + padding),
    )


def crop_face_thumbnail(
    img: np.ndarray,
    box: Tuple[int, int, int, int],
    padding: int = 20,
) -> str:
    """Crop a padded face region and return it as a JPEG data URI.

    Raises:
        ValueError: If the box is empty or the crop cannot be encoded
    """
    x1, y1, x2, y2 = padded_box(box, img.shape[:2], padding)
    if x2 <= x1 or y2 <= y1:
        raise ValueError(f"Empty face box: {box}")
    ok, encoded = cv2.imencode(".jpg", img[y1:y2, x1:x2])
    if not ok:
        raise ValueError("Failed to encode face thumbnail")
    return "data:image/jpeg;base64," + base64.b64encode(encoded.tobytes()).decode("ascii")


def decode_base64_image(data: str) -> bytes:
    """Decode a base64 image, with or without a ``data:image/...;base64,`` prefix.

    Raises:
        ValueError: If the payload is empty or not valid base64
    """
    if data.startswith("data:"):
        _, _, data = data.partition(",")
    try:
        image_bytes = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Image is not valid base64: {e}")
    if not image_bytes:
        raise ValueError("Image is empty")
    return image_bytes
