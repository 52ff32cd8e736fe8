"""
Face descriptor utilities.

Descriptors are fixed-length float vectors produced by a face embedding
model. They are persisted as a comma-delimited string and must come back
bit-identical, otherwise clustering results drift silently between runs.
"""
import math
from collections import Counter
from typing import Iterable, Optional, Sequence, Set, Union

import numpy as np

from photomatch.core.exceptions import DescriptorDimensionError, InvalidDescriptorError
from photomatch.core.logging import get_logger

logger = get_logger(__name__)

DescriptorLike = Union[np.ndarray, Sequence[float]]

DESCRIPTOR_DELIMITER = ","


def to_descriptor(values: Union[DescriptorLike, str, None]) -> np.ndarray:
    """Coerce a list, array or delimited string into a 1-D float64 array.

    Float32 inputs are widened exactly, so no precision is lost.

    Raises:
        InvalidDescriptorError: If the values cannot be read as numbers
    """
    if values is None:
        return np.empty(0, dtype=np.float64)
    if isinstance(values, str):
        return parse_descriptor(values)
    try:
        array = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidDescriptorError(f"Descriptor is not numeric: {e}")
    return array.reshape(-1)


def format_descriptor(descriptor: DescriptorLike) -> str:
    """Serialize a descriptor as a comma-delimited string.

    Each component is written with ``repr`` which yields the shortest string
    that parses back to the same double, making the round trip lossless.
    """
    return DESCRIPTOR_DELIMITER.join(repr(float(value)) for value in to_descriptor(descriptor))


def parse_descriptor(text: str) -> np.ndarray:
    """Parse a descriptor previously written by :func:`format_descriptor`.

    Raises:
        InvalidDescriptorError: If any component is not a number
    """
    text = text.strip()
    if not text:
        return np.empty(0, dtype=np.float64)
    try:
        values = [float(part) for part in text.split(DESCRIPTOR_DELIMITER)]
    except ValueError as e:
        raise InvalidDescriptorError(f"Malformed descriptor string: {e}")
    return np.array(values, dtype=np.float64)


def is_valid_descriptor(descriptor: Optional[DescriptorLike], dimension: Optional[int] = None) -> bool:
    """Check whether a descriptor can take part in clustering or matching.

    A descriptor is invalid when it is empty, has the wrong length, is all
    zeros or contains NaN/inf components.
    """
    if descriptor is None:
        return False
    try:
        array = to_descriptor(descriptor)
    except InvalidDescriptorError:
        return False
    if array.size == 0:
        return False
    if dimension is not None and array.size != dimension:
        return False
    if not np.all(np.isfinite(array)):
        return False
    return bool(np.any(array))


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two equal-length descriptors."""
    if a.shape != b.shape:
        raise ValueError(f"Descriptor shapes do not match: {a.shape} vs {b.shape}")
    return float(np.linalg.norm(a - b))


def safe_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance that treats any comparison failure as +inf."""
    try:
        distance = euclidean_distance(a, b)
    except (ValueError, TypeError) as e:
        logger.warning("Error comparing face descriptors", error=str(e))
        return math.inf
    if math.isnan(distance):
        return math.inf
    return distance


def signal_strength(descriptor: np.ndarray) -> float:
    """Sum of absolute components, used to break confidence ties."""
    return float(np.abs(descriptor).sum())


class DimensionGuard:
    """Detects a systemic change in descriptor length across a population.

    A single stray vector of the wrong length is dropped by the engine.
    When most of the stored descriptors have a different length than the
    configured one, the detector or the store has changed underneath us;
    that is reported once per observed length and raised to the caller.
    """

    def __init__(self, dimension: int) -> None:
        self.dimension = dimension
        self._reported: Set[int] = set()

    def dominant_dimension(self, descriptors: Iterable[DescriptorLike]) -> Optional[int]:
        """Most common non-zero descriptor length, or None for an empty population."""
        lengths = Counter()
        for descriptor in descriptors:
            try:
                size = to_descriptor(descriptor).size
            except InvalidDescriptorError:
                continue
            if size:
                lengths[size] += 1
        if not lengths:
            return None
        return lengths.most_common(1)[0][0]

    def verify(self, descriptors: Iterable[DescriptorLike]) -> None:
        """Raise if the population's dominant length differs from the configured one.

        Raises:
            DescriptorDimensionError: If the stored population has drifted
        """
        observed = self.dominant_dimension(descriptors)
        if observed is None or observed == self.dimension:
            return
        if observed not in self._reported:
            self._reported.add(observed)
            logger.error(
                "Descriptor dimensionality mismatch in stored population",
                expected=self.dimension,
                observed=observed
            )
        raise DescriptorDimensionError(
            f"Stored descriptors have {observed} components, expected {self.dimension}",
            details={"expected": self.dimension, "observed": observed}
        )

    def check(self, descriptor: DescriptorLike) -> np.ndarray:
        """Validate one incoming descriptor before it is stored.

        Raises:
            InvalidDescriptorError: If the descriptor is not numeric
            DescriptorDimensionError: If its length differs from the configured one
        """
        array = to_descriptor(descriptor)
        if array.size != self.dimension:
            raise DescriptorDimensionError(
                f"Descriptor has {array.size} components, expected {self.dimension}",
                details={"expected": self.dimension, "observed": int(array.size)}
            )
        return array
