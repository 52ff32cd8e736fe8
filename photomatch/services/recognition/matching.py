"""Nearest-person lookup for a single face descriptor."""
import math
from typing import Optional, Sequence

from photomatch.core.exceptions import InvalidDescriptorError
from photomatch.core.logging import get_logger
from photomatch.core.utils.descriptor import (
    DescriptorLike,
    is_valid_descriptor,
    safe_distance,
    to_descriptor,
)
from photomatch.domain.entities.face import PersonCluster
from photomatch.domain.value_objects.matching import MatchResult

logger = get_logger(__name__)

# Looser than deduplication: a live capture should find a plausible match.
MATCH_THRESHOLD = 0.6


def match_face(
    query: DescriptorLike,
    clusters: Sequence[PersonCluster],
    threshold: float = MATCH_THRESHOLD,
    dimension: Optional[int] = None,
) -> MatchResult:
    """Find the person whose representative is closest to ``query``.

    Args:
        query: Descriptor of the face to look up
        clusters: People to compare against
        threshold: Distance strictly below which the closest person matches
        dimension: Required query length; defaults to the representatives' length

    Returns:
        MatchResult with the matched person id, or ``person_id=None`` when
        nothing is close enough. The closest distance is reported either way.
    """
    if not clusters:
        return MatchResult()

    try:
        descriptor = to_descriptor(query)
    except InvalidDescriptorError as e:
        logger.warning("Query descriptor is not numeric", error=str(e))
        return MatchResult()

    if dimension is None:
        dimension = int(clusters[0].descriptor.size)
    if not is_valid_descriptor(descriptor, dimension):
        logger.warning(
            "Invalid query descriptor, no match possible",
            descriptor_length=int(descriptor.size),
            expected_length=dimension
        )
        return MatchResult()

    best_id = None
    best_distance = math.inf
    for cluster in clusters:
        distance = safe_distance(descriptor, cluster.descriptor)
        if distance < best_distance:
            best_distance = distance
            best_id = cluster.id

    if best_id is not None and best_distance < threshold:
        logger.debug("Matched face to person", person_id=best_id, distance=best_distance)
        return MatchResult(person_id=best_id, distance=best_distance)

    logger.debug("No person close enough", closest_distance=best_distance, threshold=threshold)
    return MatchResult(distance=best_distance)
