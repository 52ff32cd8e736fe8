"""
Greedy deduplication of face observations into people.

Observations are visited in priority order (detection confidence first,
descriptor signal strength second). Each one either joins the nearest
existing person, when it is strictly closer than the threshold to that
person's representative, or becomes the representative of a new person.
Representatives never change once chosen.

Only the representative is compared against, so two members of one
cluster can end up further apart than the threshold when they are chained
through the representative. This is accepted; tightening it would need
clique-based clustering.

Cost is O(n·k) distance computations for n observations and k people,
which is fine for the few hundred faces of a single event.
"""
import math
from typing import Iterable, List, Optional

from photomatch.core.logging import get_logger
from photomatch.core.utils.descriptor import is_valid_descriptor, safe_distance, signal_strength
from photomatch.domain.entities.face import FaceObservation, PersonCluster

logger = get_logger(__name__)

DEDUPE_THRESHOLD = 0.5
DESCRIPTOR_DIMENSION = 128


def valid_observations(
    observations: Iterable[FaceObservation],
    dimension: Optional[int] = DESCRIPTOR_DIMENSION,
) -> List[FaceObservation]:
    """Drop observations whose descriptor cannot be compared."""
    valid = []
    for observation in observations:
        if is_valid_descriptor(observation.descriptor, dimension):
            valid.append(observation)
        else:
            logger.debug(
                "Skipping face with invalid descriptor",
                face_id=observation.id,
                descriptor_length=int(observation.descriptor.size),
                expected_length=dimension
            )
    return valid


def priority_order(observations: Iterable[FaceObservation]) -> List[FaceObservation]:
    """Sort by confidence, then signal strength, both descending.

    The sort is stable, so exact ties keep their input order.
    """
    return sorted(
        observations,
        key=lambda obs: (-obs.confidence, -signal_strength(obs.descriptor)),
    )


def dedupe_faces(
    observations: Iterable[FaceObservation],
    threshold: float = DEDUPE_THRESHOLD,
    dimension: Optional[int] = DESCRIPTOR_DIMENSION,
) -> List[PersonCluster]:
    """Partition face observations into people.

    Args:
        observations: Faces across a set of photos; never mutated
        threshold: Distance strictly below which a face joins a person
        dimension: Required descriptor length, None to accept any length

    Returns:
        One cluster per person in creation order. Empty for empty input.
    """
    candidates = priority_order(valid_observations(observations, dimension))
    representatives: List[FaceObservation] = []
    members: List[List[FaceObservation]] = []

    for observation in candidates:
        best_index = -1
        best_distance = math.inf
        for index, representative in enumerate(representatives):
            distance = safe_distance(observation.descriptor, representative.descriptor)
            if distance < best_distance:
                best_distance = distance
                best_index = index

        if best_index >= 0 and best_distance < threshold:
            members[best_index].append(observation)
        else:
            representatives.append(observation)
            members.append([observation])

    logger.debug(
        "Deduplicated faces",
        faces_count=len(candidates),
        people_count=len(representatives),
        threshold=threshold
    )

    return [
        PersonCluster(representative=representative, members=cluster_members)
        for representative, cluster_members in zip(representatives, members)
    ]
