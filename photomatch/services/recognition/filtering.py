"""Projection of a selected person onto the photos of an event.

The same person appears as a distinct observation, with its own id, in
every photo they are in. Photos that list the representative's id are
always kept; other photos are linked through descriptor similarity.
"""
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

import numpy as np

from photomatch.core.logging import get_logger
from photomatch.core.utils.descriptor import is_valid_descriptor, safe_distance, to_descriptor
from photomatch.domain.entities.face import PersonCluster
from photomatch.domain.entities.photo import Photo

logger = get_logger(__name__)

FILTER_THRESHOLD = 0.5

DescriptorLookup = Union[Mapping[str, np.ndarray], Callable[[str], Optional[np.ndarray]]]


def build_photo_face_index(photos: Iterable[Photo]) -> Dict[str, List[str]]:
    """Map each photo id to the ids of the faces detected in it."""
    return {photo.id: photo.face_ids for photo in photos}


def _resolve(lookup: DescriptorLookup, face_id: str) -> Optional[np.ndarray]:
    try:
        if isinstance(lookup, Mapping):
            value = lookup.get(face_id)
        else:
            value = lookup(face_id)
        if value is None:
            return None
        return to_descriptor(value)
    except Exception as e:
        logger.warning("Descriptor lookup failed", face_id=face_id, error=str(e))
        return None


def photos_for_person(
    person_id: str,
    clusters: Sequence[PersonCluster],
    photo_face_index: Mapping[str, Sequence[str]],
    descriptor_lookup: DescriptorLookup,
    threshold: float = FILTER_THRESHOLD,
) -> Set[str]:
    """Photos that contain the selected person.

    Args:
        person_id: Id of the selected cluster (its representative's face id)
        clusters: People of the event
        photo_face_index: Photo id to the face ids present in that photo
        descriptor_lookup: Mapping or callable from face id to descriptor
        threshold: Distance strictly below which a face is the person

    Returns:
        Set of photo ids. Photos listing ``person_id`` itself are always
        included; when the person's descriptor is unusable only those are.
    """
    result: Set[str] = {
        photo_id for photo_id, face_ids in photo_face_index.items() if person_id in face_ids
    }

    cluster = next((c for c in clusters if c.id == person_id), None)
    if cluster is None or not is_valid_descriptor(cluster.descriptor):
        logger.info(
            "No usable descriptor for person, using exact id match only",
            person_id=person_id,
            photos_count=len(result)
        )
        return result

    reference = cluster.descriptor
    for photo_id, face_ids in photo_face_index.items():
        if photo_id in result:
            continue
        for face_id in face_ids:
            descriptor = _resolve(descriptor_lookup, face_id)
            if descriptor is None or not is_valid_descriptor(descriptor, reference.size):
                continue
            if safe_distance(descriptor, reference) < threshold:
                result.add(photo_id)
                break

    return result
