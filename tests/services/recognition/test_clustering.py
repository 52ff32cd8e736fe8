"""Tests for greedy face deduplication."""
import numpy as np
import pytest

from conftest import vector
from photomatch.services.recognition import dedupe_faces, match_face
from photomatch.services.recognition.clustering import priority_order


@pytest.fixture
def abc_faces(make_observation):
    """A and B are the same person 0.01 apart, C is someone else."""
    return [
        make_observation("A", vector(1.0), photo_id="p1", confidence=0.9),
        make_observation("B", vector(1.01), photo_id="p2", confidence=0.95),
        make_observation("C", vector(5.0, 5.0), photo_id="p3", confidence=0.8),
    ]


class TestDedupeFaces:

    def test_empty_input(self):
        assert dedupe_faces([]) == []

    def test_two_people_scenario(self, abc_faces):
        clusters = dedupe_faces(abc_faces)

        assert [cluster.id for cluster in clusters] == ["B", "C"]
        assert [member.id for member in clusters[0].members] == ["B", "A"]
        assert [member.id for member in clusters[1].members] == ["C"]

        match = match_face(vector(1.0), clusters)
        assert match.person_id == "B"
        assert match.distance == pytest.approx(0.01)

    def test_highest_confidence_becomes_representative(self, make_observation):
        faces = [
            make_observation("low", vector(0.30), confidence=0.6),
            make_observation("high", vector(0.31), confidence=0.99),
            make_observation("mid", vector(0.32), confidence=0.8),
        ]

        clusters = dedupe_faces(faces)

        assert len(clusters) == 1
        assert clusters[0].id == "high"
        assert clusters[0].size == 3

    def test_confidence_tie_broken_by_signal_strength(self, make_observation):
        weak = make_observation("weak", vector(0.1), confidence=0.9)
        strong = make_observation("strong", vector(0.4), confidence=0.9)

        assert [obs.id for obs in priority_order([weak, strong])] == ["strong", "weak"]

    def test_exact_ties_keep_input_order(self, make_observation):
        first = make_observation("first", vector(0.2), confidence=0.9)
        second = make_observation("second", vector(0.2), confidence=0.9)

        clusters = dedupe_faces([first, second])

        assert clusters[0].id == "first"

    def test_threshold_is_strict(self, make_observation):
        faces = [
            make_observation("x", vector(1.0), confidence=0.9),
            make_observation("y", vector(1.5), confidence=0.8),
        ]

        assert len(dedupe_faces(faces, threshold=0.5)) == 2
        assert len(dedupe_faces(faces, threshold=0.5000001)) == 1

    def test_joins_nearest_representative(self, make_observation):
        faces = [
            make_observation("left", vector(0.0, 1.0), confidence=0.99),
            make_observation("right", vector(0.6, 1.0), confidence=0.98),
            make_observation("between", vector(0.4, 1.0), confidence=0.5),
        ]

        clusters = dedupe_faces(faces)

        assert [cluster.id for cluster in clusters] == ["left", "right"]
        assert [member.id for member in clusters[1].members] == ["right", "between"]

    def test_chained_members_may_exceed_threshold(self, make_observation):
        faces = [
            make_observation("center", vector(0.0, 1.0), confidence=0.99),
            make_observation("minus", vector(-0.4, 1.0), confidence=0.9),
            make_observation("plus", vector(0.4, 1.0), confidence=0.8),
        ]

        clusters = dedupe_faces(faces)

        assert len(clusters) == 1
        distance = np.linalg.norm(faces[1].descriptor - faces[2].descriptor)
        assert distance > 0.5

    def test_invalid_descriptors_are_dropped(self, abc_faces, make_observation):
        invalid = [
            make_observation("zeros", np.zeros(128), confidence=1.0),
            make_observation("short", vector(1.0, dimension=64), confidence=1.0),
            make_observation("empty", [], confidence=1.0),
            make_observation("nan", vector(float("nan")), confidence=1.0),
        ]

        with_invalid = dedupe_faces(invalid + abc_faces)
        without = dedupe_faces(abc_faces)

        assert [c.id for c in with_invalid] == [c.id for c in without]
        assert [[m.id for m in c.members] for c in with_invalid] == [
            [m.id for m in c.members] for c in without
        ]

    def test_any_dimension_when_unset(self, make_observation):
        faces = [
            make_observation("a", vector(1.0, dimension=4)),
            make_observation("b", vector(1.0, dimension=4), confidence=0.5),
        ]

        assert dedupe_faces(faces) == []
        assert len(dedupe_faces(faces, dimension=None)) == 1

    def test_input_is_not_mutated(self, abc_faces):
        before = [(face.id, face.descriptor.copy()) for face in abc_faces]

        dedupe_faces(abc_faces)

        assert [face.id for face in abc_faces] == [face_id for face_id, _ in before]
        for face, (_, descriptor) in zip(abc_faces, before):
            assert np.array_equal(face.descriptor, descriptor)


class TestDedupeProperties:

    @pytest.fixture
    def population(self, make_observation):
        rng = np.random.default_rng(42)
        centers = rng.normal(size=(5, 128))
        centers /= np.linalg.norm(centers, axis=1, keepdims=True)
        faces = []
        for person, center in enumerate(centers):
            for shot in range(4):
                descriptor = center + rng.normal(scale=0.01, size=128)
                faces.append(make_observation(
                    f"f{person}-{shot}",
                    descriptor,
                    photo_id=f"p{shot}",
                    confidence=float(rng.uniform(0.5, 1.0))
                ))
        return faces

    def test_representatives_are_a_fixed_point(self, population):
        clusters = dedupe_faces(population)
        representatives = [cluster.representative for cluster in clusters]

        again = dedupe_faces(representatives)

        assert sorted(c.id for c in again) == sorted(c.id for c in clusters)
        assert all(cluster.size == 1 for cluster in again)

    def test_cluster_count_decreases_with_threshold(self, population):
        counts = [len(dedupe_faces(population, threshold=t)) for t in (0.01, 0.1, 0.5, 1.0, 2.0)]

        assert counts == sorted(counts, reverse=True)

    def test_recovers_people(self, population):
        clusters = dedupe_faces(population)

        assert len(clusters) == 5
        for cluster in clusters:
            person = cluster.id.split("-")[0]
            assert all(member.id.startswith(person + "-") for member in cluster.members)
