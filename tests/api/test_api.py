"""End-to-end tests for the HTTP API."""
import base64

import httpx
import pytest

from conftest import FakeDetector, vector
from photomatch.core.container import ServiceContainer
from photomatch.infrastructure.dependencies import get_container
from photomatch.main import app

API = "/api/v1"


@pytest.fixture
def detector():
    return FakeDetector()


@pytest.fixture
async def container(detector):
    container = ServiceContainer(database_url="sqlite+aiosqlite://", detector=detector)
    await container.initialize()
    yield container
    await container.cleanup()


@pytest.fixture
async def client(container):
    app.dependency_overrides[get_container] = lambda: container
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def event_id(client):
    response = await client.post(f"{API}/events", json={"name": "Wedding", "event_date": "2024-06-01"})
    assert response.status_code == 201
    return response.json()["id"]


def face_payload(*head, confidence=0.9, dimension=128):
    return {
        "descriptor": vector(*head, dimension=dimension).tolist(),
        "confidence": confidence,
        "bounding_box": {"left": 0.1, "top": 0.1, "width": 0.2, "height": 0.2},
    }


async def add_photo(client, event_id, url, faces):
    response = await client.post(f"{API}/events/{event_id}/photos", json={"url": url, "faces": faces})
    assert response.status_code == 201, response.text
    return response.json()


async def test_health(client):
    for path in ("/health", f"{API}/health"):
        response = await client.get(path)
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


async def test_get_event(client, event_id):
    response = await client.get(f"{API}/events/{event_id}")

    assert response.status_code == 200
    assert response.json()["name"] == "Wedding"
    assert response.json()["event_date"] == "2024-06-01"


async def test_unknown_event_is_404(client):
    assert (await client.get(f"{API}/events/missing")).status_code == 404
    assert (await client.get(f"{API}/events/missing/people")).status_code == 404
    assert (await client.get(f"{API}/events/missing/photos")).status_code == 404


async def test_people_and_person_filter(client, event_id):
    first = await add_photo(client, event_id, "https://cdn.example.com/1.jpg", [face_payload(1.0, confidence=0.99)])
    second = await add_photo(client, event_id, "https://cdn.example.com/2.jpg", [
        face_payload(1.1, confidence=0.8),
        face_payload(0.0, 1.0, confidence=0.9),
    ])
    await add_photo(client, event_id, "https://cdn.example.com/3.jpg", [])

    response = await client.get(f"{API}/events/{event_id}/people")
    assert response.status_code == 200
    people = response.json()
    assert [person["face_count"] for person in people] == [2, 1]
    assert people[0]["id"] == first["faces"][0]["id"]

    response = await client.get(f"{API}/events/{event_id}/photos", params={"person_id": people[0]["id"]})
    assert response.status_code == 200
    assert [photo["id"] for photo in response.json()] == [second["id"], first["id"]]

    response = await client.get(f"{API}/events/{event_id}/photos")
    assert len(response.json()) == 3


async def test_unknown_person_is_404(client, event_id):
    response = await client.get(f"{API}/events/{event_id}/photos", params={"person_id": "nobody"})

    assert response.status_code == 404


async def test_wrong_descriptor_size_is_422(client, event_id):
    response = await client.post(
        f"{API}/events/{event_id}/photos",
        json={"url": "https://cdn.example.com/1.jpg", "faces": [face_payload(1.0, dimension=64)]}
    )

    assert response.status_code == 422


async def test_match_by_descriptor(client, event_id):
    photo = await add_photo(client, event_id, "https://cdn.example.com/1.jpg", [face_payload(1.0)])

    response = await client.post(f"{API}/events/{event_id}/match", json={"descriptor": vector(1.05).tolist()})

    assert response.status_code == 200
    body = response.json()
    assert body["matched"] is True
    assert body["person_id"] == photo["faces"][0]["id"]
    assert body["distance"] == pytest.approx(0.05)
    assert body["photo_ids"] == [photo["id"]]


async def test_match_in_empty_event_has_no_distance(client, event_id):
    response = await client.post(f"{API}/events/{event_id}/match", json={"descriptor": vector(1.0).tolist()})

    assert response.status_code == 200
    assert response.json() == {"matched": False, "person_id": None, "distance": None, "photo_ids": []}


async def test_match_needs_exactly_one_source(client, event_id):
    image = base64.b64encode(b"jpeg").decode()

    assert (await client.post(f"{API}/events/{event_id}/match", json={})).status_code == 422
    response = await client.post(
        f"{API}/events/{event_id}/match",
        json={"descriptor": vector(1.0).tolist(), "image": image}
    )
    assert response.status_code == 422


async def test_match_by_image(client, event_id, detector, make_detected_face):
    photo = await add_photo(client, event_id, "https://cdn.example.com/1.jpg", [face_payload(0.0, 1.0)])
    detector.faces = [make_detected_face(vector(0.0, 1.0))]
    image = "data:image/jpeg;base64," + base64.b64encode(b"jpeg").decode()

    response = await client.post(f"{API}/events/{event_id}/match", json={"image": image})

    assert response.status_code == 200
    assert response.json()["photo_ids"] == [photo["id"]]
    assert detector.calls[-1]["image_bytes"] == b"jpeg"


async def test_match_by_image_without_face_is_empty(client, event_id):
    image = base64.b64encode(b"jpeg").decode()

    response = await client.post(f"{API}/events/{event_id}/match", json={"image": image})

    assert response.status_code == 200
    assert response.json()["matched"] is False


async def test_match_by_image_with_several_faces_is_400(client, event_id, detector, make_detected_face):
    detector.faces = [make_detected_face(vector(1.0)), make_detected_face(vector(0.0, 1.0))]
    image = base64.b64encode(b"jpeg").decode()

    response = await client.post(f"{API}/events/{event_id}/match", json={"image": image})

    assert response.status_code == 400


async def test_invalid_base64_is_422(client, event_id):
    response = await client.post(f"{API}/events/{event_id}/match", json={"image": "not base64!"})

    assert response.status_code == 422


async def test_detect_endpoint(client, event_id, detector, make_detected_face):
    detector.faces = [make_detected_face(vector(0.7), 0.88)]

    response = await client.post(
        f"{API}/events/{event_id}/photos/detect",
        json={"url": "https://cdn.example.com/1.jpg", "image": base64.b64encode(b"jpeg").decode()}
    )

    assert response.status_code == 201
    assert [face["confidence"] for face in response.json()["faces"]] == [0.88]


async def test_delete_photo(client, event_id):
    photo = await add_photo(client, event_id, "https://cdn.example.com/1.jpg", [face_payload(1.0)])

    response = await client.delete(f"{API}/photos/{photo['id']}")
    assert response.status_code == 204

    assert (await client.get(f"{API}/events/{event_id}/people")).json() == []
    assert (await client.delete(f"{API}/photos/{photo['id']}")).status_code == 404


async def test_search(client, event_id):
    response = await client.post(f"{API}/events/{event_id}/photos", json={
        "url": "https://cdn.example.com/1.jpg",
        "metadata": {"context": "Dancing under the lights", "keywords": ["party", "dance"]},
    })
    photo_id = response.json()["id"]

    response = await client.get(f"{API}/photos/search", params={"q": "dancing", "event_id": event_id})
    assert [photo["id"] for photo in response.json()] == [photo_id]

    response = await client.get(f"{API}/photos/search", params=[("keyword", "party"), ("keyword", "dance")])
    assert [photo["id"] for photo in response.json()] == [photo_id]

    response = await client.get(f"{API}/photos/search", params={"keyword": "cake"})
    assert response.json() == []


class TestDetectionDisabled:

    @pytest.fixture
    async def container(self):
        container = ServiceContainer(database_url="sqlite+aiosqlite://")
        await container.initialize()
        yield container
        await container.cleanup()

    async def test_detect_is_503(self, client, event_id):
        response = await client.post(
            f"{API}/events/{event_id}/photos/detect",
            json={"url": "https://cdn.example.com/1.jpg", "image": base64.b64encode(b"jpeg").decode()}
        )

        assert response.status_code == 503

    async def test_match_by_image_is_503(self, client, event_id):
        image = base64.b64encode(b"jpeg").decode()

        response = await client.post(f"{API}/events/{event_id}/match", json={"image": image})

        assert response.status_code == 503
