import os
import time
import uuid

import pytest
from fastapi.testclient import TestClient

from tests.conftest import make_png_bytes


@pytest.fixture
def client(db_dir):
    from main import app

    with TestClient(app) as c:
        yield c


def _upload(client, png_bytes, external_ref=None, path="/images"):
    data = {"external_ref": external_ref} if external_ref else {}
    return client.post(path, files={"file": ("photo.png", png_bytes, "image/png")}, data=data)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "db_initialized": True}


def test_upload_lookup_and_delete_flow(client, png_bytes):
    response = _upload(client, png_bytes, external_ref="dest-42")
    assert response.status_code == 201
    created = response.json()
    assert created["external_ref"] == "dest-42"
    assert created["local_path"].endswith(".png")

    assert client.get(f"/images/{created['id']}").json() == created
    assert client.get("/images/by-ref/dest-42").json() == created
    assert client.get("/images").json() == [created]

    thumb = client.get(f"/images/{created['id']}/thumbnail")
    assert thumb.status_code == 200
    assert thumb.headers["content-type"] == "image/png"

    assert client.delete(f"/images/{created['id']}").json() == {"id": created["id"], "removed": 1}
    assert client.delete(f"/images/{created['id']}").json() == {"id": created["id"], "removed": 0}
    assert client.get(f"/images/{created['id']}").status_code == 404
    assert not os.path.exists(created["local_path"])


def test_unknown_image_and_ref_are_404(client):
    assert client.get("/images/12345").status_code == 404
    assert client.get("/images/by-ref/nowhere").status_code == 404
    assert client.get("/images/12345/thumbnail").status_code == 404


def test_thumbnail_for_missing_file_is_404(client, png_bytes):
    created = _upload(client, png_bytes).json()
    os.remove(created["local_path"])

    assert client.get(f"/images/{created['id']}").status_code == 200
    assert client.get(f"/images/{created['id']}/thumbnail").status_code == 404


def test_capture_reencodes_as_jpeg(client, png_bytes):
    response = _upload(client, png_bytes, path="/images/capture")

    assert response.status_code == 201
    assert response.json()["local_path"].endswith(".jpg")


def test_capture_rejects_garbage(client):
    response = client.post("/images/capture", files={"file": ("x.png", b"not an image", "image/png")})

    assert response.status_code == 400
    assert client.get("/images").json() == []


def test_orphan_cleanup_endpoint(client, png_bytes, db_dir):
    created = _upload(client, png_bytes).json()
    stray = db_dir / "images" / f"image_{uuid.uuid4().hex}.jpg"
    stray.write_bytes(b"stray")
    past = time.time() - 7_200
    os.utime(stray, (past, past))
    os.utime(created["local_path"], (past, past))

    assert client.post("/images/maintenance/orphans").json() == {"removed": 1}
    assert os.path.exists(created["local_path"])
    assert not stray.exists()


def test_destinations_are_seeded(client):
    names = [d["name"] for d in client.get("/destinations").json()]

    assert names == ["Tumpak Sewu", "Gunung Bromo"]


def test_create_destination_with_picture_links_image(client):
    response = client.post(
        "/destinations",
        data={"name": "Kawah Ijen", "description": "Api biru."},
        files={"file": ("ijen.png", make_png_bytes(), "image/png")},
    )
    assert response.status_code == 201
    destination = response.json()

    image = client.get(f"/images/by-ref/{destination['destination_id']}").json()
    assert image["id"] == destination["image_id"]
    assert destination["image_path"] == image["local_path"]

    assert client.get(f"/destinations/{destination['destination_id']}").json()["name"] == "Kawah Ijen"
    assert client.delete(f"/destinations/{destination['destination_id']}").json()["deleted"] is True
    assert client.get(f"/destinations/{destination['destination_id']}").status_code == 404
    assert client.get(f"/images/{image['id']}").status_code == 200


def test_create_destination_without_picture(client):
    response = client.post("/destinations", data={"name": "Pantai Klayar", "description": "Seruling samudra."})

    assert response.status_code == 201
    assert response.json()["image_path"] is None


def test_create_destination_with_blank_description_is_400(client):
    response = client.post("/destinations", data={"name": "Pantai Klayar", "description": " "})

    assert response.status_code == 400


def test_image_feed_pushes_snapshots(client, png_bytes):
    with client.websocket_connect("/ws/images") as ws:
        first = ws.receive_json()
        assert first == {"type": "images.snapshot", "images": []}

        created = _upload(client, png_bytes).json()

        second = ws.receive_json()
        assert second["type"] == "images.snapshot"
        assert second["images"] == [created]
