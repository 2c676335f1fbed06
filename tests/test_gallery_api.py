import base64

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import encode_b64, encode_image
from photoframe.middlewares.body_guard import BodyGuardMiddleware


@pytest.fixture()
def client(gallery_env):
    from photoframe.main import app

    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
    assert client.get("/").json()["ok"] is True


def test_save_to_gallery(client, gallery_env):
    payload = {"base64Data": encode_b64(encode_image()), "fileName": "api.png"}

    response = client.post("/api/gallery/save", json=payload)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Image saved to gallery"}
    assert (gallery_env / "PhotoFrame" / "api.png").exists()


def test_save_accepts_snake_case_and_data_url(client, gallery_env):
    data_url = "data:image/jpeg;base64," + encode_b64(encode_image(fmt="JPEG"))

    response = client.post("/api/gallery/save", json={"base64_data": data_url, "file_name": "snake.png"})

    assert response.status_code == 200
    assert (gallery_env / "PhotoFrame" / "snake.png").exists()


def test_save_without_file_name_generates_one(client, gallery_env):
    response = client.post("/api/gallery/save", json={"base64Data": encode_b64(encode_image()), "fileName": ""})

    assert response.status_code == 200
    saved = list((gallery_env / "PhotoFrame").iterdir())
    assert len(saved) == 1
    assert saved[0].name.startswith("photo-frame-")


def test_missing_data_is_rejected(client, gallery_env):
    response = client.post("/api/gallery/save", json={"fileName": "x.png"})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail == {"success": False, "error": "invalid_input", "message": "Base64 data is required"}
    assert not gallery_env.exists()


def test_undecodable_image_is_rejected(client, gallery_env):
    response = client.post(
        "/api/gallery/save",
        json={"base64Data": base64.b64encode(b"plain text").decode(), "fileName": "x.png"},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Failed to decode image"


def test_storage_failure_maps_to_server_error(client, gallery_env, monkeypatch):
    from photoframe.services.media_index import MediaIndex

    monkeypatch.setattr(MediaIndex, "insert", lambda self, values: None)

    response = client.post("/api/gallery/save", json={"base64Data": encode_b64(encode_image()), "fileName": "x.png"})

    assert response.status_code == 500
    assert response.json()["detail"]["message"] == "Failed to save image to gallery"


def test_list_entries(client, gallery_env, monkeypatch):
    monkeypatch.setenv("GALLERY_API_LEVEL", "28")
    from photoframe.config import get_settings

    get_settings.cache_clear()
    client.post("/api/gallery/save", json={"base64Data": encode_b64(encode_image()), "fileName": "one.png"})

    response = client.get("/api/gallery/entries")

    assert response.status_code == 200
    entries = response.json()["entries"]
    assert [entry["display_name"] for entry in entries] == ["one.png"]
    assert entries[0]["mime_type"] == "image/png"
    assert entries[0]["relative_path"] is None


def test_body_guard_rejects_oversized_bodies():
    app = FastAPI()
    app.add_middleware(BodyGuardMiddleware, max_bytes=64)

    @app.post("/api/echo")
    def echo(payload: dict) -> dict:
        return payload

    client = TestClient(app)

    assert client.post("/api/echo", json={"a": 1}).status_code == 200
    blocked = client.post("/api/echo", json={"data": "x" * 200})
    assert blocked.status_code == 413
    assert blocked.json()["error"] == "request_body_too_large"
