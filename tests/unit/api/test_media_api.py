from __future__ import annotations

import io

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import text

from mediavault.api import router
from mediavault.dependencies import build_container, include_routers
from mediavault.exceptions import PersistenceError
from mediavault.search.search_index import INDEX_TABLE
from tests.helpers.app_config import build_test_config
from tests.mocks.tools import StubFrameEngine, StubOcrEngine


def _png_bytes(size: tuple[int, int] = (30, 20), color: tuple[int, int, int] = (0, 128, 0)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def config(tmp_path):
    return build_test_config(tmp_path, max_upload_bytes=64 * 1024)


@pytest.fixture
def container(config):
    return build_container(config, ocr_engine=StubOcrEngine(), frame_engine=StubFrameEngine())


@pytest.fixture
def client(container) -> TestClient:
    # workers stay stopped: records remain in ``processing``
    app = FastAPI()
    include_routers(app, container)
    return TestClient(app)


def test_upload_registers_records_and_queues_jobs(client, container) -> None:
    response = client.post(
        "/api/media",
        files=[
            ("files", ("one.png", _png_bytes(), "image/png")),
            ("files", ("two.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")),
        ],
        data={"tags": "trip"},
    )

    assert response.status_code == 201
    body = response.json()
    assert [item["mime"] for item in body] == ["image/png", "video/mp4"]
    assert {item["processing_status"] for item in body} == {"processing"}
    assert {item["tags"] for item in body} == {"trip"}
    assert container.job_queue.qsize() == 2


def test_upload_rejects_unsupported_type(client, container) -> None:
    response = client.post("/api/media", files={"files": ("doc.pdf", b"%PDF-1.7", "application/pdf")})

    assert response.status_code == 415
    assert response.json()["detail"]["failure_reason"] == "unsupported_media_type"
    assert container.repository.list_recent() == []
    assert container.job_queue.qsize() == 0


def test_upload_rejects_oversize_file(client) -> None:
    response = client.post("/api/media", files={"files": ("big.png", b"x" * (65 * 1024), "image/png")})

    assert response.status_code == 413
    assert response.json()["detail"]["failure_reason"] == "payload_too_large"


def test_search_and_tag_update(client) -> None:
    first = client.post("/api/media", files={"files": ("a.png", _png_bytes(), "image/png")}).json()[0]
    second = client.post("/api/media", files={"files": ("b.png", _png_bytes(color=(200, 0, 0)), "image/png")}).json()[0]

    listing = client.get("/api/media")
    assert [item["id"] for item in listing.json()] == [second["id"], first["id"]]

    updated = client.put(f"/api/media/{first['id']}/tags", data={"tags": "sunset"})
    assert updated.status_code == 200
    assert updated.json()["tags"] == "sunset"
    assert updated.json()["processing_status"] == "processing"

    found = client.get("/api/media", params={"q": "sunset"})
    assert [item["id"] for item in found.json()] == [first["id"]]
    assert client.get("/api/media", params={"q": "nothing"}).json() == []


def test_get_media_by_id(client) -> None:
    created = client.post("/api/media", files={"files": ("a.png", _png_bytes(), "image/png")}).json()[0]

    response = client.get(f"/api/media/{created['id']}")

    assert response.status_code == 200
    assert response.json()["id"] == created["id"]


def test_unknown_media_returns_404(client) -> None:
    assert client.get("/api/media/missing").status_code == 404
    response = client.put("/api/media/missing/tags", data={"tags": "x"})
    assert response.status_code == 404
    assert response.json()["detail"]["failure_reason"] == "not_found"


def test_malformed_query_returns_400(client) -> None:
    response = client.get("/api/media", params={"q": '"unbalanced'})

    assert response.status_code == 400
    assert response.json()["detail"]["failure_reason"] == "invalid_query"


class BrokenService:
    def search(self, query):
        raise PersistenceError("store offline")


def test_store_failure_returns_500() -> None:
    app = FastAPI()
    app.include_router(router)
    app.state.ingest_service = BrokenService()

    response = TestClient(app).get("/api/media")

    assert response.status_code == 500
    assert response.json()["detail"]["failure_reason"] == "internal_error"


def test_index_store_failure_returns_500(client, config) -> None:
    client.post("/api/media", files={"files": ("a.png", _png_bytes(), "image/png")}, data={"tags": "cat"})
    with config.engine.begin() as conn:
        conn.execute(text(f"DROP TABLE {INDEX_TABLE}"))

    response = client.get("/api/media", params={"q": "cat"})

    assert response.status_code == 500
    assert response.json()["detail"]["failure_reason"] == "internal_error"


def test_duplicate_upload_returns_409_and_discards_copy(client, container, config) -> None:
    payload = _png_bytes(color=(1, 2, 3))
    first = client.post("/api/media", files={"files": ("a.png", payload, "image/png")})

    second = client.post("/api/media", files={"files": ("again.png", payload, "image/png")})

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"]["failure_reason"] == "duplicate_media"
    assert [record.id for record in container.repository.list_recent()] == [first.json()[0]["id"]]
    assert len(list(config.media_paths.storage.iterdir())) == 1
    assert container.job_queue.qsize() == 1
