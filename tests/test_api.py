import asyncio
import json

import aiofiles.os
import pytest
from fastapi.testclient import TestClient

from inventory_service.core.config import Settings
from inventory_service.main import create_app


def register(client, name="Drill", description="", photo=None, filename="drill.jpg"):
    files = {"photo": (filename, photo, "image/jpeg")} if photo is not None else None
    return client.post("/register", data={"name": name, "description": description}, files=files)


def test_drill_lifecycle(client, settings, photo_files):
    resp = register(client, "Drill", "", photo=b"\xff\xd8drill")
    assert resp.status_code == 201
    item = resp.json()
    assert item["name"] == "Drill"
    assert item["description"] == ""
    assert item["photoUrl"] == f"/inventory/{item['id']}/photo"
    [stored] = photo_files()

    photo = client.get(item["photoUrl"])
    assert photo.status_code == 200
    assert photo.content == b"\xff\xd8drill"
    assert photo.headers["content-type"] == "image/jpeg"

    resp = client.delete(f"/inventory/{item['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Deleted", "id": item["id"]}

    assert client.get(item["photoUrl"]).status_code == 404
    assert stored not in photo_files()
    assert photo_files() == []


def test_register_rejects_blank_name(client):
    resp = register(client, name="   ")
    assert resp.status_code == 400
    assert resp.json() == {"detail": "name is required"}
    assert client.post("/register", data={"description": "no name"}).status_code == 400


def test_register_accepts_legacy_field_name(client):
    resp = client.post("/register", data={"inventory_name": "Level", "description": "spirit"})
    assert resp.status_code == 201
    assert resp.json()["name"] == "Level"
    assert resp.json()["photoUrl"] is None


def test_list_and_get(client):
    a = register(client, "Drill", "cordless").json()
    b = register(client, "Saw", "", photo=b"saw").json()

    resp = client.get("/inventory")
    assert resp.status_code == 200
    assert resp.json() == [a, b]
    assert set(resp.json()[0]) == {"id", "name", "description", "photoUrl"}

    assert client.get(f"/inventory/{b['id']}").json() == b
    assert client.get("/inventory/unknown").status_code == 404


def test_update_clears_description_keeps_name(client):
    item = register(client, "Hammer", "claw").json()

    resp = client.put(f"/inventory/{item['id']}", json={"description": ""})

    assert resp.status_code == 200
    assert resp.json()["name"] == "Hammer"
    assert resp.json()["description"] == ""
    assert client.get(f"/inventory/{item['id']}").json()["description"] == ""


def test_update_blank_name_is_ignored(client):
    item = register(client, "Hammer", "claw").json()

    resp = client.put(f"/inventory/{item['id']}", json={"name": "  "})

    assert resp.status_code == 200
    assert resp.json()["name"] == "Hammer"
    assert resp.json()["description"] == "claw"

    resp = client.put(f"/inventory/{item['id']}", json={"inventory_name": "Mallet"})
    assert resp.json()["name"] == "Mallet"


def test_update_and_delete_unknown_id(client):
    assert client.put("/inventory/never-issued", json={"name": "x"}).status_code == 404
    assert client.delete("/inventory/never-issued").status_code == 404


def test_replace_photo(client, photo_files):
    item = register(client, "Drill", photo=b"old").json()
    [old] = photo_files()

    resp = client.put(
        f"/inventory/{item['id']}/photo",
        files={"photo": ("new.png", b"new", "image/png")},
    )

    assert resp.status_code == 200
    assert resp.json()["photoUrl"] == f"/inventory/{item['id']}/photo"
    [new] = photo_files()
    assert new != old
    assert new.endswith(".png")

    photo = client.get(f"/inventory/{item['id']}/photo")
    assert photo.content == b"new"
    assert photo.headers["content-type"] == "image/png"


def test_replace_photo_errors(client, photo_files):
    resp = client.put("/inventory/missing/photo", files={"photo": ("a.jpg", b"a", "image/jpeg")})
    assert resp.status_code == 404
    assert photo_files() == []

    item = register(client, "Tape").json()
    assert client.put(f"/inventory/{item['id']}/photo").status_code == 400


def test_photo_of_item_without_photo_is_404(client):
    item = register(client, "Tape").json()
    resp = client.get(f"/inventory/{item['id']}/photo")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Photo not found"}


def test_missing_photo_file_reported_distinctly(client, settings, photo_files):
    item = register(client, "Drill", photo=b"drill").json()
    [stored] = photo_files()
    (settings.photo_path / stored).unlink()

    resp = client.get(f"/inventory/{item['id']}/photo")

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Photo file not found"}


def test_search(client):
    item = register(client, "Drill", "cordless", photo=b"x").json()

    resp = client.post("/search", json={"id": item["id"], "has_photo": True})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "<p><strong>Name:</strong> Drill</p>" in resp.text
    assert f'<a href="/inventory/{item["id"]}/photo">Photo link</a>' in resp.text

    resp = client.post("/search", json={"id": item["id"], "has_photo": "false"})
    assert "Photo link" not in resp.text

    assert client.post("/search", json={"id": 123}).status_code == 404
    assert client.post("/search", json={}).status_code == 400


@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/register"),
        ("DELETE", "/inventory"),
        ("POST", "/inventory/abc"),
        ("DELETE", "/inventory/abc/photo"),
        ("GET", "/search"),
    ],
)
def test_method_not_allowed(client, method, path):
    assert client.request(method, path).status_code == 405


def test_unknown_path_is_404(client):
    assert client.get("/nothing/here").status_code == 404


def test_corrupt_document_returns_500(client, settings):
    register(client, "Drill")
    settings.inventory_path.write_text("[{", encoding="utf-8")

    assert client.get("/inventory").status_code == 500
    assert register(client, "Saw").status_code == 500
    assert settings.inventory_path.read_text(encoding="utf-8") == "[{"

    health = client.get("/health").json()
    assert health["status"].startswith("degraded")


def test_persisted_layout(client, settings):
    item = register(client, "Drill", photo=b"x").json()
    records = json.loads(settings.inventory_path.read_text(encoding="utf-8"))
    assert records[0]["id"] == item["id"]
    assert (settings.photo_path / records[0]["photo_filename"]).is_file()


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["items"] == 0


def test_request_id_is_echoed(client):
    from inventory_service.core.logging_config import set_request_logs_enabled

    set_request_logs_enabled(True)
    try:
        resp = client.get("/inventory", headers={"x-request-id": "abc123"})
    finally:
        set_request_logs_enabled(False)
    assert resp.headers["x-request-id"] == "abc123"


def test_legacy_document_photos_are_served(client, settings):
    legacy = [{"id": "1", "inventory_name": "Old", "description": "", "photoFilename": "1-2.jpg", "photoUrl": "/inventory/1/photo"}]
    settings.inventory_path.write_text(json.dumps(legacy), encoding="utf-8")
    (settings.cache_path / "1-2.jpg").write_bytes(b"legacy bytes")

    assert client.get("/inventory/1").json()["photoUrl"] == "/inventory/1/photo"
    photo = client.get("/inventory/1/photo")
    assert photo.status_code == 200
    assert photo.content == b"legacy bytes"

    resp = client.put("/inventory/1/photo", files={"photo": ("new.jpg", b"new", "image/jpeg")})
    assert resp.status_code == 200
    assert not (settings.cache_path / "1-2.jpg").exists()
    assert client.get("/inventory/1/photo").content == b"new"


def test_busy_catalog_returns_503(tmp_path):
    settings = Settings(CACHE_DIR=str(tmp_path / "cache"), LOCK_TIMEOUT_SECONDS=0.05, REQUEST_LOGS_ENABLED=False)
    app = create_app(settings)
    with TestClient(app) as client:
        lock = app.state.catalog._inventory._lock
        asyncio.run(lock.acquire())
        try:
            resp = client.get("/inventory")
        finally:
            lock.release()

        assert resp.status_code == 503
        assert resp.headers["retry-after"] == "1"
        assert resp.json() == {"detail": "Inventory is busy, retry later"}
        assert client.get("/inventory").status_code == 200


def test_failed_save_returns_500(client, settings, photo_files, monkeypatch):
    before = register(client, "Drill").json()

    async def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(aiofiles.os, "replace", broken_replace)
    resp = register(client, "Saw", photo=b"saw")
    monkeypatch.undo()

    assert resp.status_code == 500
    assert resp.json()["detail"].startswith("Failed to write inventory document")
    assert photo_files() == []
    assert client.get("/inventory").json() == [before]


def test_request_id_without_request_logs(client):
    resp = client.get("/inventory", headers={"x-request-id": "rid-1"})
    assert resp.headers["x-request-id"] == "rid-1"
    assert client.get("/inventory").headers["x-request-id"]


def test_empty_filename_upload_is_no_photo(client, photo_files):
    resp = client.post(
        "/register",
        data={"name": "Tape", "description": ""},
        files={"photo": ("", b"", "application/octet-stream")},
    )
    assert resp.status_code == 201
    assert resp.json()["photoUrl"] is None
    assert photo_files() == []
