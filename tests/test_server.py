from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from twitch_overlay.config import OverlayOptions
from twitch_overlay.overlay.server import OVERLAY_HTML, create_app


@pytest.fixture
def server():
    return create_app(OverlayOptions(clear_registry_on_empty=False))


@pytest.fixture
def client(server):
    with TestClient(server.app) as client:
        yield client


def test_overlay_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == OVERLAY_HTML


def test_custom_directory_serves_page():
    server = create_app(OverlayOptions(directory="overlay"))
    with TestClient(server.app) as client:
        assert client.get("/overlay").status_code == 200


def test_add_show_hide_over_http(client, server):
    response = client.post("/api/overlays", json=[
        {"name": "sub", "type": "text", "layout": "left"},
        {"name": "bad", "type": "hologram"},
    ])
    assert response.json() == {"added": 1, "skipped": 1}

    response = client.post("/api/overlays/sub/show", json={"text": "X subscribed!"})
    assert response.json() == {"ok": True, "shown": 1}

    state = client.get("/api/state").json()
    (overlay,) = state["overlays"]["left"]
    assert overlay["name"] == "sub"
    assert overlay["payload"] == {"text": "X subscribed!"}

    assert client.post("/api/overlays/sub/hide").json() == {"ok": True}
    assert client.get("/api/state").json()["overlays"]["left"] == []


def test_add_single_definition_keeps_type_config(client):
    client.post("/api/overlays", json={"name": "hpcwins", "type": "video", "file": "v.mp4", "volume": 0.3})
    (definition,) = client.get("/api/overlays").json()["overlays"]
    assert definition["config"] == {"file": "v.mp4", "volume": 0.3}
    assert definition["layout"] == "center"


def test_show_without_body_uses_definition_payload(client):
    client.post("/api/overlays", json={"name": "t", "type": "text", "payload": {"text": "default"}})
    client.post("/api/overlays/t/show")
    (overlay,) = client.get("/api/state").json()["overlays"]["center"]
    assert overlay["payload"] == {"text": "default"}


def test_unknown_overlay_is_404(client):
    assert client.post("/api/overlays/ghost/show").status_code == 404
    assert client.post("/api/overlays/ghost/hide").status_code == 404


def test_invalid_body_is_422(client):
    assert client.post("/api/overlays", json={"type": "text"}).status_code == 422


def test_clear(client, server):
    client.post("/api/overlays", json={"name": "t", "type": "text"})
    client.post("/api/overlays/t/show")
    assert client.post("/api/clear").json() == {"ok": True}
    assert server.controller.get_state() == ()


def test_static_directory_is_mounted(client, tmp_path):
    (tmp_path / "logo.txt").write_text("logo", encoding="utf-8")
    client.post("/api/overlays", json={"name": "alert", "type": "html", "static": str(tmp_path)})

    response = client.get("/alert/logo.txt")
    assert response.status_code == 200
    assert response.text == "logo"


def test_static_directory_is_mounted_once_on_re_registration(client, server, tmp_path):
    (tmp_path / "logo.txt").write_text("logo", encoding="utf-8")
    definition = {"name": "alert", "type": "html", "static": str(tmp_path)}
    client.post("/api/overlays", json=definition)
    server.controller.clear()
    client.post("/api/overlays", json=definition)
    client.post("/api/overlays", json=definition)

    mounts = [r for r in server.app.routes if getattr(r, "path", None) == "/alert"]
    assert len(mounts) == 1
    assert client.get("/alert/logo.txt").text == "logo"


def test_missing_static_directory_still_registers(client, tmp_path):
    response = client.post("/api/overlays", json={
        "name": "sound", "type": "audio", "directory": str(tmp_path / "missing"),
    })
    assert response.json()["added"] == 1
    assert client.get("/sound/x.mp3").status_code == 404


def test_socket_handlers_drive_connection_lifecycle(server):
    handlers = server.sio.handlers["/"]
    controller = server.controller

    async def run():
        await handlers["connect"]("sid-1", {})
        await handlers["overlays:add"]("sid-1", [{"name": "mine", "type": "text"}])
        await handlers["*"]("overlay:mine:show", "sid-1", {"text": "hi"})
        await handlers["*"]("overlay:mine:end", "sid-1", None)
        (overlay,) = controller.get_state()
        await handlers["endOverlay"]("sid-1", overlay.id, "mine", None)
        assert controller.get_state() == ()

        owned = controller.connections.owned("sid-1")
        assert len(owned) == 2
        await handlers["disconnect"]("sid-1", "client disconnect")
        assert not any(controller.broker.is_subscribed(s) for s in owned)

    asyncio.run(run())
    assert "sid-1" not in controller.connections
