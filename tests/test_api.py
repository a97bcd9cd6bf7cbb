"""
Tests for the TeleCleaner API.
"""

import pytest
from conftest import login, make_chat, make_message, utc
from fastapi.testclient import TestClient

from telecleaner.api.app import app
from telecleaner.api.dependencies import build_handler
from telecleaner.entities import ChatType
from telecleaner.services import AvatarCache

IMAGE = "data:image/jpeg;base64,AAA"


@pytest.fixture
def client(store, gateway):
    """Create a test client wired to an in-memory store and a fake gateway."""
    app.state.store = store
    app.state.gateway = gateway
    app.state.chat_handler = build_handler(store, gateway)
    yield TestClient(app)
    del app.state.chat_handler
    del app.state.gateway
    del app.state.store


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "TeleCleaner API"


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "store_healthy": True, "gateway_healthy": True}


def test_session_lifecycle(client, store):
    assert client.get("/session").json() == {"authenticated": False}

    response = client.post("/session", json={"user_id": "u1", "session_string": "sess", "token": "tok"})
    assert response.status_code == 200
    assert response.json() == {"authenticated": True}

    assert client.delete("/session").json() == {"authenticated": False}
    assert store.data == {}


def test_save_session_validation(client):
    response = client.post("/session", json={"user_id": "", "session_string": "sess"})
    assert response.status_code == 422


def test_chats_require_login(client, gateway):
    response = client.get("/chats")
    assert response.status_code == 401
    assert gateway.list_calls == 0


def test_first_chat_list_request_starts_hydration(client, store, gateway):
    login(store)
    gateway.chats = [make_chat(1), make_chat(2, chat_type=ChatType.PRIVATE)]
    gateway.counts = {"c1": 8}
    gateway.photos = {"c1": IMAGE}

    first = client.get("/chats")
    assert first.status_code == 200
    assert first.json()["chats"] == []

    second = client.get("/chats").json()
    assert second["fully_hydrated"] is True
    assert second["batches_merged"] == 1
    assert second["refreshing"] is False
    group, private = second["chats"]
    assert (group["id"], group["message_count"], group["avatar"]) == ("c1", 8, IMAGE)
    assert (private["id"], private["message_count"], private["avatar"]) == ("c2", -2, "C")
    assert gateway.list_calls == 1


def test_refresh(client, store, gateway):
    login(store)
    gateway.chats = [make_chat(1)]

    response = client.post("/chats/refresh")
    assert response.status_code == 202
    assert response.json()["started"] is True
    assert gateway.list_calls == 1

    client.post("/chats/refresh")
    assert gateway.list_calls == 2


def test_refresh_requires_login(client, gateway):
    response = client.post("/chats/refresh")
    assert response.status_code == 401
    assert gateway.list_calls == 0


def test_selection_strips_images(client, store, gateway):
    login(store)
    gateway.chats = [make_chat(1), make_chat(2, chat_type=ChatType.CHANNEL, photo_id=None)]
    gateway.photos = {"c1": IMAGE}
    client.post("/chats/refresh")

    response = client.post("/chats/selection", json={"chat_ids": ["c1", "c2"]})

    assert response.status_code == 200
    chats = response.json()["chats"]
    assert [c["id"] for c in chats] == ["c1", "c2"]
    assert chats[0]["avatar"] is None
    assert chats[0]["photo_id"] == "p1"
    assert chats[1]["avatar"] == "📢"


def test_selection_errors(client):
    assert client.post("/chats/selection", json={"chat_ids": []}).status_code == 422
    assert client.post("/chats/selection", json={"chat_ids": ["nope"]}).status_code == 400


def test_delete_messages(client, store, gateway):
    login(store)
    gateway.messages = {
        "c1": [
            make_message(1, "c1", utc(2024, 5, 1, 9)),
            make_message(2, "c1", utc(2024, 5, 3, 9)),
            make_message(3, "c1", utc(2024, 5, 1, 9), outgoing=False),
        ]
    }

    response = client.post(
        "/messages/delete",
        json={
            "chat_ids": ["c1"],
            "time_range": "custom",
            "start_date": "2024-05-01T00:00:00Z",
            "end_date": "2024-05-02T00:00:00Z",
        },
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "deleted_count": 1, "failed_count": 0, "errors": []}
    assert gateway.deleted == {"c1": [1]}


def test_delete_messages_custom_range_needs_dates(client):
    response = client.post("/messages/delete", json={"chat_ids": ["c1"], "time_range": "custom"})
    assert response.status_code == 422


def test_delete_messages_requires_login(client):
    response = client.post("/messages/delete", json={"chat_ids": ["c1"]})
    assert response.status_code == 401


def test_cache_endpoints(client, store, gateway):
    stats = client.get("/cache/stats").json()
    assert stats["size"] == 0

    login(store)
    gateway.chats = [make_chat(1), make_chat(2)]
    gateway.photos = {"c1": IMAGE, "c2": IMAGE}
    client.post("/chats/refresh")
    assert client.get("/cache/stats").json()["size"] == 2

    assert client.delete("/cache/c1").json()["success"] is True
    assert client.get("/cache/stats").json()["size"] == 1

    assert client.delete("/cache").json()["success"] is True
    assert client.get("/cache/stats").json()["size"] == 0
    assert store.keys_with_prefix(AvatarCache.CACHE_PREFIX) == []
