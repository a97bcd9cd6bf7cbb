"""
Tests for the HTTP chat gateway against a mocked transport.
"""

import asyncio
import json

import httpx
import pytest

from telecleaner.entities import PRIVATE_COUNT_SENTINEL, ChatType, SessionRecord
from telecleaner.exceptions import AuthRequiredError, GatewayError, SessionExpiredError
from telecleaner.repositories import HttpChatGateway

BASE_URL = "https://backend.test/functions/v1"
SESSION = SessionRecord(user_id="u1", session_string="sess", token="tok")


class Backend:
    """Records requests and answers from a route table."""

    def __init__(self, routes: dict[str, httpx.Response | Exception]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes.get(request.url.path.rsplit("/", 1)[-1])
        if answer is None:
            return httpx.Response(404, text="no route")
        if isinstance(answer, Exception):
            raise answer
        return answer


def make_gateway(backend: Backend, session: SessionRecord | None = SESSION) -> HttpChatGateway:
    gateway = HttpChatGateway(base_url=BASE_URL, api_key="key", timeout=5, transport=httpx.MockTransport(backend))
    gateway.authenticate(session)
    return gateway


def run(gateway: HttpChatGateway, call):
    async def scenario():
        try:
            return await call(gateway)
        finally:
            await gateway.close()

    return asyncio.run(scenario())


def test_get_chats_quick_maps_rows():
    backend = Backend(
        {
            "telegram-get-chats-quick": httpx.Response(
                200,
                json={
                    "chats": [
                        {
                            "id": -100123,
                            "title": "Team",
                            "type": "supergroup",
                            "lastMessage": {"text": "hi", "date": "2024-05-01T10:00:00Z"},
                            "unreadCount": 3,
                            "photoId": 987654321,
                        },
                        {"id": 42, "title": "", "type": "user"},
                    ]
                },
            )
        }
    )

    chats = run(make_gateway(backend), lambda g: g.get_chats_quick())

    team, private = chats
    assert team.id == "-100123"
    assert team.name == "Team"
    assert team.type is ChatType.SUPERGROUP
    assert team.last_message == "hi"
    assert team.unread_count == 3
    assert team.photo_id == "987654321"
    assert private.type is ChatType.PRIVATE
    assert private.name == "Unknown chat"
    assert private.photo_id is None


def test_requests_carry_credentials_and_user_id():
    backend = Backend({"telegram-get-message-count": httpx.Response(200, json={"count": 17})})

    count = run(make_gateway(backend), lambda g: g.get_chat_message_count("c1", False))

    assert count == 17
    request = backend.requests[0]
    assert str(request.url) == f"{BASE_URL}/telegram-get-message-count"
    assert request.method == "POST"
    assert request.headers["apikey"] == "key"
    assert request.headers["Authorization"] == "Bearer tok"
    assert json.loads(request.content) == {"userId": "u1", "chatId": "c1"}


def test_private_chat_count_makes_no_request():
    backend = Backend({})

    count = run(make_gateway(backend), lambda g: g.get_chat_message_count("c1", True))

    assert count == PRIVATE_COUNT_SENTINEL
    assert backend.requests == []


def test_profile_photo():
    backend = Backend({"telegram-get-profile-photo": httpx.Response(200, json={"photo": "data:image/jpeg;base64,X"})})

    photo = run(make_gateway(backend), lambda g: g.get_chat_profile_photo("c1", "p1"))

    assert photo == "data:image/jpeg;base64,X"
    assert json.loads(backend.requests[0].content)["photoId"] == "p1"


def test_missing_profile_photo_is_none():
    backend = Backend({"telegram-get-profile-photo": httpx.Response(200, json={"photo": None})})

    assert run(make_gateway(backend), lambda g: g.get_chat_profile_photo("c1")) is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"error": "Unauthorized"}),
        httpx.Response(500, json={"error": "SESSION_EXPIRED"}),
    ],
)
def test_expired_session_responses(response):
    backend = Backend({"telegram-get-message-count": response})

    with pytest.raises(SessionExpiredError):
        run(make_gateway(backend), lambda g: g.get_chat_message_count("c1", False))


def test_error_status_raises_gateway_error():
    backend = Backend({"telegram-get-message-count": httpx.Response(503, text="maintenance")})

    with pytest.raises(GatewayError) as excinfo:
        run(make_gateway(backend), lambda g: g.get_chat_message_count("c1", False))
    assert excinfo.value.status_code == 503
    assert excinfo.value.operation == "get-message-count"


def test_transport_error_raises_gateway_error():
    backend = Backend({"telegram-get-chats-quick": httpx.ConnectError("connection refused")})

    with pytest.raises(GatewayError):
        run(make_gateway(backend), lambda g: g.get_chats_quick())


def test_invalid_json_raises_gateway_error():
    backend = Backend({"telegram-get-chats-quick": httpx.Response(200, text="<html>")})

    with pytest.raises(GatewayError):
        run(make_gateway(backend), lambda g: g.get_chats_quick())


def test_unexpected_shape_raises_gateway_error():
    backend = Backend({"telegram-get-chats-quick": httpx.Response(200, json={"items": []})})

    with pytest.raises(GatewayError):
        run(make_gateway(backend), lambda g: g.get_chats_quick())


def test_call_without_session_raises_auth_required():
    backend = Backend({})

    with pytest.raises(AuthRequiredError):
        run(make_gateway(backend, session=None), lambda g: g.get_chats_quick())
    assert backend.requests == []


def test_unconfigured_gateway_raises():
    gateway = HttpChatGateway(base_url="", api_key="", transport=httpx.MockTransport(Backend({})))
    gateway.authenticate(SESSION)

    with pytest.raises(GatewayError):
        run(gateway, lambda g: g.get_chats_quick())


def test_validate_session_uses_given_session():
    backend = Backend({"telegram-validate-session": httpx.Response(200, json={"valid": True, "token": "fresh"})})
    pending = SessionRecord(user_id="u1", session_string="sess", token="")

    token = run(make_gateway(backend, session=None), lambda g: g.validate_session(pending))

    assert token == "fresh"
    assert backend.requests[0].headers["Authorization"] == "Bearer key"
    assert json.loads(backend.requests[0].content) == {"userId": "u1", "sessionString": "sess"}


def test_invalid_session_validates_to_none():
    backend = Backend({"telegram-validate-session": httpx.Response(200, json={"valid": False})})

    assert run(make_gateway(backend), lambda g: g.validate_session(SESSION)) is None


def test_get_messages_parses_dates():
    backend = Backend(
        {
            "telegram-get-messages": httpx.Response(
                200,
                json={
                    "messages": [
                        {"id": 1, "text": "a", "date": "2024-05-01T10:00:00Z", "outgoing": True},
                        {"id": 2, "text": "b", "date": "2024-05-01T11:00:00", "outgoing": False},
                        {"id": 3, "text": None, "date": None},
                    ]
                },
            )
        }
    )

    messages = run(make_gateway(backend), lambda g: g.get_messages("c1", limit=10))

    assert [m.id for m in messages] == [1, 2, 3]
    assert [m.is_outgoing for m in messages] == [True, False, False]
    assert all(m.date.tzinfo is not None for m in messages)
    assert messages[2].date.year == 1970
    assert json.loads(backend.requests[0].content)["limit"] == 10


def test_delete_messages():
    backend = Backend({"telegram-delete-messages": httpx.Response(200, json={"success": True, "deletedCount": 2})})

    deleted = run(make_gateway(backend), lambda g: g.delete_messages("c1", [5, 6]))

    assert deleted == 2
    assert json.loads(backend.requests[0].content)["messageIds"] == [5, 6]


def test_delete_messages_reported_failure():
    backend = Backend({"telegram-delete-messages": httpx.Response(200, json={"success": False, "error": "flood"})})

    with pytest.raises(GatewayError, match="flood"):
        run(make_gateway(backend), lambda g: g.delete_messages("c1", [5]))


def test_is_available():
    assert run(make_gateway(Backend({})), lambda g: g.is_available()) is True
    assert run(make_gateway(Backend({"v1": httpx.ConnectError("down")})), lambda g: g.is_available()) is False
