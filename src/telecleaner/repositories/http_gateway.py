"""HTTP implementation of the ChatGateway protocol.

Talks to the platform backend functions (``<base>/telegram-<operation>``)
over JSON POST requests. Every request carries the project API key, the
bound session's bearer token and the user id.

Key features:
- Lazy ``httpx.AsyncClient`` with a per-request timeout
- 401 / ``SESSION_EXPIRED`` responses raise ``SessionExpiredError``
- Every other failure raises ``GatewayError``
- Private chats are never counted (sentinel ``-2`` without a request)
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from telecleaner.config import settings
from telecleaner.entities import PRIVATE_COUNT_SENTINEL, ChatSummary, ChatType, Message, SessionRecord
from telecleaner.exceptions import AuthRequiredError, GatewayError, SessionExpiredError

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class HttpChatGateway:
    """httpx-based implementation of the ChatGateway protocol.

    This class satisfies the protocol through structural typing - no
    explicit inheritance needed.

    Example:
        ```python
        gateway = HttpChatGateway.create(base_url="https://example.supabase.co/functions/v1")
        gateway.authenticate(session)
        chats = await gateway.get_chats_quick()
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP gateway.

        Args:
            base_url: Backend functions base URL. Defaults to settings.gateway_base_url.
            api_key: Project API key. Defaults to settings.gateway_api_key.
            timeout: Request timeout in seconds. Defaults to settings.gateway_timeout.
            transport: Optional httpx transport (used by tests).
        """
        self._base_url = (base_url if base_url is not None else settings.gateway_base_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.gateway_api_key
        self._timeout = timeout or settings.gateway_timeout
        self._transport = transport
        self._session: SessionRecord | None = None
        self._client: httpx.AsyncClient | None = None

        if not self._base_url:
            logger.warning("GATEWAY_BASE_URL is not set; gateway calls will fail")

    @classmethod
    def create(
        cls,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> "HttpChatGateway":
        """Factory method to create HttpChatGateway with defaults from settings."""
        return cls(base_url=base_url, api_key=api_key, timeout=timeout)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    def authenticate(self, session: SessionRecord | None) -> None:
        self._session = session

    async def get_chats_quick(self) -> list[ChatSummary]:
        data = await self._post("get-chats-quick", {})
        chats = data.get("chats")
        if not isinstance(chats, list):
            raise GatewayError("get-chats-quick", f"Unexpected response format: {data}")
        return [self._to_summary(chat) for chat in chats]

    async def get_chat_message_count(self, chat_id: str, is_private_chat: bool) -> int:
        if is_private_chat:
            return PRIVATE_COUNT_SENTINEL
        data = await self._post("get-message-count", {"chatId": chat_id})
        try:
            return int(data["count"])
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError("get-message-count", f"Unexpected response format: {data}") from e

    async def get_chat_profile_photo(self, chat_id: str, photo_id: str | None = None) -> str | None:
        data = await self._post("get-profile-photo", {"chatId": chat_id, "photoId": photo_id})
        return data.get("photo") or None

    async def validate_session(self, session: SessionRecord) -> str | None:
        data = await self._post(
            "validate-session",
            {"userId": session.user_id, "sessionString": session.session_string},
            session=session,
        )
        if not data.get("valid"):
            return None
        return data.get("token") or None

    async def get_messages(self, chat_id: str, limit: int = 100) -> list[Message]:
        data = await self._post("get-messages", {"chatId": chat_id, "limit": limit})
        messages = data.get("messages")
        if not isinstance(messages, list):
            raise GatewayError("get-messages", f"Unexpected response format: {data}")
        return [
            Message(
                id=int(m["id"]),
                chat_id=chat_id,
                text=m.get("text"),
                date=_parse_date(m.get("date")),
                is_outgoing=bool(m.get("outgoing")),
            )
            for m in messages
        ]

    async def delete_messages(self, chat_id: str, message_ids: list[int]) -> int:
        data = await self._post("delete-messages", {"chatId": chat_id, "messageIds": message_ids})
        if not data.get("success", False):
            raise GatewayError("delete-messages", data.get("error") or "backend reported failure")
        return int(data.get("deletedCount", 0))

    async def is_available(self) -> bool:
        """Check if the backend answers at all.

        Returns:
            True if the base URL responds, False otherwise
        """
        if not self._base_url:
            return False
        try:
            await self.client.get(self._base_url)
            return True
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(
        self,
        operation: str,
        payload: dict[str, Any],
        session: SessionRecord | None = None,
    ) -> dict[str, Any]:
        session = session or self._session
        if session is None:
            raise AuthRequiredError(f"{operation} requires an authenticated session")
        if not self._base_url or not self._api_key:
            raise GatewayError(operation, "GATEWAY_BASE_URL or GATEWAY_API_KEY is not configured")

        url = f"{self._base_url}/telegram-{operation}"
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {session.token or self._api_key}",
        }
        body = {"userId": session.user_id, **payload}

        try:
            response = await self.client.post(url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise GatewayError(operation, str(e) or type(e).__name__) from e

        if response.is_error:
            if response.status_code == 401 or "SESSION_EXPIRED" in response.text:
                raise SessionExpiredError()
            raise GatewayError(operation, response.text, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise GatewayError(operation, f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise GatewayError(operation, f"Unexpected response format: {data}")
        return data

    @staticmethod
    def _to_summary(raw: dict[str, Any]) -> ChatSummary:
        last_message = raw.get("lastMessage") or {}
        photo_id = raw.get("photoId")
        return ChatSummary(
            id=str(raw["id"]),
            name=raw.get("title") or "Unknown chat",
            type=ChatType.parse(raw.get("type")),
            last_message=last_message.get("text") or None,
            timestamp=last_message.get("date") or None,
            unread_count=int(raw.get("unreadCount") or 0),
            photo_id=str(photo_id) if photo_id not in (None, "") else None,
            avatar=raw.get("avatar") or None,
        )


def _parse_date(value: str | None) -> datetime:
    if not value:
        return _EPOCH
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
