"""Remote message-platform gateway protocol.

Defines the calls the client core makes against the platform backend.
The transport is opaque to the core; implementations only have to map
responses to domain entities and raise the errors from
``telecleaner.exceptions``.
"""

from typing import Protocol, runtime_checkable

from telecleaner.entities import ChatSummary, Message, SessionRecord


@runtime_checkable
class ChatGateway(Protocol):
    """Protocol for the remote message-platform gateway.

    Implementations raise ``SessionExpiredError`` when the platform rejects
    the session and ``GatewayError`` for every other failure.
    """

    def authenticate(self, session: SessionRecord | None) -> None:
        """Bind the session used by subsequent calls (None to unbind)."""
        ...

    async def get_chats_quick(self) -> list[ChatSummary]:
        """List chats without message counts or avatars.

        Returns:
            Chats in display order
        """
        ...

    async def get_chat_message_count(self, chat_id: str, is_private_chat: bool) -> int:
        """Count messages in a chat.

        Args:
            chat_id: The chat identifier
            is_private_chat: True for 1:1 chats, which are never counted

        Returns:
            The message count, or ``PRIVATE_COUNT_SENTINEL`` for private chats
        """
        ...

    async def get_chat_profile_photo(self, chat_id: str, photo_id: str | None = None) -> str | None:
        """Fetch a chat's avatar.

        Args:
            chat_id: The chat identifier
            photo_id: Content identifier of the expected photo, if known

        Returns:
            A ``data:image`` URI, or None if the chat has no photo
        """
        ...

    async def validate_session(self, session: SessionRecord) -> str | None:
        """Silently re-validate a stored session.

        Args:
            session: Session whose token may be missing or stale

        Returns:
            A fresh bearer token, or None if the session is no longer valid
        """
        ...

    async def get_messages(self, chat_id: str, limit: int = 100) -> list[Message]:
        """Fetch the most recent messages of a chat."""
        ...

    async def delete_messages(self, chat_id: str, message_ids: list[int]) -> int:
        """Delete messages from a chat.

        Returns:
            Number of messages deleted
        """
        ...
