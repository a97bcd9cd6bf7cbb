"""Chat search and multi-selection."""

from collections.abc import Iterable

from telecleaner.entities import ChatSummary, SelectedChat
from telecleaner.services.fallback_avatar import is_image_payload


def filter_chats(chats: Iterable[ChatSummary], query: str | None) -> list[ChatSummary]:
    """Case-insensitive name search; a blank query keeps every chat."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(chats)
    return [chat for chat in chats if needle in chat.name.lower()]


class ChatSelection:
    """Set of selected chat ids with the list screen's bulk actions."""

    def __init__(self, chat_ids: Iterable[str] = ()) -> None:
        self._selected: set[str] = set(chat_ids)

    def toggle(self, chat_id: str) -> bool:
        """Flip ``chat_id``.

        Returns:
            True if the chat is selected afterwards
        """
        if chat_id in self._selected:
            self._selected.discard(chat_id)
            return False
        self._selected.add(chat_id)
        return True

    def select_all(self, chats: Iterable[ChatSummary]) -> None:
        self._selected = {chat.id for chat in chats}

    def deselect_all(self) -> None:
        self._selected.clear()

    def is_all_selected(self, chats: Iterable[ChatSummary]) -> bool:
        ids = {chat.id for chat in chats}
        return bool(ids) and ids == self._selected

    def project(self, chats: Iterable[ChatSummary]) -> list[SelectedChat]:
        """Minimized view of the selected chats, in list order.

        Encoded images are dropped so only placeholder glyphs travel to the
        next stage.

        Raises:
            ValueError: If nothing is selected
        """
        if not self._selected:
            raise ValueError("Select at least one chat")

        return [
            SelectedChat(
                id=chat.id,
                name=chat.name,
                type=chat.type,
                photo_id=chat.photo_id,
                avatar=None if is_image_payload(chat.avatar) else chat.avatar,
            )
            for chat in chats
            if chat.id in self._selected
        ]

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    @property
    def chat_ids(self) -> frozenset[str]:
        return frozenset(self._selected)
