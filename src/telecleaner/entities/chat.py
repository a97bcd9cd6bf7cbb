"""Chat list domain entities."""

from dataclasses import dataclass, field, replace
from enum import Enum

# Message count for 1:1 chats: "intentionally not computed", distinct from a real zero
PRIVATE_COUNT_SENTINEL = -2


class ChatType(str, Enum):
    """Conversation kind as reported by the platform."""

    PRIVATE = "private"
    GROUP = "group"
    SUPERGROUP = "supergroup"
    CHANNEL = "channel"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | None) -> "ChatType":
        """Normalize a platform type string ("user" is a private chat)."""
        if not raw:
            return cls.UNKNOWN
        value = raw.lower()
        if value == "user":
            return cls.PRIVATE
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_group(self) -> bool:
        return self in (ChatType.GROUP, ChatType.SUPERGROUP)


@dataclass(frozen=True)
class ChatSummary:
    """A conversation row of the chat list.

    Attributes:
        id: Conversation identifier
        name: Display name
        type: Conversation kind
        last_message: Preview text of the last message
        timestamp: ISO timestamp of the last message
        unread_count: Unread messages reported by the quick listing
        photo_id: Avatar content identifier (None when the chat has no photo)
        avatar: Image payload or placeholder glyph
        message_count: Hydrated message count, None until enriched
        avatar_loading: True while the avatar is being fetched
    """

    id: str
    name: str
    type: ChatType = ChatType.UNKNOWN
    last_message: str | None = None
    timestamp: str | None = None
    unread_count: int = 0
    photo_id: str | None = None
    avatar: str | None = None
    message_count: int | None = None
    avatar_loading: bool = False

    @property
    def is_private(self) -> bool:
        return self.type is ChatType.PRIVATE


@dataclass(frozen=True)
class ChatEnrichment:
    """Partial update for one chat; None fields leave the base value untouched."""

    chat_id: str
    message_count: int | None = None
    avatar: str | None = None
    avatar_loading: bool | None = None


def merge_enrichment(base: ChatSummary, partial: ChatEnrichment) -> ChatSummary:
    """Apply ``partial`` on top of ``base`` and return the new summary.

    Raises:
        ValueError: If the enrichment belongs to another chat
    """
    if partial.chat_id != base.id:
        raise ValueError(f"Enrichment for chat {partial.chat_id} cannot be merged into chat {base.id}")

    changes: dict = {}
    if partial.message_count is not None:
        changes["message_count"] = partial.message_count
    if partial.avatar is not None:
        changes["avatar"] = partial.avatar
    if partial.avatar_loading is not None:
        changes["avatar_loading"] = partial.avatar_loading
    return replace(base, **changes) if changes else base


@dataclass
class ChatListState:
    """UI-visible chat list, keyed by chat id in display order."""

    chats: dict[str, ChatSummary] = field(default_factory=dict)
    loading: bool = False
    batches_merged: int = 0
    fully_hydrated: bool = False

    def replace_all(self, chats: list[ChatSummary]) -> None:
        self.chats = {chat.id: chat for chat in chats}
        self.batches_merged = 0
        self.fully_hydrated = False

    def merge(self, enrichments: list[ChatEnrichment]) -> int:
        """Merge enrichments for known chats.

        Returns:
            Number of chats updated
        """
        merged = 0
        for enrichment in enrichments:
            base = self.chats.get(enrichment.chat_id)
            if base is None:
                continue
            self.chats[enrichment.chat_id] = merge_enrichment(base, enrichment)
            merged += 1
        return merged

    def items(self) -> list[ChatSummary]:
        return list(self.chats.values())

    def get(self, chat_id: str) -> ChatSummary | None:
        return self.chats.get(chat_id)

    def __len__(self) -> int:
        return len(self.chats)


@dataclass(frozen=True)
class SelectedChat:
    """Minimized projection of a selected chat handed to the next stage."""

    id: str
    name: str
    type: ChatType
    photo_id: str | None = None
    avatar: str | None = None
