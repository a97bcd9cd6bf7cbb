"""Avatar cache domain entities."""

from dataclasses import dataclass
from typing import Any


@dataclass
class AvatarCacheEntry:
    """A cached avatar for one conversation.

    Stored as JSON under ``@avatar_cache:<chat_id>``.

    Attributes:
        chat_id: Conversation identifier
        photo_id: Content identifier supplied by the platform; changes whenever the image changes
        photo_data: Encoded image (``data:image/...`` URI), or None when the chat has no photo
        timestamp: When the entry was written (Unix milliseconds)
        last_photo_id_check: When photo_id was last confirmed against the source (Unix milliseconds)
    """

    chat_id: str
    photo_id: str
    photo_data: str | None
    timestamp: int
    last_photo_id_check: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "chatId": self.chat_id,
            "photoId": self.photo_id,
            "photoData": self.photo_data,
            "timestamp": self.timestamp,
            "lastPhotoIdCheck": self.last_photo_id_check,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AvatarCacheEntry":
        """Build an entry from its stored JSON form.

        Raises:
            KeyError: If a required field is missing
            TypeError, ValueError: If a timestamp is not numeric
        """
        timestamp = int(data["timestamp"])
        return cls(
            chat_id=str(data["chatId"]),
            photo_id=str(data["photoId"]),
            photo_data=data.get("photoData"),
            timestamp=timestamp,
            last_photo_id_check=int(data.get("lastPhotoIdCheck") or timestamp),
        )


@dataclass
class CacheMetadata:
    """Index record kept for every cached chat in ``@avatar_cache_metadata``."""

    photo_id: str
    timestamp: int
    last_photo_id_check: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "photoId": self.photo_id,
            "timestamp": self.timestamp,
            "lastPhotoIdCheck": self.last_photo_id_check,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheMetadata":
        return cls(
            photo_id=str(data["photoId"]),
            timestamp=int(data["timestamp"]),
            last_photo_id_check=int(data.get("lastPhotoIdCheck") or 0),
        )
