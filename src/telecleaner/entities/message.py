"""Message and deletion domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class TimeRange(str, Enum):
    """Which messages a deletion run targets."""

    LAST_DAY = "last_day"
    LAST_WEEK = "last_week"
    ALL = "all"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Message:
    """A single message of a chat."""

    id: int
    chat_id: str
    text: str | None
    date: datetime
    is_outgoing: bool


@dataclass
class DeletionResult:
    """Aggregate outcome of a bulk deletion.

    Attributes:
        success: True when no chat failed
        deleted_count: Messages deleted across all chats
        failed_count: Chats whose deletion failed
        errors: One message per failed chat
    """

    success: bool = True
    deleted_count: int = 0
    failed_count: int = 0
    errors: list[str] = field(default_factory=list)

    def record_failure(self, chat_id: str, error: Exception) -> None:
        self.success = False
        self.failed_count += 1
        self.errors.append(f"{chat_id}: {error}")
