"""Domain entities for internal representation.

These are plain dataclasses used internally by services and repositories.
They are NOT used for API contracts - use DTOs from the dto package for that.

Entities should have:
- No Pydantic validation
- No external dependencies
- Pure domain logic only
"""

from .cache_entry import AvatarCacheEntry, CacheMetadata
from .chat import (
    PRIVATE_COUNT_SENTINEL,
    ChatEnrichment,
    ChatListState,
    ChatSummary,
    ChatType,
    SelectedChat,
    merge_enrichment,
)
from .message import DeletionResult, Message, TimeRange
from .session import SessionRecord

__all__ = [
    "AvatarCacheEntry",
    "CacheMetadata",
    "ChatEnrichment",
    "ChatListState",
    "ChatSummary",
    "ChatType",
    "DeletionResult",
    "Message",
    "PRIVATE_COUNT_SENTINEL",
    "SelectedChat",
    "SessionRecord",
    "TimeRange",
    "merge_enrichment",
]
