"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from telecleaner.services import AvatarCache, ChatListHydrator

    cache = AvatarCache(store=RedisKeyValueStore.create())
    hydrator = ChatListHydrator(gateway=gateway, avatar_cache=cache, auth_gate=gate)
    ```
"""

from .avatar_cache import AvatarCache
from .deletion import DeletionService, filter_messages_by_time
from .fallback_avatar import fallback_avatar, is_image_payload
from .hydration import ChatListHydrator
from .selection import ChatSelection, filter_chats
from .session_store import AuthGate, SessionStore

__all__ = [
    "AuthGate",
    "AvatarCache",
    "ChatListHydrator",
    "ChatSelection",
    "DeletionService",
    "SessionStore",
    "fallback_avatar",
    "filter_chats",
    "filter_messages_by_time",
    "is_image_payload",
]
