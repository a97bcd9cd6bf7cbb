"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import DeleteMessagesRequest, SaveSessionRequest, SelectionRequest
from .responses import (
    CacheStatsResponse,
    ChatItem,
    ChatListResponse,
    DeletionResponse,
    HealthCheckResponse,
    RefreshResponse,
    SelectedChatItem,
    SelectionResponse,
    SessionStatusResponse,
)

__all__ = [
    "SaveSessionRequest",
    "SelectionRequest",
    "DeleteMessagesRequest",
    "ChatItem",
    "ChatListResponse",
    "RefreshResponse",
    "SelectedChatItem",
    "SelectionResponse",
    "SessionStatusResponse",
    "DeletionResponse",
    "CacheStatsResponse",
    "HealthCheckResponse",
]
