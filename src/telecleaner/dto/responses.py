"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field

from telecleaner.entities import ChatType


class ChatItem(BaseModel):
    """Single chat row (in chats array)."""

    id: str = Field(..., description="Chat identifier")
    name: str = Field(..., description="Display name")
    type: ChatType = Field(..., description="private, group, supergroup, channel or unknown")
    last_message: str | None = Field(None, description="Preview of the last message")
    timestamp: str | None = Field(None, description="Time of the last message")
    unread_count: int = Field(0, description="Unread messages", ge=0)
    photo_id: str | None = Field(None, description="Avatar content identifier")
    avatar: str | None = Field(None, description="Image payload or placeholder glyph")
    message_count: int | None = Field(
        None,
        description="Message count; -2 means not computed (private chat), null means not loaded yet",
    )
    avatar_loading: bool = Field(False, description="Whether the avatar is still being fetched")


class ChatListResponse(BaseModel):
    """Response DTO for the chat list."""

    chats: list[ChatItem] = Field(default_factory=list, description="Chats in display order")
    loading: bool = Field(..., description="Whether the quick list is still loading")
    refreshing: bool = Field(..., description="Whether a hydration run is in progress")
    fully_hydrated: bool = Field(..., description="Whether every batch has been merged")
    batches_merged: int = Field(..., description="Batches merged in the current run", ge=0)


class RefreshResponse(BaseModel):
    """Response DTO for refresh requests."""

    started: bool = Field(..., description="False when a refresh was already running")
    message: str = Field(..., description="Human-readable status message")


class SelectedChatItem(BaseModel):
    """Minimized projection of a selected chat."""

    id: str
    name: str
    type: ChatType
    photo_id: str | None = None
    avatar: str | None = Field(None, description="Placeholder glyph only; encoded images are stripped")


class SelectionResponse(BaseModel):
    """Response DTO for selection projection."""

    chats: list[SelectedChatItem] = Field(default_factory=list)


class SessionStatusResponse(BaseModel):
    """Response DTO for session status."""

    authenticated: bool = Field(..., description="Whether session and token are both stored")


class DeletionResponse(BaseModel):
    """Response DTO for bulk deletion."""

    success: bool = Field(..., description="True when no chat failed")
    deleted_count: int = Field(..., ge=0)
    failed_count: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)


class CacheStatsResponse(BaseModel):
    """Response DTO for avatar cache statistics."""

    size: int = Field(..., description="Persisted entries", ge=0)
    max_size: int = Field(..., description="Entry bound before eviction", ge=0)
    max_age: int = Field(..., description="Maximum entry age in seconds", ge=0)
    memory_size: int = Field(..., description="Entries in the in-memory mirror", ge=0)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    store_healthy: bool = Field(..., description="Whether the key-value store is reachable")
    gateway_healthy: bool | None = Field(None, description="Whether the platform gateway is reachable")
