"""HTTP handlers for chat list, session and cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import logging

from fastapi import BackgroundTasks, HTTPException, status

from telecleaner.dto import (
    CacheStatsResponse,
    ChatItem,
    ChatListResponse,
    DeleteMessagesRequest,
    DeletionResponse,
    RefreshResponse,
    SaveSessionRequest,
    SelectedChatItem,
    SelectionRequest,
    SelectionResponse,
    SessionStatusResponse,
)
from telecleaner.entities import ChatSummary
from telecleaner.exceptions import AuthRequiredError, GatewayError
from telecleaner.services import (
    AuthGate,
    AvatarCache,
    ChatListHydrator,
    ChatSelection,
    DeletionService,
    SessionStore,
)

logger = logging.getLogger(__name__)


def _unauthorized(e: AuthRequiredError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Re-authentication required: {e.reason}")


class ChatHandler:
    """HTTP handlers for the client core.

    This handler delegates business logic to the services and handles
    HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Running hydration in the background

    Example:
        ```python
        handler = ChatHandler(hydrator=..., avatar_cache=..., session_store=..., auth_gate=..., deletion=...)

        @app.get("/chats", response_model=ChatListResponse)
        async def list_chats(background_tasks: BackgroundTasks):
            return await handler.list_chats(background_tasks)
        ```
    """

    def __init__(
        self,
        hydrator: ChatListHydrator,
        avatar_cache: AvatarCache,
        session_store: SessionStore,
        auth_gate: AuthGate,
        deletion: DeletionService,
    ) -> None:
        self._hydrator = hydrator
        self._cache = avatar_cache
        self._sessions = session_store
        self._auth = auth_gate
        self._deletion = deletion

    async def warm_up(self) -> None:
        """Load the avatar cache index before the first request."""
        await self._cache.initialize()

    async def list_chats(self, background_tasks: BackgroundTasks) -> ChatListResponse:
        """Handle GET /chats requests.

        Returns the current snapshot and starts a background load when the
        list is still empty.

        Raises:
            HTTPException: 401 if the user has to log in again
        """
        state = self._hydrator.state
        if not len(state) and not self._hydrator.is_refreshing:
            await self._require_auth()
            background_tasks.add_task(self._refresh_in_background)
        return self._to_response()

    async def refresh_chats(self, background_tasks: BackgroundTasks) -> RefreshResponse:
        """Handle POST /chats/refresh requests.

        Raises:
            HTTPException: 401 if the user has to log in again
        """
        if self._hydrator.is_refreshing:
            return RefreshResponse(started=False, message="Refresh already in progress")

        await self._require_auth()
        background_tasks.add_task(self._refresh_in_background)
        return RefreshResponse(started=True, message="Refresh started")

    async def project_selection(self, request: SelectionRequest) -> SelectionResponse:
        """Handle POST /chats/selection requests.

        Raises:
            HTTPException: 400 if none of the ids are in the list
        """
        selection = ChatSelection(request.chat_ids)
        chats = selection.project(self._hydrator.state.items())
        if not chats:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="None of the selected chats are in the chat list",
            )
        return SelectionResponse(
            chats=[
                SelectedChatItem(id=c.id, name=c.name, type=c.type, photo_id=c.photo_id, avatar=c.avatar)
                for c in chats
            ]
        )

    async def delete_messages(self, request: DeleteMessagesRequest) -> DeletionResponse:
        """Handle POST /messages/delete requests.

        Raises:
            HTTPException: 401 if the user has to log in again
        """
        try:
            result = await self._deletion.delete_messages(
                request.chat_ids,
                request.time_range,
                start=request.start_date,
                end=request.end_date,
            )
        except AuthRequiredError as e:
            raise _unauthorized(e) from e

        return DeletionResponse(
            success=result.success,
            deleted_count=result.deleted_count,
            failed_count=result.failed_count,
            errors=result.errors,
        )

    async def save_session(self, request: SaveSessionRequest) -> SessionStatusResponse:
        """Handle POST /session requests.

        Raises:
            HTTPException: 500 if the session could not be persisted
        """
        try:
            await self._sessions.save_session(request.user_id, request.session_string)
            if request.token:
                await self._sessions.save_token(request.token)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to save session: {e}",
            ) from e

        return SessionStatusResponse(authenticated=await self._auth.is_authenticated())

    async def session_status(self) -> SessionStatusResponse:
        """Handle GET /session requests."""
        return SessionStatusResponse(authenticated=await self._auth.is_authenticated())

    async def clear_session(self) -> SessionStatusResponse:
        """Handle DELETE /session requests.

        Raises:
            HTTPException: 500 if the session could not be removed
        """
        try:
            await self._sessions.clear()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear session: {e}",
            ) from e
        return SessionStatusResponse(authenticated=False)

    async def cache_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests."""
        stats = await self._cache.get_stats()
        return CacheStatsResponse(**stats)

    async def clear_cache(self) -> dict:
        """Handle DELETE /cache requests."""
        await self._cache.clear()
        return {"success": True, "message": "Avatar cache cleared"}

    async def delete_cached_avatar(self, chat_id: str) -> dict:
        """Handle DELETE /cache/{chat_id} requests."""
        await self._cache.delete(chat_id)
        return {"success": True, "message": f"Cached avatar for chat {chat_id} removed"}

    async def _require_auth(self) -> None:
        try:
            await self._auth.require_auth()
        except AuthRequiredError as e:
            raise _unauthorized(e) from e

    async def _refresh_in_background(self) -> None:
        try:
            await self._hydrator.refresh()
        except AuthRequiredError as e:
            logger.warning("Chat list refresh needs re-authentication: %s", e.reason)
        except GatewayError as e:
            logger.error("Failed to refresh chats: %s", e)

    def _to_response(self) -> ChatListResponse:
        state = self._hydrator.state
        return ChatListResponse(
            chats=[self._to_item(chat) for chat in state.items()],
            loading=state.loading,
            refreshing=self._hydrator.is_refreshing,
            fully_hydrated=state.fully_hydrated,
            batches_merged=state.batches_merged,
        )

    @staticmethod
    def _to_item(chat: ChatSummary) -> ChatItem:
        return ChatItem(
            id=chat.id,
            name=chat.name,
            type=chat.type,
            last_message=chat.last_message,
            timestamp=chat.timestamp,
            unread_count=max(chat.unread_count, 0),
            photo_id=chat.photo_id,
            avatar=chat.avatar,
            message_count=chat.message_count,
            avatar_loading=chat.avatar_loading,
        )
