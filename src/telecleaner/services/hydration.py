"""Two-phase chat list hydration.

Phase 1 makes a single listing call and resolves avatars from the cache
only, so the list can be shown right away. Phase 2 enriches the list in
fixed-size batches: message counts for every non-private chat and photos
for every cache miss. All fetches of a batch run concurrently, and the
next batch starts only after the previous one is merged into the
published state, which bounds in-flight remote calls to
``batch_size * 2``.

Per-chat failures degrade to defaults (count 0, placeholder avatar).
Only ``AuthRequiredError`` (including ``SessionExpiredError``) aborts
the run.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace

from telecleaner.config import settings
from telecleaner.entities import PRIVATE_COUNT_SENTINEL, ChatEnrichment, ChatListState, ChatSummary
from telecleaner.exceptions import AuthRequiredError
from telecleaner.protocols import ChatGateway
from telecleaner.services.avatar_cache import AvatarCache
from telecleaner.services.fallback_avatar import fallback_avatar
from telecleaner.services.session_store import AuthGate

logger = logging.getLogger(__name__)

Listener = Callable[[ChatListState], Awaitable[None] | None]


class ChatListHydrator:
    """Builds and progressively enriches the chat list.

    Example:
        ```python
        hydrator = ChatListHydrator(gateway=gateway, avatar_cache=cache, auth_gate=gate)
        hydrator.add_listener(render)
        state = await hydrator.load()
        ```
    """

    def __init__(
        self,
        gateway: ChatGateway,
        avatar_cache: AvatarCache,
        auth_gate: AuthGate,
        batch_size: int | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the hydrator.

        Args:
            gateway: Remote platform gateway (required).
            avatar_cache: Avatar cache consulted in Phase 1 and filled in Phase 2 (required).
            auth_gate: Checked before every run (required).
            batch_size: Chats per Phase 2 batch. Defaults to settings.
            timeout: Seconds before a single remote call counts as failed. Defaults to settings.
        """
        self._gateway = gateway
        self._cache = avatar_cache
        self._auth = auth_gate
        self._batch_size = batch_size or settings.hydration_batch_size
        self._timeout = timeout or settings.gateway_timeout
        self._state = ChatListState()
        self._listeners: list[Listener] = []
        self._in_progress = False

    async def refresh(self) -> bool:
        """Run Phase 1 and Phase 2.

        Returns:
            False if a run was already in progress (this call is a no-op), True otherwise

        Raises:
            AuthRequiredError: If the user has to log in again
            GatewayError: If the chat listing itself failed
        """
        if self._in_progress:
            logger.info("Chat list refresh already in progress, ignoring")
            return False

        self._in_progress = True
        try:
            session = await self._auth.require_auth()
            self._gateway.authenticate(session)

            chats = await self.load_quick()
            await self.enrich(chats)
            return True
        finally:
            self._in_progress = False
            self._state.loading = False

    async def load(self) -> ChatListState:
        """Hydrate the list (unless a run is in progress) and return the state."""
        await self.refresh()
        return self._state

    async def load_quick(self) -> list[ChatSummary]:
        """Phase 1: list chats and resolve avatars from the cache only.

        Returns:
            The published chats, with ``avatar_loading`` set on cache misses
        """
        self._state.loading = True
        raw_chats = await asyncio.wait_for(self._gateway.get_chats_quick(), self._timeout)

        cached = await asyncio.gather(
            *(self._cache.get(chat.id, chat.photo_id, force_check=False) for chat in raw_chats)
        )

        chats = [
            replace(
                chat,
                avatar=fallback_avatar(photo or chat.avatar, chat.type, chat.name),
                avatar_loading=photo is None,
            )
            for chat, photo in zip(raw_chats, cached)
        ]
        hits = sum(1 for photo in cached if photo is not None)
        logger.info("Loaded %d chats (%d avatars from cache)", len(chats), hits)

        self._state.replace_all(chats)
        self._state.loading = False
        await self._publish()
        return chats

    async def enrich(self, chats: list[ChatSummary]) -> None:
        """Phase 2: fetch counts and missing avatars batch by batch."""
        for start in range(0, len(chats), self._batch_size):
            batch = chats[start : start + self._batch_size]
            enrichments = await self.hydrate_batch(batch)
            self._state.merge(enrichments)
            self._state.batches_merged += 1
            await self._publish()

        self._state.fully_hydrated = True
        await self._publish()
        logger.info("Chat list fully hydrated (%d batches)", self._state.batches_merged)

    async def hydrate_batch(self, batch: list[ChatSummary]) -> list[ChatEnrichment]:
        """Enrich every chat of ``batch`` concurrently.

        Returns:
            One enrichment per chat, in batch order

        Raises:
            AuthRequiredError: If any chat's fetch reported an expired session
        """
        results = await asyncio.gather(
            *(self._enrich_chat(chat) for chat in batch),
            return_exceptions=True,
        )

        enrichments = []
        for chat, result in zip(batch, results):
            if isinstance(result, AuthRequiredError):
                raise result
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.error("Failed to enrich chat %s: %s", chat.id, result)
                result = ChatEnrichment(
                    chat_id=chat.id,
                    message_count=0,
                    avatar=fallback_avatar(None, chat.type, chat.name) if chat.avatar_loading else None,
                    avatar_loading=False,
                )
            enrichments.append(result)
        return enrichments

    async def apply_message_count_update(self, chat_id: str, count: int) -> bool:
        """Merge a live count update pushed by the platform.

        Returns:
            True if the chat is in the list and was updated
        """
        if self._state.get(chat_id) is None:
            logger.warning("Count update for unknown chat %s", chat_id)
            return False

        self._state.merge([ChatEnrichment(chat_id=chat_id, message_count=count)])
        await self._publish()
        return True

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _enrich_chat(self, chat: ChatSummary) -> ChatEnrichment:
        if not chat.avatar_loading:
            count = await self._fetch_count(chat)
            return ChatEnrichment(chat_id=chat.id, message_count=count)

        count, photo = await asyncio.gather(self._fetch_count(chat), self._fetch_avatar(chat))
        return ChatEnrichment(
            chat_id=chat.id,
            message_count=count,
            avatar=fallback_avatar(photo or chat.avatar, chat.type, chat.name),
            avatar_loading=False,
        )

    async def _fetch_count(self, chat: ChatSummary) -> int:
        if chat.is_private:
            return PRIVATE_COUNT_SENTINEL
        try:
            return await asyncio.wait_for(
                self._gateway.get_chat_message_count(chat.id, False),
                self._timeout,
            )
        except AuthRequiredError:
            raise
        except Exception as e:
            logger.warning("Failed to count messages for chat %s: %r", chat.id, e)
            return 0

    async def _fetch_avatar(self, chat: ChatSummary) -> str | None:
        try:
            photo = await asyncio.wait_for(
                self._gateway.get_chat_profile_photo(chat.id, chat.photo_id),
                self._timeout,
            )
        except AuthRequiredError:
            raise
        except Exception as e:
            logger.warning("Failed to get photo for chat %s: %r", chat.id, e)
            return None

        if photo and chat.photo_id:
            await self._cache.set(chat.id, chat.photo_id, photo)
        return photo

    async def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(self._state)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Chat list listener failed")

    @property
    def state(self) -> ChatListState:
        """Get the current (possibly partially hydrated) chat list."""
        return self._state

    @property
    def is_refreshing(self) -> bool:
        return self._in_progress
