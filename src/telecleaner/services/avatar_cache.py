"""Avatar cache with content-identity invalidation.

Two tiers:
- an in-memory LRU mirror (at most ``memory_size`` entries), always a subset
  of what is persisted
- the persistent key-value store: one JSON document per chat under
  ``@avatar_cache:<chat_id>`` plus a metadata index under
  ``@avatar_cache_metadata``

An entry is served only while it is younger than ``max_age`` and its
``photo_id`` equals the content identifier the caller got from the chat
listing. Storage failures degrade to a miss or a dropped write; they are
never raised to callers.
"""

import asyncio
import json
import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from telecleaner.config import settings
from telecleaner.entities import AvatarCacheEntry, CacheMetadata
from telecleaner.protocols import KeyValueStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class AvatarCache:
    """Persistent avatar cache keyed by chat id and validated by photo id.

    Example:
        ```python
        cache = AvatarCache(store=RedisKeyValueStore.create())
        await cache.initialize()

        photo = await cache.get(chat.id, chat.photo_id)
        if photo is None:
            photo = await gateway.get_chat_profile_photo(chat.id, chat.photo_id)
            await cache.set(chat.id, chat.photo_id, photo)
        ```
    """

    CACHE_PREFIX = "@avatar_cache:"
    METADATA_KEY = "@avatar_cache_metadata"

    def __init__(
        self,
        store: KeyValueStore,
        max_size: int | None = None,
        max_age: int | None = None,
        memory_size: int | None = None,
        eviction_fraction: float | None = None,
        check_interval: int | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize the avatar cache.

        Args:
            store: Persistent key-value store (required).
            max_size: Maximum persisted entries. Defaults to settings.
            max_age: Maximum entry age in seconds. Defaults to settings.
            memory_size: In-memory mirror capacity. Defaults to settings.
            eviction_fraction: Share of ``max_size`` removed per eviction. Defaults to settings.
            check_interval: Seconds between photo id confirmations. Defaults to settings.
            clock: Returns the current time in Unix milliseconds. Defaults to wall clock.
        """
        self._store = store
        self._max_size = max_size or settings.avatar_cache_max_size
        self._max_age_ms = (max_age or settings.avatar_cache_max_age) * 1000
        self._memory_size = memory_size or settings.avatar_cache_memory_size
        self._eviction_fraction = eviction_fraction or settings.avatar_cache_eviction_fraction
        self._check_interval_ms = (check_interval or settings.avatar_cache_check_interval) * 1000
        self._clock = clock or _now_ms

        self._memory: OrderedDict[str, AvatarCacheEntry] = OrderedDict()
        self._metadata: dict[str, CacheMetadata] = {}
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Load the metadata index. Idempotent and safe to call concurrently.

        A missing or unreadable index leaves the cache empty.
        """
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return
            try:
                raw = await self._store.get(self.METADATA_KEY)
                if raw:
                    self._metadata = {
                        chat_id: CacheMetadata.from_dict(meta) for chat_id, meta in json.loads(raw).items()
                    }
                    logger.info("Loaded metadata for %d avatars", len(self._metadata))
            except Exception as e:
                logger.error("Failed to initialize avatar cache, starting empty: %s", e)
                self._metadata = {}
            self._initialized = True

    async def get(
        self,
        chat_id: str,
        current_photo_id: str | None,
        force_check: bool = False,
    ) -> str | None:
        """Return the cached avatar for ``chat_id`` if it is still valid.

        Lookup order:
        1. In-memory mirror
        2. Metadata index (miss without I/O when absent)
        3. Persistent entry, which is then promoted into the mirror

        Entries older than ``max_age`` are deleted. A photo id mismatch is
        never served; it deletes the entry (the avatar changed server-side)
        only when a validity check is due, i.e. ``force_check`` is set or
        ``check_interval`` has passed since the last confirmation. A due
        check on a matching id re-stamps the confirmation time.

        Args:
            chat_id: Chat identifier
            current_photo_id: Photo id from the chat listing; empty means no lookup
            force_check: Treat the validity check as due regardless of the interval

        Returns:
            The cached photo data, or None on a miss
        """
        if not current_photo_id:
            logger.debug("No photoId provided for chat %s", chat_id)
            return None
        current_photo_id = str(current_photo_id)

        await self.initialize()
        now = self._clock()

        entry = self._memory.get(chat_id)
        if entry is not None:
            if now - entry.timestamp > self._max_age_ms:
                logger.debug("Expired in memory for chat %s", chat_id)
                await self.delete(chat_id)
                return None
            checked = self._needs_check(entry.last_photo_id_check, now, force_check)
            if entry.photo_id != current_photo_id:
                await self._mismatch(chat_id, entry.photo_id, current_photo_id, checked)
                return None
            if checked:
                entry.last_photo_id_check = now
                await self._confirm_photo_id(chat_id, now)
            self._memory.move_to_end(chat_id)
            logger.debug("Memory hit for chat %s", chat_id)
            return entry.photo_data

        meta = self._metadata.get(chat_id)
        if meta is None:
            logger.debug("Miss: no metadata for chat %s", chat_id)
            return None

        age = now - meta.timestamp
        if age > self._max_age_ms:
            logger.debug("Expired for chat %s (age: %d days)", chat_id, age // 86_400_000)
            await self.delete(chat_id)
            return None

        checked = self._needs_check(meta.last_photo_id_check, now, force_check)
        if meta.photo_id != current_photo_id:
            await self._mismatch(chat_id, meta.photo_id, current_photo_id, checked)
            return None
        if checked:
            await self._confirm_photo_id(chat_id, now)

        key = self.CACHE_PREFIX + chat_id
        try:
            raw = await self._store.get(key)
        except Exception as e:
            logger.error("Failed to read avatar for chat %s from storage: %s", chat_id, e)
            return None

        if raw is None:
            logger.debug("Miss: no data for chat %s", chat_id)
            self._metadata.pop(chat_id, None)
            await self._save_metadata()
            return None

        try:
            entry = AvatarCacheEntry.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Malformed cache entry for chat %s, dropping it: %s", chat_id, e)
            await self.delete(chat_id)
            return None

        entry.last_photo_id_check = meta.last_photo_id_check
        self._remember(entry)
        logger.debug("Storage hit for chat %s", chat_id)
        return entry.photo_data

    async def set(self, chat_id: str, photo_id: str, photo_data: str | None) -> None:
        """Upsert the avatar for ``chat_id`` and evict if the cache grew too large.

        Args:
            chat_id: Chat identifier
            photo_id: Current photo id from the platform
            photo_data: Encoded photo, or None when the chat has no photo
        """
        await self.initialize()

        now = self._clock()
        entry = AvatarCacheEntry(
            chat_id=chat_id,
            photo_id=str(photo_id),
            photo_data=photo_data,
            timestamp=now,
            last_photo_id_check=now,
        )

        meta = CacheMetadata(
            photo_id=entry.photo_id,
            timestamp=entry.timestamp,
            last_photo_id_check=entry.last_photo_id_check,
        )
        previous_meta = self._metadata.get(chat_id)
        previous_entry = self._memory.get(chat_id)

        # Visible to get() while the write is pending
        self._metadata[chat_id] = meta
        self._remember(entry)

        try:
            await self._store.set(self.CACHE_PREFIX + chat_id, json.dumps(entry.to_dict()))
        except Exception as e:
            logger.error("Failed to cache avatar for chat %s: %s", chat_id, e)
            self._rollback(chat_id, meta, entry, previous_meta, previous_entry)
            return

        await self._save_metadata()

        if len(self._metadata) > self._max_size:
            await self._evict_oldest()

        logger.debug("Cached avatar for chat %s (photoId: %s)", chat_id, photo_id)

    async def delete(self, chat_id: str) -> None:
        """Remove ``chat_id`` from storage, the index and the mirror.

        The index keeps the chat if the storage removal fails, so the
        document can still be found by eviction and ``clear``.
        """
        await self.initialize()

        self._memory.pop(chat_id, None)
        try:
            await self._store.remove(self.CACHE_PREFIX + chat_id)
        except Exception as e:
            logger.error("Failed to delete avatar for chat %s: %s", chat_id, e)
            return

        self._metadata.pop(chat_id, None)
        await self._save_metadata()
        logger.debug("Deleted cache for chat %s", chat_id)

    async def clear(self) -> None:
        """Remove every cached avatar and the metadata index."""
        await self.initialize()

        keys = [self.CACHE_PREFIX + chat_id for chat_id in self._metadata]
        self._memory.clear()
        try:
            await self._store.multi_remove(keys)
            await self._store.remove(self.METADATA_KEY)
        except Exception as e:
            logger.error("Failed to clear avatar cache: %s", e)
            return
        self._metadata = {}
        logger.info("Cleared all cache (%d entries)", len(keys))

    async def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with size, max_size, max_age (seconds) and memory_size
        """
        await self.initialize()
        return {
            "size": len(self._metadata),
            "max_size": self._max_size,
            "max_age": self._max_age_ms // 1000,
            "memory_size": len(self._memory),
        }

    def _needs_check(self, last_check: int, now: int, force_check: bool) -> bool:
        return force_check or now - last_check >= self._check_interval_ms

    async def _mismatch(self, chat_id: str, stored: str, current: str, checked: bool) -> None:
        # Without a due check the caller's photo id may be the stale one
        if not checked:
            logger.debug("PhotoId mismatch for chat %s (%s != %s), not serving", chat_id, stored, current)
            return
        logger.debug("Photo changed for chat %s: %s -> %s", chat_id, stored, current)
        await self.delete(chat_id)

    def _remember(self, entry: AvatarCacheEntry) -> None:
        self._memory[entry.chat_id] = entry
        self._memory.move_to_end(entry.chat_id)
        while len(self._memory) > self._memory_size:
            self._memory.popitem(last=False)

    def _rollback(
        self,
        chat_id: str,
        meta: CacheMetadata,
        entry: AvatarCacheEntry,
        previous_meta: CacheMetadata | None,
        previous_entry: AvatarCacheEntry | None,
    ) -> None:
        # A newer set() for the same chat owns the slot now
        if self._metadata.get(chat_id) is meta:
            if previous_meta is None:
                self._metadata.pop(chat_id, None)
            else:
                self._metadata[chat_id] = previous_meta
        if self._memory.get(chat_id) is entry:
            if previous_entry is None:
                self._memory.pop(chat_id, None)
            else:
                self._memory[chat_id] = previous_entry

    async def _confirm_photo_id(self, chat_id: str, now: int) -> None:
        meta = self._metadata.get(chat_id)
        if meta is None:
            return
        meta.last_photo_id_check = now
        await self._save_metadata()

    async def _save_metadata(self) -> None:
        payload = {chat_id: meta.to_dict() for chat_id, meta in self._metadata.items()}
        try:
            await self._store.set(self.METADATA_KEY, json.dumps(payload))
        except Exception as e:
            logger.error("Failed to save avatar cache metadata: %s", e)

    async def _evict_oldest(self) -> None:
        """Drop the oldest ``eviction_fraction`` of ``max_size`` entries in one batch."""
        count = int(self._max_size * self._eviction_fraction)
        oldest = sorted(self._metadata.items(), key=lambda item: item[1].timestamp)[:count]
        if not oldest:
            return

        keys = []
        for chat_id, _ in oldest:
            keys.append(self.CACHE_PREFIX + chat_id)
            self._metadata.pop(chat_id, None)
            self._memory.pop(chat_id, None)

        try:
            await self._store.multi_remove(keys)
        except Exception as e:
            logger.error("Failed to remove evicted avatars, keeping them indexed: %s", e)
            self._metadata.update(oldest)
            return
        await self._save_metadata()
        logger.info("Evicted %d oldest entries", len(keys))

    @property
    def store(self) -> KeyValueStore:
        """Get the underlying store (for testing)."""
        return self._store
