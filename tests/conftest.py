import asyncio
from datetime import datetime, timezone

import pytest

from telecleaner.entities import PRIVATE_COUNT_SENTINEL, ChatSummary, ChatType, Message, SessionRecord
from telecleaner.repositories import InMemoryKeyValueStore
from telecleaner.services import AuthGate, AvatarCache, SessionStore

DAY_MS = 24 * 60 * 60 * 1000


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FailingStore(InMemoryKeyValueStore):
    """Store whose reads, writes or removals raise."""

    def __init__(self, fail_reads: bool = False, fail_writes: bool = False, fail_removes: bool = False) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.fail_removes = fail_removes

    async def get(self, key):
        if self.fail_reads:
            raise OSError("storage unavailable")
        return await super().get(key)

    async def multi_get(self, keys):
        if self.fail_reads:
            raise OSError("storage unavailable")
        return await super().multi_get(keys)

    async def set(self, key, value):
        if self.fail_writes:
            raise OSError("storage unavailable")
        await super().set(key, value)

    async def remove(self, key):
        if self.fail_writes or self.fail_removes:
            raise OSError("storage unavailable")
        await super().remove(key)

    async def multi_remove(self, keys):
        if self.fail_writes or self.fail_removes:
            raise OSError("storage unavailable")
        await super().multi_remove(keys)


class FakeGateway:
    """Scripted ChatGateway that records every call."""

    def __init__(self, chats=None, counts=None, photos=None):
        self.chats = list(chats or [])
        self.counts = dict(counts or {})
        self.photos = dict(photos or {})
        self.count_errors: dict[str, Exception] = {}
        self.photo_errors: dict[str, Exception] = {}
        self.list_error: Exception | None = None
        self.messages: dict[str, list[Message]] = {}
        self.delete_errors: dict[str, Exception] = {}
        self.deleted: dict[str, list[int]] = {}
        self.validated_token: str | None = None

        self.session: SessionRecord | None = None
        self.list_calls = 0
        self.count_calls: list[str] = []
        self.photo_calls: list[tuple[str, str | None]] = []
        self.validate_calls: list[SessionRecord] = []
        self.on_count = None
        self.on_photo = None

    def authenticate(self, session):
        self.session = session

    async def get_chats_quick(self):
        self.list_calls += 1
        await asyncio.sleep(0)
        if self.list_error is not None:
            raise self.list_error
        return list(self.chats)

    async def get_chat_message_count(self, chat_id, is_private_chat):
        self.count_calls.append(chat_id)
        if is_private_chat:
            return PRIVATE_COUNT_SENTINEL
        if self.on_count is not None:
            self.on_count(chat_id)
        await asyncio.sleep(0)
        if chat_id in self.count_errors:
            raise self.count_errors[chat_id]
        return self.counts.get(chat_id, 0)

    async def get_chat_profile_photo(self, chat_id, photo_id=None):
        self.photo_calls.append((chat_id, photo_id))
        if self.on_photo is not None:
            self.on_photo(chat_id)
        await asyncio.sleep(0)
        if chat_id in self.photo_errors:
            raise self.photo_errors[chat_id]
        return self.photos.get(chat_id)

    async def validate_session(self, session):
        self.validate_calls.append(session)
        return self.validated_token

    async def get_messages(self, chat_id, limit=100):
        return list(self.messages.get(chat_id, []))[:limit]

    async def delete_messages(self, chat_id, message_ids):
        if chat_id in self.delete_errors:
            raise self.delete_errors[chat_id]
        self.deleted.setdefault(chat_id, []).extend(message_ids)
        return len(message_ids)

    async def is_available(self):
        return True


def make_chat(index: int, chat_type: ChatType = ChatType.GROUP, photo_id: str | None = "auto") -> ChatSummary:
    return ChatSummary(
        id=f"c{index}",
        name=f"Chat {index}",
        type=chat_type,
        photo_id=f"p{index}" if photo_id == "auto" else photo_id,
    )


def make_message(message_id: int, chat_id: str, date: datetime, outgoing: bool = True) -> Message:
    return Message(id=message_id, chat_id=chat_id, text=f"m{message_id}", date=date, is_outgoing=outgoing)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def login(store: InMemoryKeyValueStore, token: str | None = "tok") -> None:
    data = {
        SessionStore.USER_ID_KEY: "u1",
        SessionStore.SESSION_KEY: "sess",
    }
    if token is not None:
        data[SessionStore.TOKEN_KEY] = token
    store.data.update(data)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(store, clock):
    return AvatarCache(
        store=store,
        max_size=200,
        max_age=30 * 24 * 60 * 60,
        memory_size=50,
        eviction_fraction=0.2,
        check_interval=24 * 60 * 60,
        clock=clock,
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def session_store(store):
    return SessionStore(store)


@pytest.fixture
def auth_gate(session_store, gateway):
    return AuthGate(session_store, revalidate=gateway.validate_session)
