"""TeleCleaner - client core for bulk-deleting your own chat messages.

This package provides a layered architecture around a persistent avatar
cache and a batched chat list hydration pipeline:

Layers:
    - protocols: Interface contracts (KeyValueStore, ChatGateway)
    - repositories: Data access implementations (Redis, in-memory, HTTP gateway)
    - services: Business logic (AvatarCache, ChatListHydrator, AuthGate, ...)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from telecleaner.repositories import HttpChatGateway, RedisKeyValueStore
    from telecleaner.services import AuthGate, AvatarCache, ChatListHydrator, SessionStore

    store = RedisKeyValueStore.create()
    gateway = HttpChatGateway.create()
    gate = AuthGate(SessionStore(store), revalidate=gateway.validate_session)
    hydrator = ChatListHydrator(gateway=gateway, avatar_cache=AvatarCache(store=store), auth_gate=gate)
    state = await hydrator.load()
    ```

For HTTP API:
    ```python
    from telecleaner.api.app import app
    ```
"""

from telecleaner.config import get_redis_client, settings
from telecleaner.entities import ChatSummary, ChatType, SessionRecord
from telecleaner.exceptions import AuthRequiredError, GatewayError, SessionExpiredError
from telecleaner.protocols import ChatGateway, KeyValueStore
from telecleaner.repositories import HttpChatGateway, InMemoryKeyValueStore, RedisKeyValueStore
from telecleaner.services import AuthGate, AvatarCache, ChatListHydrator, SessionStore, fallback_avatar

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "ChatGateway",
    "KeyValueStore",
    # Services (business logic)
    "AuthGate",
    "AvatarCache",
    "ChatListHydrator",
    "SessionStore",
    "fallback_avatar",
    # Repositories (data access)
    "HttpChatGateway",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    # Entities (domain models)
    "ChatSummary",
    "ChatType",
    "SessionRecord",
    # Errors
    "AuthRequiredError",
    "GatewayError",
    "SessionExpiredError",
]
