"""Repository layer for data access.

This layer abstracts external dependencies (Redis, the platform gateway)
behind protocol-based interfaces. This enables:
- Easy swapping of implementations (Redis → device storage, HTTP → fake, etc.)
- Unit testing with in-memory implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from telecleaner.protocols import ChatGateway, KeyValueStore

from .http_gateway import HttpChatGateway
from .memory_store import InMemoryKeyValueStore
from .redis_store import RedisKeyValueStore

__all__ = [
    "ChatGateway",
    "KeyValueStore",
    "HttpChatGateway",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
]
