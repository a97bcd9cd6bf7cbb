"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis → device storage, HTTP → direct client, etc.)
- Unit testing with in-memory fakes
- Clear separation of concerns

Usage:
    ```python
    from telecleaner.protocols import ChatGateway, KeyValueStore

    # Type hints work with any implementation
    store: KeyValueStore = RedisKeyValueStore.create()    # works
    store: KeyValueStore = InMemoryKeyValueStore()        # also works
    ```
"""

from .chat_gateway import ChatGateway
from .key_value_store import KeyValueStore

__all__ = [
    "ChatGateway",
    "KeyValueStore",
]
