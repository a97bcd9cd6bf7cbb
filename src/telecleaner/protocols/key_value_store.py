"""Persistent key-value store protocol.

Defines the interface for any asynchronous string-keyed storage that
survives process restarts. The avatar cache and the session store are
written against this protocol only.

Implementations can include:
- Redis (default)
- In-memory dict (tests, ephemeral runs)
- Any other durable key-value backend
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for asynchronous key-value storage backends.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed.

    Example:
        ```python
        from telecleaner.protocols import KeyValueStore

        store: KeyValueStore = RedisKeyValueStore.create()
        await store.set("@auth_token", "abc")
        ```
    """

    async def get(self, key: str) -> str | None:
        """Read a value.

        Args:
            key: The storage key

        Returns:
            The stored string, or None if the key does not exist
        """
        ...

    async def set(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one.

        Args:
            key: The storage key
            value: The string to store
        """
        ...

    async def remove(self, key: str) -> None:
        """Delete a key. Missing keys are ignored.

        Args:
            key: The storage key
        """
        ...

    async def multi_get(self, keys: list[str]) -> list[str | None]:
        """Read several values at once.

        Args:
            keys: The storage keys

        Returns:
            Values in the same order as ``keys`` (None for missing keys)
        """
        ...

    async def multi_remove(self, keys: list[str]) -> None:
        """Delete several keys at once.

        Args:
            keys: The storage keys
        """
        ...
