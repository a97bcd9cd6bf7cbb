"""In-memory implementation of KeyValueStore.

Nothing survives the process; meant for tests and ephemeral runs.
"""


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore.

    ``operations`` counts every call so tests can assert that a code path
    never touched storage.
    """

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})
        self.operations = 0

    async def get(self, key: str) -> str | None:
        self.operations += 1
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.operations += 1
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.operations += 1
        self.data.pop(key, None)

    async def multi_get(self, keys: list[str]) -> list[str | None]:
        self.operations += 1
        return [self.data.get(key) for key in keys]

    async def multi_remove(self, keys: list[str]) -> None:
        self.operations += 1
        for key in keys:
            self.data.pop(key, None)

    async def health_check(self) -> bool:
        return True

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [key for key in self.data if key.startswith(prefix)]
