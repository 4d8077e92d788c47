"""Keyed state stores for sessions and agents.

Services receive a store instead of owning a module-level dict, so tests and
alternative backends can swap it out.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class Store(ABC, Generic[T]):
    """Async key-value store."""

    @abstractmethod
    async def get(self, key: str) -> T | None:
        """Return the value for ``key`` or ``None``."""
        ...

    @abstractmethod
    async def put(self, key: str, value: T) -> None:
        """Insert or replace the value for ``key``."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove ``key``. Returns whether it existed."""
        ...

    @abstractmethod
    async def keys(self) -> list[str]:
        """All keys, in insertion order."""
        ...

    async def items(self) -> list[tuple[str, T]]:
        """All entries, in insertion order."""
        entries: list[tuple[str, T]] = []
        for key in await self.keys():
            value = await self.get(key)
            if value is not None:
                entries.append((key, value))
        return entries


class InMemoryStore(Store[T]):
    """Process-local store backed by a dict. Nothing survives a restart."""

    def __init__(self) -> None:
        self._data: dict[str, T] = {}

    async def get(self, key: str) -> T | None:
        return self._data.get(key)

    async def put(self, key: str, value: T) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)
