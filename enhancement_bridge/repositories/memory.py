"""
In-memory store implementations.
"""

from typing import Optional, TypeVar

from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.repositories.base import KeyValueStore

logger = get_logger(__name__)

T = TypeVar("T")


class InMemoryKeyValueStore(KeyValueStore[T]):
    """
    Dict-backed store. Entries live for the process lifetime and are
    never expired.
    """

    def __init__(self, name: str = "store") -> None:
        self.name = name
        self._data: dict[str, T] = {}

    async def get(self, key: str) -> Optional[T]:
        return self._data.get(key)

    async def set(self, key: str, value: T) -> None:
        self._data[key] = value
        logger.debug("Store set", store=self.name, key=key)

    async def has(self, key: str) -> bool:
        return key in self._data

    async def delete(self, key: str) -> bool:
        if key in self._data:
            del self._data[key]
            return True
        return False

    async def keys(self) -> list[str]:
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)
