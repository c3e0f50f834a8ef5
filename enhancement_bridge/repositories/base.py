"""
Base key-value store interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class KeyValueStore(ABC, Generic[T]):
    """
    Abstract base class for the process-level stores (records, trackers).
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[T]:
        """Get a value by key."""
        ...

    @abstractmethod
    async def set(self, key: str, value: T) -> None:
        """Store a value, replacing any previous one."""
        ...

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Check if a key is present."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key."""
        ...

    @abstractmethod
    async def keys(self) -> list[str]:
        """List stored keys."""
        ...
