"""
Record store and change tracker built on KeyValueStore.
"""

from typing import Optional

from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.domain.records import RecordResult
from enhancement_bridge.repositories.base import KeyValueStore
from enhancement_bridge.repositories.memory import InMemoryKeyValueStore

logger = get_logger(__name__)


class RecordStore:
    """
    Latest generated records per ticket id. Each generation overwrites
    the previous entry.
    """

    def __init__(self, store: Optional[KeyValueStore[list[RecordResult]]] = None) -> None:
        self._store: KeyValueStore[list[RecordResult]] = store if store is not None else InMemoryKeyValueStore("records")

    async def get(self, ticket_id: str) -> Optional[list[RecordResult]]:
        return await self._store.get(ticket_id)

    async def set(self, ticket_id: str, records: list[RecordResult]) -> None:
        await self._store.set(ticket_id, list(records))
        logger.info("Records stored", ticket_id=ticket_id, count=len(records))

    async def has(self, ticket_id: str) -> bool:
        return await self._store.has(ticket_id)

    async def should_serve_cache(self, ticket_id: str, force: bool = False) -> bool:
        """True when an entry exists and regeneration was not forced."""
        if force:
            return False
        return await self._store.has(ticket_id)


class ChangeTracker:
    """
    Last-seen assignee and tracked custom-field value per ticket.
    """

    def __init__(
        self,
        assignees: Optional[KeyValueStore[str]] = None,
        custom_fields: Optional[KeyValueStore[str]] = None,
    ) -> None:
        self.assignees: KeyValueStore[str] = assignees if assignees is not None else InMemoryKeyValueStore("assignees")
        self.custom_fields: KeyValueStore[str] = (
            custom_fields if custom_fields is not None else InMemoryKeyValueStore("custom_fields")
        )
