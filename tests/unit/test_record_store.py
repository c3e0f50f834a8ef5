"""
Tests for the in-memory stores.
"""

import pytest

from enhancement_bridge.domain.records import EnhancementRecord, ErrorRecord
from enhancement_bridge.repositories.memory import InMemoryKeyValueStore
from enhancement_bridge.repositories.record_store import RecordStore


class TestInMemoryKeyValueStore:
    @pytest.mark.asyncio
    async def test_set_get_delete(self):
        store: InMemoryKeyValueStore[str] = InMemoryKeyValueStore()

        assert await store.get("k") is None
        await store.set("k", "v")
        assert await store.has("k")
        assert await store.get("k") == "v"
        assert await store.keys() == ["k"]
        assert await store.delete("k")
        assert not await store.delete("k")
        assert len(store) == 0


class TestRecordStore:
    @pytest.mark.asyncio
    async def test_last_write_wins(self, record_store: RecordStore):
        first = [EnhancementRecord(enhancement_id="RSOFT-1-ENH-1")]
        second = [ErrorRecord(error="AI response is empty or invalid.")]

        await record_store.set("RSOFT-1", first)
        await record_store.set("RSOFT-1", second)

        assert await record_store.get("RSOFT-1") == second

    @pytest.mark.asyncio
    async def test_should_serve_cache(self, record_store: RecordStore):
        assert not await record_store.should_serve_cache("RSOFT-1")

        await record_store.set("RSOFT-1", [])

        assert await record_store.should_serve_cache("RSOFT-1")
        assert not await record_store.should_serve_cache("RSOFT-1", force=True)
