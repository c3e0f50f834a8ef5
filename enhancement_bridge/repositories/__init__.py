"""
Repository implementations for process-level state.
"""

from enhancement_bridge.repositories.base import KeyValueStore
from enhancement_bridge.repositories.memory import InMemoryKeyValueStore
from enhancement_bridge.repositories.record_store import ChangeTracker, RecordStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RecordStore",
    "ChangeTracker",
]
