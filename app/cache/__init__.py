"""
Two-tier record caching: in-memory tier backed by a durable key-value tier.
"""
from .core import CacheEntry, CacheStats, DURABLE_KEY_PREFIX, durable_key
from .memory import MemoryStore
from .durable import DurableStoreError, SQLiteKeyValueStore, StorageQuotaExceeded
from .manager import DurableStore, RecordCache, get_record_cache

__all__ = [
    # Core types
    "CacheEntry",
    "CacheStats",
    "DURABLE_KEY_PREFIX",
    "durable_key",
    # Tiers
    "MemoryStore",
    "DurableStore",
    "DurableStoreError",
    "SQLiteKeyValueStore",
    "StorageQuotaExceeded",
    # Manager
    "RecordCache",
    "get_record_cache",
]
