"""
Two-tier record cache: fast memory tier backed by a durable key-value tier.
"""
import json
import time
import logging
import threading
from typing import Callable, Optional, Protocol, List

from .core import CacheEntry, CacheStats, DURABLE_KEY_PREFIX, durable_key
from .durable import DurableStoreError
from .memory import MemoryStore
from app.records import Record

logger = logging.getLogger("cache.manager")


class DurableStore(Protocol):
    """Interface of the durable tier (local-storage semantics)."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...

    def keys(self, prefix: str = "") -> List[str]:
        ...


class RecordCache:
    """
    Process-wide cache mapping a record ID to a Record with expiry.

    - Memory tier is consulted first
    - Fresh durable entries are promoted into memory on read
    - Stale or corrupt durable entries are purged on sight
    - Durable failures are logged and never reach callers
    """

    def __init__(
        self,
        memory: MemoryStore,
        durable: DurableStore,
        ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the cache.

        Args:
            memory: Fast in-process tier
            durable: Persistent key-value tier
            ttl_seconds: Age at which an entry stops being valid
            clock: Source of the current time in epoch seconds
        """
        self._memory = memory
        self._durable = durable
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        # Stats tracking
        self._stats_lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0}

    def is_valid(self, entry: CacheEntry) -> bool:
        """An entry is valid while it is younger than the TTL."""
        return entry.age_seconds(self._clock()) < self.ttl_seconds

    def get(self, record_id: int) -> Optional[Record]:
        """
        Look up a record.

        Returns:
            The cached Record, or None on a miss or expired entry
        """
        entry = self._memory.get(record_id)
        if entry is not None:
            if self.is_valid(entry):
                logger.debug(f"CACHE HIT (memory): {record_id}")
                self._count("hits")
                return entry.payload
            self._memory.delete(record_id)

        entry = self._load_durable(record_id)
        if entry is not None:
            logger.debug(f"CACHE HIT (durable, promoted): {record_id}")
            self._memory.set(entry)
            self._count("hits")
            return entry.payload

        logger.debug(f"CACHE MISS: {record_id}")
        self._count("misses")
        return None

    def set(self, record_id: int, payload: Record) -> None:
        """Store a fresh entry in both tiers."""
        entry = CacheEntry(id=record_id, payload=payload, stored_at=self._clock())
        self._memory.set(entry)

        try:
            self._durable.set_item(durable_key(record_id), json.dumps(entry.to_dict()))
        except (DurableStoreError, TypeError, ValueError) as e:
            logger.warning(f"Could not persist record {record_id}, memory only: {e}")

    def evict(self, record_id: int) -> bool:
        """
        Remove one record from both tiers.

        Returns:
            True if the memory tier held the record
        """
        removed = self._memory.delete(record_id)
        self._remove_durable(durable_key(record_id))
        return removed

    def clean_expired(self) -> int:
        """
        Remove every invalid entry from both tiers.

        Returns:
            Number of entries removed
        """
        removed = 0
        for record_id, entry in self._memory.items():
            if not self.is_valid(entry):
                if self._memory.delete(record_id):
                    removed += 1

        for key in self._durable_keys():
            record_id = _id_from_key(key)
            entry = self._read_durable(key, record_id) if record_id is not None else None
            if entry is None or not self.is_valid(entry):
                self._remove_durable(key)
                removed += 1

        logger.info(f"Cleaned {removed} expired cache entries")
        return removed

    def clear(self) -> int:
        """
        Empty both tiers.

        Returns:
            Number of entries cleared
        """
        count = self._memory.clear()
        keys = self._durable_keys()
        for key in keys:
            self._remove_durable(key)
        with self._stats_lock:
            self._stats = {"hits": 0, "misses": 0}
        logger.info(f"Cleared {count} memory and {len(keys)} durable cache entries")
        return count + len(keys)

    def stats(self) -> CacheStats:
        """Get cache statistics."""
        with self._stats_lock:
            total = self._stats["hits"] + self._stats["misses"]
            hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0.0

        return CacheStats(
            memory_entries=len(self._memory),
            durable_entries=len(self._durable_keys()),
            approximate_hit_rate=round(min(max(hit_rate, 0.0), 100.0), 1),
        )

    def _count(self, stat: str) -> None:
        with self._stats_lock:
            self._stats[stat] += 1

    def _load_durable(self, record_id: int) -> Optional[CacheEntry]:
        """Read a fresh entry from the durable tier, purging stale or corrupt ones."""
        key = durable_key(record_id)
        entry = self._read_durable(key, record_id)
        if entry is None:
            return None
        if not self.is_valid(entry):
            logger.debug(f"Purging stale durable entry: {key}")
            self._remove_durable(key)
            return None
        return entry

    def _read_durable(self, key: str, record_id: int) -> Optional[CacheEntry]:
        """Parse a durable value; corrupt values are purged and read as absent."""
        try:
            raw = self._durable.get_item(key)
        except DurableStoreError as e:
            logger.warning(f"Durable read failed for {key}: {e}")
            return None
        if raw is None:
            return None

        try:
            return CacheEntry.from_dict(record_id, json.loads(raw))
        except ValueError as e:
            # json.JSONDecodeError and MalformedRecordError are both ValueErrors
            logger.warning(f"Purging corrupt durable entry {key}: {e}")
            self._remove_durable(key)
            return None

    def _remove_durable(self, key: str) -> None:
        try:
            self._durable.remove_item(key)
        except DurableStoreError as e:
            logger.warning(f"Durable remove failed for {key}: {e}")

    def _durable_keys(self) -> List[str]:
        try:
            return self._durable.keys(DURABLE_KEY_PREFIX)
        except DurableStoreError as e:
            logger.warning(f"Durable key listing failed: {e}")
            return []


def _id_from_key(key: str) -> Optional[int]:
    try:
        return int(key[len(DURABLE_KEY_PREFIX):])
    except ValueError:
        return None


# Global record cache instance
_record_cache: Optional[RecordCache] = None


def get_record_cache() -> RecordCache:
    """Get or create the process-wide record cache."""
    global _record_cache
    if _record_cache is None:
        from config.settings import settings
        from .durable import SQLiteKeyValueStore

        _record_cache = RecordCache(
            memory=MemoryStore(),
            durable=SQLiteKeyValueStore(
                settings.cache_db_path, max_items=settings.cache_max_durable_items
            ),
            ttl_seconds=settings.cache_ttl_seconds,
        )
    return _record_cache
