"""
Fast in-process cache tier.
"""
import threading
from typing import Dict, List, Optional, Tuple

from .core import CacheEntry


class MemoryStore:
    """
    Thread-safe dict of record ID -> CacheEntry.

    Whole entries are swapped under the lock, so readers never observe a
    partially written entry.
    """

    def __init__(self):
        self._entries: Dict[int, CacheEntry] = {}
        self._lock = threading.RLock()

    def get(self, record_id: int) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(record_id)

    def set(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[entry.id] = entry

    def delete(self, record_id: int) -> bool:
        with self._lock:
            return self._entries.pop(record_id, None) is not None

    def items(self) -> List[Tuple[int, CacheEntry]]:
        """Snapshot of all entries."""
        with self._lock:
            return list(self._entries.items())

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
