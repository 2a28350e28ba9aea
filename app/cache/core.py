"""
Core cache data structures.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict

from app.records import Record


# Durable-tier key prefix: catalog_item_{id}
DURABLE_KEY_PREFIX = "catalog_item_"


def durable_key(record_id: int) -> str:
    """Build the durable-tier key for a record ID."""
    return f"{DURABLE_KEY_PREFIX}{record_id}"


@dataclass(frozen=True)
class CacheEntry:
    """
    A cached record with the time it was stored.

    Entries are never mutated; a refresh replaces the whole entry.
    """
    id: int
    payload: Record
    stored_at: float  # epoch seconds

    def age_seconds(self, now: float) -> float:
        """Seconds between storage and ``now``."""
        return now - self.stored_at

    def to_dict(self) -> Dict[str, Any]:
        """Serialized form written to the durable tier."""
        return {"payload": self.payload.to_dict(), "stored_at": self.stored_at}

    @classmethod
    def from_dict(cls, record_id: int, data: Dict[str, Any]) -> "CacheEntry":
        """
        Rebuild an entry read back from the durable tier.

        Raises:
            ValueError: If the stored value is not a valid entry
        """
        if not isinstance(data, dict):
            raise ValueError("Stored cache entry is not an object")
        stored_at = data.get("stored_at")
        if isinstance(stored_at, bool) or not isinstance(stored_at, (int, float)):
            raise ValueError("Stored cache entry has no numeric stored_at")
        try:
            stored_at = float(stored_at)
        except OverflowError:
            raise ValueError("Stored cache entry has an out-of-range stored_at")
        if not math.isfinite(stored_at):
            raise ValueError("Stored cache entry has a non-finite stored_at")
        return cls(
            id=record_id,
            payload=Record.from_dict(data.get("payload")),
            stored_at=stored_at,
        )


@dataclass
class CacheStats:
    """
    Advisory cache statistics.

    ``approximate_hit_rate`` is a percentage in [0, 100].
    """
    memory_entries: int
    durable_entries: int
    approximate_hit_rate: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON response."""
        return {
            "memory_entries": self.memory_entries,
            "durable_entries": self.durable_entries,
            "approximate_hit_rate": self.approximate_hit_rate,
        }
