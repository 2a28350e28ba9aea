"""
Data models for unique random collection runs.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from app.records import Record


class RunState(Enum):
    """Lifecycle of a collection run."""
    IDLE = "idle"
    BATCH_FETCHING = "batch_fetching"
    SEQUENTIAL_FILLING = "sequential_filling"
    SETTLED = "settled"


class RunOutcome(Enum):
    """How a settled run ended."""
    SUCCESS = "success"      # target count reached
    PARTIAL = "partial"      # retry budget spent first
    CANCELLED = "cancelled"  # token fired


@dataclass(frozen=True)
class Progress:
    """Unique records gathered so far out of the requested total."""
    current: int
    total: int

    def to_dict(self) -> Dict[str, int]:
        return {"current": self.current, "total": self.total}


@dataclass
class CollectionRun:
    """
    Transient state of one collect() invocation.

    Never shared between invocations; only the cache outlives a run.
    """
    requested_count: int
    collected_ids: Set[int] = field(default_factory=set)
    collected: List[Record] = field(default_factory=list)
    attempts_used: int = 0
    cancelled: bool = False
    state: RunState = RunState.IDLE

    def accept(self, record: Record) -> bool:
        """Append record if its ID is new. Returns True when the set grew."""
        if record.id in self.collected_ids:
            return False
        self.collected_ids.add(record.id)
        self.collected.append(record)
        return True

    @property
    def progress(self) -> Progress:
        return Progress(
            current=min(len(self.collected), self.requested_count),
            total=self.requested_count,
        )


@dataclass
class CollectionResult:
    """Settled value of a collection run."""
    records: List[Record]
    requested_count: int
    outcome: RunOutcome
    attempts_used: int = 0

    @property
    def shortfall(self) -> int:
        return max(0, self.requested_count - len(self.records))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "requested": self.requested_count,
            "collected": len(self.records),
            "shortfall": self.shortfall,
            "outcome": self.outcome.value,
            "attempts_used": self.attempts_used,
        }


@dataclass
class CollectionState:
    """
    Consumer-facing collection state.

    Mirrors what a UI binds to: the records, a loading flag, the last
    systemic error (if any) and the current progress.
    """
    records: List[Record] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    progress: Progress = field(default_factory=lambda: Progress(0, 0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "loading": self.loading,
            "error": self.error,
            "progress": self.progress.to_dict(),
        }
