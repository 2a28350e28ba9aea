"""
Unique random collection - batch then sequential retrieval of records with distinct IDs.

This module provides:
- UniqueRandomCollector: the collection algorithm
- CancellationToken: cooperative cancellation shared by a run
- CollectionSession: state and operations for a presentation layer
"""

from .models import (
    CollectionResult,
    CollectionRun,
    CollectionState,
    Progress,
    RunOutcome,
    RunState,
)
from .cancellation import (
    CancellationToken,
    RunCancelled,
)
from .collector import (
    UniqueRandomCollector,
)
from .session import (
    CollectionBusyError,
    CollectionSession,
    get_collection_session,
)

__all__ = [
    # Models
    "CollectionResult",
    "CollectionRun",
    "CollectionState",
    "Progress",
    "RunOutcome",
    "RunState",
    # Cancellation
    "CancellationToken",
    "RunCancelled",
    # Collector
    "UniqueRandomCollector",
    # Session
    "CollectionBusyError",
    "CollectionSession",
    "get_collection_session",
]
