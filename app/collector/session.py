"""
Consumer-facing collection session.

Holds the state a presentation layer binds to ({records, loading, error,
progress}) and the operations it calls: refetch, fetch_more, cache stats and
cache clearing. Only one collection run is live at a time; starting a new
one cancels the previous run.
"""
import asyncio
import logging
from typing import List, Optional

from app.cache import CacheStats, RecordCache
from app.records import Record
from config.settings import settings

from .cancellation import CancellationToken
from .collector import UniqueRandomCollector
from .models import CollectionResult, CollectionState, Progress

logger = logging.getLogger("collector.session")


class CollectionBusyError(RuntimeError):
    """Raised when fetch_more is called while a collection run is live."""


class CollectionSession:
    """
    Stateful wrapper around UniqueRandomCollector.

    Usage:
        session = CollectionSession(collector, cache, target_count=12)
        await session.refetch()
        await session.fetch_more(4)
        session.state.to_dict()
    """

    def __init__(
        self,
        collector: UniqueRandomCollector,
        cache: RecordCache,
        target_count: int = settings.default_target_count,
    ):
        self._collector = collector
        self._cache = cache
        self.target_count = target_count
        self.state = CollectionState(progress=Progress(0, target_count))
        self.last_result: Optional[CollectionResult] = None
        self._token: Optional[CancellationToken] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._token is not None

    def cancel(self) -> bool:
        """
        Cancel the in-flight run, if any.

        Returns:
            True if a run was cancelled
        """
        if self._token is None:
            return False
        self._token.cancel()
        self._token = None
        self.state.loading = False
        logger.info("Cancelled in-flight collection run")
        return True

    async def refetch(self) -> CollectionState:
        """Discard the current records and run a fresh collection."""
        self.cancel()
        token = CancellationToken()
        self._token = token

        self.state = CollectionState(loading=True, progress=Progress(0, self.target_count))

        def on_progress(progress: Progress, record: Record) -> None:
            if self._token is token:
                self.state.progress = progress
                self.state.records = self.state.records + [record]

        try:
            result = await self._collector.collect(self.target_count, token, on_progress)
        except Exception as e:
            if not token.cancelled:
                logger.error(f"Collection failed: {e}")
                self.state.error = str(e)
        else:
            if not token.cancelled:
                self.last_result = result
                self.state.records = list(result.records)
                self.state.progress = Progress(len(result.records), self.target_count)
        finally:
            if self._token is token:
                self._token = None
                self.state.loading = False

        return self.state

    def start(self) -> asyncio.Task:
        """Schedule ``refetch`` on the running loop without waiting for it."""
        self._task = asyncio.ensure_future(self.refetch())
        return self._task

    async def fetch_more(self, count: Optional[int] = None) -> List[Record]:
        """
        Append up to ``count`` new unique records to the current set.

        Raises:
            CollectionBusyError: If a refetch is still running
            Exception: Systemic failures, after recording them in ``state.error``
        """
        # A settling run replaces state.records, which would drop the appended ones
        if self.is_running:
            raise CollectionBusyError("A collection run is in progress")
        count = self.target_count if count is None else count
        existing_ids = {record.id for record in self.state.records}
        self.state.loading = True

        try:
            new_records = await self._collector.fetch_more(count, existing_ids)
        except Exception as e:
            logger.error(f"Fetching more records failed: {e}")
            self.state.error = str(e)
            raise
        finally:
            self.state.loading = self.is_running

        self.state.records = self.state.records + new_records
        return new_records

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def clear_cache(self) -> int:
        return self._cache.clear()

    def clean_expired_cache(self) -> int:
        return self._cache.clean_expired()


# Global collection session instance
_collection_session: Optional[CollectionSession] = None


def get_collection_session() -> CollectionSession:
    """Get or create the global collection session."""
    global _collection_session
    if _collection_session is None:
        from app.cache import get_record_cache
        from app.catalog_client import get_catalog_client

        cache = get_record_cache()
        _collection_session = CollectionSession(
            UniqueRandomCollector(cache, get_catalog_client()),
            cache,
        )
    return _collection_session
