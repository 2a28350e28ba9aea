"""
Unique random record collection.

A run draws random IDs, serves them from the record cache when possible,
fetches misses from the catalog, and keeps only records whose ID it has not
seen yet. It starts with a concurrent batch and closes any remaining gap
one request at a time.
"""
import asyncio
import logging
import random
from typing import Callable, Iterable, List, Optional, Set

from app.cache import RecordCache
from app.catalog_client import CatalogClient, CatalogFetchError
from app.records import MalformedRecordError, Record, normalize_record
from config.settings import settings

from .cancellation import CancellationToken, RunCancelled
from .models import CollectionResult, CollectionRun, Progress, RunOutcome, RunState

logger = logging.getLogger("collector")

ProgressCallback = Callable[[Progress, Record], None]


class UniqueRandomCollector:
    """
    Collects N records with distinct IDs from a random, unreliable upstream.

    Failures of a single ID (network error, bad status, malformed payload)
    are never retried for that ID: the collector moves on to a new random
    candidate. All loops are bounded, so every call terminates.
    """

    def __init__(
        self,
        cache: RecordCache,
        client: CatalogClient,
        rng: Optional[random.Random] = None,
        id_space_size: int = settings.id_space_size,
        batch_size: int = settings.batch_size,
        max_sequential_retries: int = settings.max_sequential_retries,
        max_fetch_attempts: int = settings.max_fetch_attempts,
        max_sample_draws: int = settings.max_sample_draws,
        fetch_more_attempt_factor: int = settings.fetch_more_attempt_factor,
    ):
        """
        Initialize the collector.

        Args:
            cache: Shared record cache
            client: Upstream catalog client
            rng: Random source for ID sampling
            id_space_size: IDs are drawn from [1, id_space_size]
            batch_size: Concurrent retrievals issued by the batch phase
            max_sequential_retries: Attempt ceiling of the sequential fill phase
            max_fetch_attempts: Candidates tried by one fetch_single call
            max_sample_draws: Redraws allowed when a candidate is already collected
            fetch_more_attempt_factor: fetch_more tries count * factor retrievals
        """
        self._cache = cache
        self._client = client
        self._rng = rng or random.Random()
        self.id_space_size = id_space_size
        self.batch_size = batch_size
        self.max_sequential_retries = max_sequential_retries
        self.max_fetch_attempts = max_fetch_attempts
        self.max_sample_draws = max_sample_draws
        self.fetch_more_attempt_factor = fetch_more_attempt_factor

    def _sample_id(self, exclude_ids: Set[int]) -> Optional[int]:
        """Draw a candidate ID not in ``exclude_ids``, or None if every draw collided."""
        for _ in range(self.max_sample_draws):
            candidate = self._rng.randint(1, self.id_space_size)
            if candidate not in exclude_ids:
                return candidate
        return None

    async def fetch_single(
        self,
        exclude_ids: Set[int] = frozenset(),
        token: Optional[CancellationToken] = None,
    ) -> Optional[Record]:
        """
        Retrieve one record whose ID is not in ``exclude_ids``.

        Returns:
            A Record, or None if every attempt failed or the token fired
        """
        token = token or CancellationToken()

        for attempt in range(1, self.max_fetch_attempts + 1):
            if token.cancelled:
                return None

            candidate = self._sample_id(exclude_ids)
            if candidate is None:
                logger.debug("No unseen candidate found, giving up on this retrieval")
                return None

            record = self._cache.get(candidate)
            if record is not None:
                return record

            try:
                raw = await token.guard(self._client.fetch_item(candidate))
            except RunCancelled:
                return None
            except CatalogFetchError as e:
                logger.warning(f"Fetch failed for item {candidate} (attempt {attempt}): {e}")
                continue

            if token.cancelled:
                return None

            try:
                record = normalize_record(raw)
            except MalformedRecordError as e:
                logger.warning(f"Malformed payload for item {candidate}: {e}")
                continue

            self._cache.set(candidate, record)
            return record

        logger.debug(f"Gave up after {self.max_fetch_attempts} attempts")
        return None

    async def collect(
        self,
        target_count: int,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CollectionResult:
        """
        Collect up to ``target_count`` records with unique IDs.

        A shortfall is returned as a PARTIAL outcome, never raised.

        Raises:
            ValueError: If target_count is negative
            Exception: Systemic failures (e.g. a broken cache) propagate
        """
        if target_count < 0:
            raise ValueError("target_count must be >= 0")

        token = token or CancellationToken()
        run = CollectionRun(requested_count=target_count)
        if target_count == 0:
            return self._settle(run, token)

        # Batch phase: wait for every retrieval, successes and failures alike
        run.state = RunState.BATCH_FETCHING
        outcomes = await asyncio.gather(
            *(self.fetch_single(run.collected_ids, token) for _ in range(self.batch_size)),
            return_exceptions=True,
        )
        run.attempts_used += self.batch_size

        errors = [o for o in outcomes if isinstance(o, BaseException)]
        if errors:
            logger.error(f"{len(errors)} of {self.batch_size} batch retrievals raised: {errors[0]!r}")
            raise errors[0]

        if token.cancelled:
            return self._settle(run, token)

        for record in outcomes:
            if record is not None:
                self._accept(run, record, token, on_progress)

        # Sequential fill phase
        if len(run.collected) < target_count:
            run.state = RunState.SEQUENTIAL_FILLING
            sequential_attempts = 0
            while (
                len(run.collected) < target_count
                and sequential_attempts < self.max_sequential_retries
                and not token.cancelled
            ):
                record = await self.fetch_single(run.collected_ids, token)
                sequential_attempts += 1
                run.attempts_used += 1
                if record is not None and not token.cancelled:
                    self._accept(run, record, token, on_progress)
                await asyncio.sleep(0)

        return self._settle(run, token)

    async def fetch_more(
        self,
        additional_count: int,
        existing_ids: Iterable[int],
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Record]:
        """
        Retrieve up to ``additional_count`` records not in ``existing_ids``.

        Sequential only; bounded by ``additional_count * fetch_more_attempt_factor``
        retrievals.
        """
        if additional_count < 0:
            raise ValueError("additional_count must be >= 0")

        token = token or CancellationToken()
        run = CollectionRun(requested_count=additional_count, collected_ids=set(existing_ids))
        max_attempts = additional_count * self.fetch_more_attempt_factor

        while (
            len(run.collected) < additional_count
            and run.attempts_used < max_attempts
            and not token.cancelled
        ):
            record = await self.fetch_single(run.collected_ids, token)
            run.attempts_used += 1
            if record is not None and not token.cancelled:
                self._accept(run, record, token, on_progress)
            await asyncio.sleep(0)

        logger.info(
            f"Fetched {len(run.collected)} of {additional_count} additional records "
            f"in {run.attempts_used} attempts"
        )
        return list(run.collected)

    def _accept(
        self,
        run: CollectionRun,
        record: Record,
        token: CancellationToken,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        if run.accept(record) and on_progress is not None and not token.cancelled:
            on_progress(run.progress, record)

    def _settle(self, run: CollectionRun, token: CancellationToken) -> CollectionResult:
        run.state = RunState.SETTLED
        run.cancelled = token.cancelled
        records = run.collected[: run.requested_count]

        if run.cancelled:
            outcome = RunOutcome.CANCELLED
            logger.info(f"Collection cancelled with {len(records)} records")
        elif len(records) >= run.requested_count:
            outcome = RunOutcome.SUCCESS
            logger.info(f"Collected {len(records)} unique records")
        else:
            outcome = RunOutcome.PARTIAL
            logger.info(
                f"Collected {len(records)} of {run.requested_count} unique records "
                f"after {run.attempts_used} attempts"
            )

        return CollectionResult(
            records=records,
            requested_count=run.requested_count,
            outcome=outcome,
            attempts_used=run.attempts_used,
        )
