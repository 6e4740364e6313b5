"""Batch scanner for bulk archive checks.

Splits domains into fixed-size batches and processes them in order. Inside a
batch, a fixed number of workers pull the next unclaimed domain from a shared
cursor, so at most `concurrency` lookups are in flight at once. Lookups are
retried through the configured RetryPolicy; a domain that exhausts its
attempts is marked as an error and the run moves on.
"""

import asyncio
from typing import Callable, Iterable, Optional, Protocol, runtime_checkable

from loguru import logger

from lib.wayback.errors import ArchiveLookupError, EnrichmentError
from lib.wayback.models import HistoryEnrichment, SnapshotLookup
from services.archive_check.config import ScanConfig
from services.archive_check.models import BatchCursor, RunStats, ScanRecord, ScanState, ScanStatus

ProgressCallback = Callable[[ScanRecord, RunStats], None]


@runtime_checkable
class ISnapshotLookup(Protocol):
    """Protocol for the availability lookup."""

    async def lookup(self, domain: str) -> SnapshotLookup:
        """Return the closest snapshot, raising ArchiveLookupError on failure."""
        ...


@runtime_checkable
class IHistoryLookup(Protocol):
    """Protocol for CDX history enrichment."""

    async def fetch(self, domain: str) -> HistoryEnrichment:
        """Return capture history, raising EnrichmentError if nothing worked."""
        ...


def partition(domains: list[str], size: int) -> list[list[str]]:
    """Split domains into contiguous batches of at most `size`."""
    return [domains[i:i + size] for i in range(0, len(domains), size)]


class BatchScanner:
    """Runs availability (and optional history) lookups over a domain list."""

    def __init__(
        self,
        lookup: ISnapshotLookup,
        history: Optional[IHistoryLookup] = None,
        config: Optional[ScanConfig] = None,
    ):
        self._lookup = lookup
        self._history = history
        self.config = config or ScanConfig()
        self._cancel_event = asyncio.Event()
        self._running = False

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def running(self) -> bool:
        return self._running

    def request_cancel(self) -> None:
        """Stop scheduling new work. In-flight lookups still finish.

        Domains waiting out a retry backoff give up with their last error.
        Cancellation is sticky: later runs on this scanner stop immediately.
        """
        if not self._cancel_event.is_set():
            logger.info("Cancel requested, finishing in-flight lookups...")
        self._cancel_event.set()

    # =========================================================================
    # Public API
    # =========================================================================

    async def run(
        self,
        domains: Iterable[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> ScanState:
        """Scan every domain and return the final state."""
        state = ScanState(domains)
        return await self._scan(state, state.domains, on_progress)

    async def retry_errors(
        self,
        state: ScanState,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ScanState:
        """Re-scan only the records that ended in error."""
        failed = state.domains_with_status(ScanStatus.ERROR)
        if not failed:
            return state
        logger.info(f"Retrying {len(failed)} failed domains")
        return await self._scan(state, failed, on_progress)

    # =========================================================================
    # Scanning
    # =========================================================================

    async def _scan(
        self,
        state: ScanState,
        domains: list[str],
        on_progress: Optional[ProgressCallback],
    ) -> ScanState:
        if self._running:
            raise RuntimeError("A scan is already running on this scanner")
        self._running = True
        state.cancelled = False

        batches = partition(domains, self.config.batch_size)
        logger.info(
            f"Scanning {len(domains)} domains in {len(batches)} batches "
            f"(batch_size={self.config.batch_size}, concurrency={self.config.concurrency})"
        )

        try:
            for index, batch in enumerate(batches):
                if self.cancelled:
                    break
                state.cursor = BatchCursor(current_batch_index=index, total_batches=len(batches))

                await self._run_batch(state, batch, on_progress)
                state.batches_processed += 1

                stats = state.stats
                logger.info(
                    f"Batch {index + 1}/{len(batches)} done - "
                    f"{stats.done_count}/{stats.total_count} ({stats.percent}%), "
                    f"errors: {stats.error_count}, avg: {stats.average_latency_ms:.0f}ms"
                )

                if index < len(batches) - 1:
                    await self._pause(self.config.inter_batch_delay_ms)
        finally:
            state.cursor = None
            state.cancelled = self.cancelled
            self._running = False

        stats = state.stats
        if state.cancelled:
            logger.warning(f"Scan cancelled after {stats.done_count}/{stats.total_count} domains")
        else:
            logger.info(
                f"Scan complete: {stats.completed_count} ok, {stats.error_count} errors, "
                f"avg {stats.average_latency_ms:.0f}ms"
            )
        return state

    async def _run_batch(
        self,
        state: ScanState,
        batch: list[str],
        on_progress: Optional[ProgressCallback],
    ) -> None:
        """Process one batch with a fixed pool of workers."""
        cursor = iter(batch)

        async def worker() -> None:
            # Each worker claims the next unclaimed domain; next() never suspends
            for domain in cursor:
                if self.cancelled:
                    return
                await self._process_domain(state, domain, on_progress)

        workers = min(self.config.concurrency, len(batch))
        await asyncio.gather(*(worker() for _ in range(workers)))

    async def _process_domain(
        self,
        state: ScanState,
        domain: str,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        state.mark_checking(domain)

        try:
            lookup = await self.config.retry.run(
                self._lookup.lookup,
                domain,
                on_attempt=lambda attempt: state.mark_attempt(domain, attempt),
                stop_event=self._cancel_event,
            )
        except ArchiveLookupError as e:
            record = state.mark_error(domain, str(e))
            logger.warning(f"{domain}: {e} (after {record.attempts} attempts)")
            self._notify(on_progress, record, state)
            return
        except Exception as e:
            logger.exception(f"Unexpected error checking {domain}")
            record = state.mark_error(domain, f"Unexpected error: {e!r}")
            self._notify(on_progress, record, state)
            return

        history = None
        if lookup.archived and self.config.enrich_on_archived and self._history is not None:
            history = await self._enrich(domain)

        record = state.mark_complete(domain, lookup, history)
        if record.archived:
            logger.success(f"{domain}: archived ({record.closest_snapshot_timestamp}, {record.latency_ms}ms)")
        else:
            logger.debug(f"{domain}: not archived ({record.latency_ms}ms)")
        self._notify(on_progress, record, state)

    async def _enrich(self, domain: str) -> Optional[HistoryEnrichment]:
        try:
            return await self._history.fetch(domain)
        except EnrichmentError as e:
            logger.debug(f"{domain}: enrichment skipped - {e}")
        except Exception as e:
            logger.warning(f"{domain}: enrichment failed unexpectedly - {e!r}")
        return None

    async def _pause(self, delay_ms: int) -> None:
        """Sleep between batches; returns early if cancelled."""
        if delay_ms <= 0:
            return
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=delay_ms / 1000)
        except asyncio.TimeoutError:
            pass

    def _notify(
        self,
        on_progress: Optional[ProgressCallback],
        record: ScanRecord,
        state: ScanState,
    ) -> None:
        if on_progress is None:
            return
        try:
            on_progress(record, state.stats)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e!r}")

