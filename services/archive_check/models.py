"""Scan records, run statistics, and the state aggregate that owns them."""

from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel

from lib.wayback.models import HistoryEnrichment, SnapshotLookup


class ScanStatus(str, Enum):
    """Lifecycle of one domain within a run."""

    QUEUED = "queued"
    CHECKING = "checking"
    COMPLETE = "complete"
    ERROR = "error"


# Allowed transitions. ERROR -> CHECKING is a retry.
_TRANSITIONS = {
    ScanStatus.QUEUED: {ScanStatus.CHECKING},
    ScanStatus.CHECKING: {ScanStatus.COMPLETE, ScanStatus.ERROR},
    ScanStatus.ERROR: {ScanStatus.CHECKING},
    ScanStatus.COMPLETE: set(),
}


class ScanRecord(BaseModel):
    """Result row for one domain."""

    domain: str
    status: ScanStatus = ScanStatus.QUEUED
    archived: Optional[bool] = None
    closest_snapshot_url: Optional[str] = None
    closest_snapshot_timestamp: Optional[str] = None
    first_year: Optional[int] = None
    last_year: Optional[int] = None
    years_span: Optional[str] = None
    total_snapshot_years: Optional[int] = None
    latency_ms: int = 0
    error_detail: Optional[str] = None
    attempts: int = 0

    @property
    def display_status(self) -> str:
        """archived / not_found for finished lookups, otherwise the raw status."""
        if self.status == ScanStatus.COMPLETE:
            return "archived" if self.archived else "not_found"
        return self.status.value


class RunStats(BaseModel):
    """Aggregate counters over all records in a run."""

    completed_count: int = 0
    error_count: int = 0
    total_count: int = 0
    average_latency_ms: float = 0.0

    @property
    def done_count(self) -> int:
        return self.completed_count + self.error_count

    @property
    def percent(self) -> int:
        if not self.total_count:
            return 0
        return round(self.done_count / self.total_count * 100)


class BatchCursor(BaseModel):
    """Progress marker while a scan is in flight."""

    current_batch_index: int
    total_batches: int


class ScanState:
    """Owns every ScanRecord and the RunStats for one run.

    All mutation goes through the mark_* methods, which are synchronous so a
    record update can never interleave with another coroutine. Readers get
    copies via snapshot() and stats.
    """

    def __init__(self, domains: Iterable[str]):
        self._records: dict[str, ScanRecord] = {}
        for domain in domains:
            if domain not in self._records:
                self._records[domain] = ScanRecord(domain=domain)
        self._stats = RunStats(total_count=len(self._records))
        self.cursor: Optional[BatchCursor] = None
        self.batches_processed = 0
        self.cancelled = False

    def __len__(self) -> int:
        return len(self._records)

    @property
    def domains(self) -> list[str]:
        return list(self._records)

    @property
    def stats(self) -> RunStats:
        return self._stats.model_copy()

    def get(self, domain: str) -> ScanRecord:
        return self._records[domain].model_copy()

    def snapshot(self) -> list[ScanRecord]:
        """Copies of all records in extraction order."""
        return [r.model_copy() for r in self._records.values()]

    def domains_with_status(self, status: ScanStatus) -> list[str]:
        return [d for d, r in self._records.items() if r.status == status]

    # =========================================================================
    # Record updates
    # =========================================================================

    def mark_checking(self, domain: str) -> ScanRecord:
        record = self._records[domain]
        self._transition(record, ScanStatus.CHECKING)
        self._recompute()
        return record.model_copy()

    def mark_attempt(self, domain: str, attempt: int) -> None:
        self._records[domain].attempts = attempt

    def mark_complete(
        self,
        domain: str,
        lookup: SnapshotLookup,
        history: Optional[HistoryEnrichment] = None,
    ) -> ScanRecord:
        """Apply a successful lookup (and enrichment, if any) to a record.

        Enrichment fields that came back None keep their previous values.
        """
        record = self._records[domain]
        self._transition(record, ScanStatus.COMPLETE)
        record.archived = lookup.archived
        record.closest_snapshot_url = lookup.closest_url
        record.closest_snapshot_timestamp = lookup.closest_timestamp
        record.latency_ms = lookup.latency_ms
        record.error_detail = None
        if history is not None:
            for field in ("first_year", "last_year", "years_span", "total_snapshot_years"):
                value = getattr(history, field)
                if value is not None:
                    setattr(record, field, value)
        self._recompute()
        return record.model_copy()

    def mark_error(self, domain: str, detail: str) -> ScanRecord:
        record = self._records[domain]
        self._transition(record, ScanStatus.ERROR)
        record.latency_ms = 0
        record.error_detail = detail
        self._recompute()
        return record.model_copy()

    def _transition(self, record: ScanRecord, new_status: ScanStatus) -> None:
        if new_status not in _TRANSITIONS[record.status]:
            raise ValueError(
                f"Invalid transition for {record.domain}: {record.status.value} -> {new_status.value}"
            )
        record.status = new_status

    def _recompute(self) -> None:
        completed = [r for r in self._records.values() if r.status == ScanStatus.COMPLETE]
        errors = sum(1 for r in self._records.values() if r.status == ScanStatus.ERROR)
        average = sum(r.latency_ms for r in completed) / len(completed) if completed else 0.0
        self._stats = RunStats(
            completed_count=len(completed),
            error_count=errors,
            total_count=len(self._records),
            average_latency_ms=average,
        )
