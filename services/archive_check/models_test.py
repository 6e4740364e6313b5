"""Tests for scan records and state."""

import pytest

from lib.wayback.models import HistoryEnrichment, SnapshotLookup
from services.archive_check.models import RunStats, ScanRecord, ScanState, ScanStatus


def _hit(latency: int = 100, archived: bool = True) -> SnapshotLookup:
    if not archived:
        return SnapshotLookup(archived=False, latency_ms=latency)
    return SnapshotLookup(
        archived=True,
        closest_url="https://web.archive.org/web/20010101000000/http://example.com",
        closest_timestamp="20010101000000",
        latency_ms=latency,
    )


class TestScanRecord:
    """Tests for ScanRecord."""

    def test_defaults(self):
        record = ScanRecord(domain="example.com")
        assert record.status == ScanStatus.QUEUED
        assert record.archived is None
        assert record.latency_ms == 0
        assert record.attempts == 0

    def test_display_status(self):
        assert ScanRecord(domain="a.com").display_status == "queued"
        assert ScanRecord(domain="a.com", status=ScanStatus.ERROR).display_status == "error"
        assert ScanRecord(domain="a.com", status=ScanStatus.COMPLETE, archived=True).display_status == "archived"
        assert ScanRecord(domain="a.com", status=ScanStatus.COMPLETE, archived=False).display_status == "not_found"


class TestRunStats:
    """Tests for RunStats."""

    def test_percent(self):
        stats = RunStats(completed_count=3, error_count=1, total_count=8)
        assert stats.done_count == 4
        assert stats.percent == 50

    def test_percent_empty(self):
        assert RunStats().percent == 0


class TestScanState:
    """Tests for ScanState transitions and stats."""

    def test_initial_state(self):
        state = ScanState(["a.com", "b.com", "a.com"])
        assert len(state) == 2
        assert state.domains == ["a.com", "b.com"]
        assert state.stats.total_count == 2
        assert all(r.status == ScanStatus.QUEUED for r in state.snapshot())

    def test_complete_flow(self):
        state = ScanState(["example.com"])

        state.mark_checking("example.com")
        assert state.get("example.com").status == ScanStatus.CHECKING

        record = state.mark_complete("example.com", _hit(120))

        assert record.status == ScanStatus.COMPLETE
        assert record.archived is True
        assert record.closest_snapshot_timestamp == "20010101000000"
        assert record.latency_ms == 120
        assert state.stats.completed_count == 1
        assert state.stats.average_latency_ms == 120

    def test_error_flow(self):
        state = ScanState(["example.com"])
        state.mark_checking("example.com")

        record = state.mark_error("example.com", "HTTP 503")

        assert record.status == ScanStatus.ERROR
        assert record.error_detail == "HTTP 503"
        assert record.latency_ms == 0
        assert state.stats.error_count == 1

    def test_average_excludes_errors(self):
        state = ScanState(["a.com", "b.com", "c.com"])
        for d in state.domains:
            state.mark_checking(d)
        state.mark_complete("a.com", _hit(10))
        state.mark_complete("b.com", _hit(20, archived=False))
        state.mark_error("c.com", "HTTP 500")

        stats = state.stats
        assert stats.completed_count == 2
        assert stats.error_count == 1
        assert stats.average_latency_ms == 15

    def test_retry_after_error(self):
        state = ScanState(["a.com"])
        state.mark_checking("a.com")
        state.mark_error("a.com", "HTTP 503")

        state.mark_checking("a.com")
        assert state.stats.error_count == 0

        record = state.mark_complete("a.com", _hit(50))
        assert record.error_detail is None
        assert state.stats.completed_count == 1

    def test_rejects_skipping_checking(self):
        state = ScanState(["a.com"])
        with pytest.raises(ValueError):
            state.mark_complete("a.com", _hit())

    def test_rejects_leaving_complete(self):
        state = ScanState(["a.com"])
        state.mark_checking("a.com")
        state.mark_complete("a.com", _hit())
        with pytest.raises(ValueError):
            state.mark_checking("a.com")

    def test_history_fields_applied(self):
        state = ScanState(["a.com"])
        state.mark_checking("a.com")
        history = HistoryEnrichment(first_year=2001, last_year=None, years_span=None, total_snapshot_years=20)

        record = state.mark_complete("a.com", _hit(), history)

        assert record.first_year == 2001
        assert record.last_year is None
        assert record.total_snapshot_years == 20

    def test_snapshot_returns_copies(self):
        state = ScanState(["a.com"])
        copy = state.snapshot()[0]
        copy.status = ScanStatus.COMPLETE
        assert state.get("a.com").status == ScanStatus.QUEUED

    def test_stats_returns_copy(self):
        state = ScanState(["a.com"])
        stats = state.stats
        stats.completed_count = 99
        assert state.stats.completed_count == 0

    def test_domains_with_status(self):
        state = ScanState(["a.com", "b.com"])
        state.mark_checking("b.com")
        state.mark_error("b.com", "x")
        assert state.domains_with_status(ScanStatus.ERROR) == ["b.com"]
        assert state.domains_with_status(ScanStatus.QUEUED) == ["a.com"]
