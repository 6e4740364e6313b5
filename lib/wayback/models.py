"""Response and result models for the Wayback Machine APIs."""

from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Availability API (archive.org/wayback/available)
# =============================================================================


class ClosestSnapshot(BaseModel):
    """Nearest capture reported by the availability API."""

    url: str
    timestamp: str  # YYYYMMDDHHMMSS
    available: bool = True
    status: Optional[str] = None


class ArchivedSnapshots(BaseModel):
    closest: Optional[ClosestSnapshot] = None


class AvailabilityResponse(BaseModel):
    """Body of an availability response.

    `archived_snapshots` is required; an empty object means "not archived".
    """

    archived_snapshots: ArchivedSnapshots
    url: Optional[str] = None


# =============================================================================
# Client results
# =============================================================================


class SnapshotLookup(BaseModel):
    """Result of one availability lookup."""

    archived: bool
    closest_url: Optional[str] = None
    closest_timestamp: Optional[str] = None
    available_url: Optional[str] = None
    latency_ms: int = Field(..., ge=1)


class HistoryEnrichment(BaseModel):
    """Capture history derived from the CDX timestamp index.

    Each field is None when the query behind it failed or returned nothing.
    """

    first_year: Optional[int] = None
    last_year: Optional[int] = None
    years_span: Optional[str] = None
    total_snapshot_years: Optional[int] = None


def format_timestamp(ts: Optional[str]) -> str:
    """Format a 14-digit Wayback timestamp as `YYYY-MM-DD HH:MM:SS`."""
    if not ts:
        return "—"
    if len(ts) < 14 or not ts[:14].isdigit():
        return ts
    return f"{ts[0:4]}-{ts[4:6]}-{ts[6:8]} {ts[8:10]}:{ts[10:12]}:{ts[12:14]}"
