"""Wayback Machine clients.

- Availability API: closest snapshot for a domain
- CDX index: first/last capture and yearly coverage
"""

from .availability import AVAILABILITY_URL, SnapshotLookupClient
from .cdx import CDX_URL, CdxQuery, HistoryClient, build_cdx_params, fetch_cdx_raw
from .errors import (
    ArchiveLookupError,
    EnrichmentError,
    RelayUpstreamError,
    RelayValidationError,
    WaybackError,
)
from .models import HistoryEnrichment, SnapshotLookup, format_timestamp
from .retry import RetryPolicy

__all__ = [
    "AVAILABILITY_URL",
    "CDX_URL",
    "ArchiveLookupError",
    "CdxQuery",
    "EnrichmentError",
    "HistoryClient",
    "HistoryEnrichment",
    "RelayUpstreamError",
    "RelayValidationError",
    "RetryPolicy",
    "SnapshotLookup",
    "SnapshotLookupClient",
    "WaybackError",
    "build_cdx_params",
    "fetch_cdx_raw",
    "format_timestamp",
]
