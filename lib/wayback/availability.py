"""Wayback Machine availability lookup.

One GET to archive.org/wayback/available per domain, returning whether a
snapshot exists and which capture is closest.

Usage:
    async with httpx.AsyncClient() as client:
        lookup = await SnapshotLookupClient(client).lookup("example.com")
"""

import time

import httpx
from pydantic import ValidationError

from lib.wayback.errors import ArchiveLookupError
from lib.wayback.models import AvailabilityResponse, SnapshotLookup

AVAILABILITY_URL = "https://archive.org/wayback/available"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class SnapshotLookupClient:
    """Availability API client. Never caches; every call hits the network."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = AVAILABILITY_URL,
        timeout: float = 15.0,
    ):
        self.client = client
        self.base_url = base_url
        self.timeout = timeout

    async def lookup(self, domain: str) -> SnapshotLookup:
        """Look up the closest snapshot for a domain.

        Raises:
            ArchiveLookupError: on transport failure, non-2xx status,
                or a body that doesn't match the availability shape.
        """
        start = time.perf_counter()
        try:
            resp = await self.client.get(
                self.base_url,
                params={"url": domain},
                headers=NO_CACHE_HEADERS,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise ArchiveLookupError(domain, f"Request failed: {e!r}") from e
        latency_ms = max(1, round((time.perf_counter() - start) * 1000))

        if not resp.is_success:
            raise ArchiveLookupError(domain, f"HTTP {resp.status_code}")

        try:
            payload = AvailabilityResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ArchiveLookupError(domain, "Malformed availability response") from e

        closest = payload.archived_snapshots.closest
        return SnapshotLookup(
            archived=closest is not None,
            closest_url=closest.url if closest else None,
            closest_timestamp=closest.timestamp if closest else None,
            available_url=payload.url or domain,
            latency_ms=latency_ms,
        )
