"""Wayback CDX timestamp-index queries.

Three query variants against the CDX server:
- first: earliest 200 capture
- last: latest 200 capture
- year: one row per year with at least one 200 capture

The history client combines them into first/last year, span, and year count.
The relay reuses the same parameters and forwards the raw JSON.
"""

import asyncio
from enum import Enum
from typing import Any, Optional

import httpx
from loguru import logger

from lib.wayback.errors import EnrichmentError, RelayUpstreamError
from lib.wayback.models import HistoryEnrichment

CDX_URL = "https://web.archive.org/cdx/search/cdx"


class CdxQuery(str, Enum):
    """Supported CDX query variants."""

    FIRST = "first"
    LAST = "last"
    YEAR = "year"


def build_cdx_params(domain: str, query: CdxQuery) -> dict:
    """Build CDX query parameters for a domain."""
    params = {
        "url": domain,
        "output": "json",
        "fl": "timestamp",
        "filter": "statuscode:200",
    }
    if query == CdxQuery.FIRST:
        params.update({"collapse": "digest", "limit": 1, "sort": "ascending"})
    elif query == CdxQuery.LAST:
        params.update({"collapse": "digest", "limit": 1, "sort": "descending"})
    elif query == CdxQuery.YEAR:
        # One row per distinct year already excludes duplicate digests
        params["collapse"] = "timestamp:4"
    else:
        raise ValueError(f"Unknown CDX query: {query}")
    return params


def _parse_rows(resp: httpx.Response) -> list[list]:
    """Decode a CDX JSON body into rows. Empty body means no captures."""
    if not resp.text.strip():
        return []
    data = resp.json()
    if not isinstance(data, list) or not all(isinstance(row, list) for row in data):
        raise ValueError("CDX body is not a list of rows")
    return data


def _year_from_rows(rows: list[list]) -> Optional[int]:
    """Year prefix of the first data row's timestamp (row 0 is the header)."""
    if len(rows) < 2 or not rows[1]:
        return None
    ts = str(rows[1][0])
    if len(ts) < 4 or not ts[:4].isdigit():
        return None
    return int(ts[:4])


class HistoryClient:
    """Derives capture history for a domain from the CDX index."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = CDX_URL,
        timeout: float = 15.0,
    ):
        self.client = client
        self.base_url = base_url
        self.timeout = timeout

    async def query(self, domain: str, query: CdxQuery) -> list[list]:
        """Run one CDX query and return its rows (header included)."""
        resp = await self.client.get(
            self.base_url,
            params=build_cdx_params(domain, query),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return _parse_rows(resp)

    async def fetch(self, domain: str) -> HistoryEnrichment:
        """Fetch first/last/year data for a domain.

        A failed query only blanks its own fields.

        Raises:
            EnrichmentError: if all three queries failed.
        """
        queries = [CdxQuery.FIRST, CdxQuery.LAST, CdxQuery.YEAR]
        results = await asyncio.gather(
            *(self.query(domain, q) for q in queries),
            return_exceptions=True,
        )

        rows: dict[CdxQuery, list[list]] = {}
        failures: dict[str, str] = {}
        for q, result in zip(queries, results):
            if isinstance(result, (httpx.HTTPError, ValueError)):
                failures[q.value] = repr(result)
                logger.debug(f"CDX {q.value} query failed for {domain}: {result!r}")
            elif isinstance(result, Exception):
                failures[q.value] = repr(result)
                logger.warning(f"CDX {q.value} query raised unexpectedly for {domain}: {result!r}")
            elif isinstance(result, BaseException):
                raise result
            else:
                rows[q] = result

        if len(failures) == len(queries):
            raise EnrichmentError(domain, failures)

        first_year = _year_from_rows(rows[CdxQuery.FIRST]) if CdxQuery.FIRST in rows else None
        last_year = _year_from_rows(rows[CdxQuery.LAST]) if CdxQuery.LAST in rows else None

        years_span = None
        if first_year is not None and last_year is not None:
            years_span = f"{last_year - first_year} years"

        total_snapshot_years = None
        if CdxQuery.YEAR in rows:
            total_snapshot_years = max(0, len(rows[CdxQuery.YEAR]) - 1)

        return HistoryEnrichment(
            first_year=first_year,
            last_year=last_year,
            years_span=years_span,
            total_snapshot_years=total_snapshot_years,
        )


async def fetch_cdx_raw(
    client: httpx.AsyncClient,
    domain: str,
    query: CdxQuery,
    base_url: str = CDX_URL,
    timeout: float = 30.0,
) -> Any:
    """Fetch a CDX query and return the decoded JSON untouched.

    Raises:
        RelayUpstreamError: on transport failure, non-2xx status, or non-JSON body.
    """
    try:
        resp = await client.get(base_url, params=build_cdx_params(domain, query), timeout=timeout)
        resp.raise_for_status()
        if not resp.text.strip():
            return []
        return resp.json()
    except (httpx.HTTPError, ValueError) as e:
        raise RelayUpstreamError(str(e) or repr(e)) from e
