"""Archive Check Service.

Extracts domains from pasted text, scans them against the Wayback Machine,
and exports the results. Owns the shared HTTP client for each run.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import httpx
from loguru import logger

from lib.domains.extractor import extract_domains
from lib.wayback.availability import SnapshotLookupClient
from lib.wayback.cdx import HistoryClient
from services.archive_check.config import ScanConfig
from services.archive_check.export import write_csv
from services.archive_check.models import ScanState
from services.archive_check.scanner import BatchScanner, ProgressCallback


class IService(ABC):
    """Archive check service interface."""

    @abstractmethod
    def extract(self, text: str, scan_embedded: bool = False) -> list[str]:
        """Extract unique valid domains from text."""
        pass

    @abstractmethod
    async def check_domains(
        self,
        domains: list[str],
        on_progress: Optional[ProgressCallback] = None,
        retry_errors: bool = False,
    ) -> ScanState:
        """Scan a domain list and return the final state."""
        pass

    @abstractmethod
    async def check_text(
        self,
        text: str,
        scan_embedded: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        retry_errors: bool = False,
    ) -> ScanState:
        """Extract domains from text and scan them."""
        pass

    @abstractmethod
    def request_cancel(self) -> None:
        """Cancel the current run cooperatively."""
        pass

    @abstractmethod
    def export(self, state: ScanState, path) -> Path:
        """Write a run's records to CSV."""
        pass


class Service(IService):
    """Default implementation backed by httpx and the public Wayback APIs."""

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or ScanConfig()
        # Injected clients are borrowed; otherwise one is created per run
        self._client = client
        self._scanner: Optional[BatchScanner] = None
        self._cancel_requested = False

    def extract(self, text: str, scan_embedded: bool = False) -> list[str]:
        return extract_domains(text, scan_embedded=scan_embedded, limit=self.config.max_domains)

    async def check_text(
        self,
        text: str,
        scan_embedded: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        retry_errors: bool = False,
    ) -> ScanState:
        domains = self.extract(text, scan_embedded=scan_embedded)
        logger.info(f"Parsed {len(domains)} domains from input")
        return await self.check_domains(domains, on_progress=on_progress, retry_errors=retry_errors)

    async def check_domains(
        self,
        domains: list[str],
        on_progress: Optional[ProgressCallback] = None,
        retry_errors: bool = False,
    ) -> ScanState:
        # Cleared before any await: a cancel during client setup applies to this run
        self._cancel_requested = False
        if self._client is not None:
            return await self._run(self._client, domains, on_progress, retry_errors)

        async with httpx.AsyncClient(
            timeout=self.config.request_timeout,
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
        ) as client:
            return await self._run(client, domains, on_progress, retry_errors)

    def request_cancel(self) -> None:
        self._cancel_requested = True
        if self._scanner is not None:
            self._scanner.request_cancel()

    def export(self, state: ScanState, path) -> Path:
        return write_csv(state.snapshot(), path)

    async def _run(
        self,
        client: httpx.AsyncClient,
        domains: list[str],
        on_progress: Optional[ProgressCallback],
        retry_errors: bool,
    ) -> ScanState:
        lookup = SnapshotLookupClient(
            client,
            base_url=self.config.availability_url,
            timeout=self.config.request_timeout,
        )
        history = None
        if self.config.enrich_on_archived:
            history = HistoryClient(
                client,
                base_url=self.config.cdx_url,
                timeout=self.config.request_timeout,
            )

        self._scanner = BatchScanner(lookup, history=history, config=self.config)
        if self._cancel_requested:
            self._scanner.request_cancel()
        try:
            state = await self._scanner.run(domains, on_progress=on_progress)
            if retry_errors and not state.cancelled and not self._cancel_requested and state.stats.error_count:
                state = await self._scanner.retry_errors(state, on_progress=on_progress)
            return state
        finally:
            self._scanner = None
