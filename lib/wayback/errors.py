"""Errors raised by the Wayback Machine clients."""

from typing import Optional


class WaybackError(Exception):
    """Base class for Wayback client failures."""


class ArchiveLookupError(WaybackError):
    """Availability lookup failed (network, HTTP status, or unparseable body)."""

    def __init__(self, domain: str, reason: str):
        self.domain = domain
        self.reason = reason
        super().__init__(reason)


class EnrichmentError(WaybackError):
    """Every timestamp-index query for a domain failed."""

    def __init__(self, domain: str, failures: Optional[dict] = None):
        self.domain = domain
        self.failures = failures or {}
        details = ", ".join(f"{k}: {v}" for k, v in self.failures.items())
        super().__init__(f"All CDX queries failed for {domain}" + (f" ({details})" if details else ""))


class RelayUpstreamError(WaybackError):
    """The relay could not fetch or decode the upstream CDX response."""


class RelayValidationError(WaybackError):
    """Relay request is missing a parameter or carries an invalid one."""
