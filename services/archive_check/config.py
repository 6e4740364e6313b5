"""
Archive check configuration models.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from lib.wayback.availability import AVAILABILITY_URL
from lib.wayback.cdx import CDX_URL
from lib.wayback.retry import RetryPolicy

ENV_PREFIX = "ARCHIVE_CHECK_"

DEFAULT_USER_AGENT = "archive-check/0.1 (+https://archive.org/help/wayback_api.php)"


class ScanConfig(BaseModel):
    """
    Configuration for one bulk scan run.

    Batch size, concurrency, retries, and pacing are all knobs here rather
    than constants in the scanner.
    """

    # Batching
    batch_size: int = Field(default=25, ge=1, le=1000, description="Domains per batch")
    concurrency: int = Field(default=10, ge=1, le=50, description="Concurrent lookups per batch")

    # Retries
    retry: RetryPolicy = Field(default_factory=RetryPolicy, description="Per-domain retry policy")

    # Pacing
    inter_batch_delay_ms: int = Field(
        default=1000, ge=0, description="Pause between batches to stay under rate limits"
    )

    # Enrichment
    enrich_on_archived: bool = Field(
        default=True, description="Query CDX history for domains that have a snapshot"
    )

    # HTTP
    request_timeout: float = Field(default=15.0, gt=0, description="Per-request timeout in seconds")
    availability_url: str = Field(default=AVAILABILITY_URL, description="Availability API endpoint")
    cdx_url: str = Field(default=CDX_URL, description="CDX index endpoint")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")

    # Input
    max_domains: int = Field(default=1000, ge=1, description="Cap on extracted domains per run")

    @classmethod
    def from_env(cls, **overrides) -> "ScanConfig":
        """Build config from ARCHIVE_CHECK_* env vars (and .env), then apply overrides.

        Overrides set to None are ignored so CLI defaults don't mask env values.
        Raw env strings are coerced by pydantic; bad values raise ValidationError.
        """
        load_dotenv()

        values: dict = {}
        int_fields = ("batch_size", "concurrency", "inter_batch_delay_ms", "max_domains")
        for name in int_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw:
                values[name] = raw

        timeout = os.getenv(f"{ENV_PREFIX}REQUEST_TIMEOUT")
        if timeout:
            values["request_timeout"] = timeout

        enrich = os.getenv(f"{ENV_PREFIX}ENRICH_ON_ARCHIVED")
        if enrich:
            values["enrich_on_archived"] = enrich.strip().lower() in ("1", "true", "yes", "on")

        for name in ("availability_url", "cdx_url", "user_agent"):
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw:
                values[name] = raw

        retry: dict = {}
        attempts = os.getenv(f"{ENV_PREFIX}MAX_ATTEMPTS")
        if attempts:
            retry["max_attempts"] = attempts
        backoff = os.getenv(f"{ENV_PREFIX}BACKOFF_MS")
        if backoff:
            retry["backoff_ms"] = backoff

        retry_overrides = overrides.pop("retry", None) or {}
        retry.update({k: v for k, v in retry_overrides.items() if v is not None})
        if retry:
            values["retry"] = RetryPolicy(**retry)

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def env_flag(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read an ARCHIVE_CHECK_* env var."""
    return os.getenv(f"{ENV_PREFIX}{name}", default)
