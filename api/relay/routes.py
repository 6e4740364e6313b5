"""CDX relay routes.

Keeps timestamp-index calls server-side so browsers never hit the CDX
server directly.
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Request

from lib.wayback.cdx import CdxQuery, fetch_cdx_raw
from lib.wayback.errors import RelayValidationError

log = logging.getLogger(__name__)

router = APIRouter()


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared upstream client created in the app lifespan."""
    return request.app.state.http_client


@router.get("/cdx")
async def cdx_relay(
    url: Optional[str] = None,
    type: str = "first",
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Proxy one CDX query (`type` = first | last | year) and return its raw JSON."""
    if not url:
        raise RelayValidationError("Missing url param")
    try:
        query = CdxQuery(type)
    except ValueError:
        raise RelayValidationError("Invalid type param")

    log.info(f"CDX relay: {query.value} {url}")
    return await fetch_cdx_raw(client, url, query)


@router.get("/health")
async def health():
    return {"status": "ok"}
