"""FastAPI application for the CDX relay.

Run:
    uv run uvicorn api.relay.app:app --reload --port 3001
"""

import logging
from contextlib import asynccontextmanager

logging.basicConfig(level=logging.INFO)

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.relay.routes import router
from lib.wayback.errors import RelayUpstreamError, RelayValidationError

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
        app.state.http_client = client
        yield


app = FastAPI(title="Archive Check CDX Relay", lifespan=lifespan)


@app.exception_handler(RelayValidationError)
async def handle_validation_error(request: Request, exc: RelayValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(RelayUpstreamError)
async def handle_upstream_error(request: Request, exc: RelayUpstreamError):
    log.warning(f"CDX upstream failed: {exc}")
    return JSONResponse(status_code=500, content={"error": "Fetch failed", "details": str(exc)})


app.include_router(router)
