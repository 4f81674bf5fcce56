"""Web service for sheetdiff.

Endpoints:
- GET /compare/{old_id}/{new_id} - HTML page comparing two spreadsheets
- GET /api/health                - Health check
- GET /api/health/ready          - Readiness check

Errors are returned as plain text with a non-success status and logged; a
comparison page is only rendered when the whole comparison succeeded.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable
from typing import TypeVar

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from loguru import logger
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from sheetdiff.client import SheetsDiffClient, create_transport
from sheetdiff.config import Settings, get_settings
from sheetdiff.exceptions import FetchError, SheetDiffError, ValidationError
from sheetdiff.logging import configure_logging
from sheetdiff.render import render_html_page
from sheetdiff.transport import NotFoundError, Transport

T = TypeVar("T")

# Seconds between client disconnect checks while a comparison runs
DISCONNECT_POLL_INTERVAL = 0.25

limiter = Limiter(key_func=get_remote_address)

router = APIRouter()


async def get_transport(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[Transport]:
    """Provide a transport for one request and close it afterwards."""
    try:
        transport = create_transport(settings)
    except ValueError as e:
        logger.error(f"Transport unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e)) from e
    try:
        yield transport
    finally:
        await transport.close()


async def run_until_disconnected(request: Request, work: Awaitable[T]) -> T | None:
    """Await `work`, cancelling it if the client goes away first.

    Returns None when the client disconnected.
    """
    task = asyncio.ensure_future(work)

    async def watch() -> None:
        while not await request.is_disconnected():
            await asyncio.sleep(DISCONNECT_POLL_INTERVAL)

    watcher = asyncio.ensure_future(watch())
    try:
        await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        watcher.cancel()

    if not task.done():
        task.cancel()
        logger.warning(f"Client disconnected, cancelled {request.url.path}")
        return None
    return task.result()


def _rate_limit() -> str:
    return get_settings().rate_limit


@router.get("/compare/{old_id}/{new_id}", response_class=HTMLResponse)
@limiter.limit(_rate_limit)
async def compare(
    request: Request,
    old_id: str,
    new_id: str,
    transport: Transport = Depends(get_transport),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Compare two spreadsheets and render the result as HTML."""
    client = SheetsDiffClient(transport, settings)
    result = await run_until_disconnected(request, client.compare(old_id, new_id))
    if result is None:
        return Response(status_code=499)
    return HTMLResponse(render_html_page(result))


@router.get("/api/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "sheetdiff"}


@router.get("/api/health/ready")
async def readiness_check() -> dict:
    """Readiness check for Kubernetes/Cloud Run."""
    settings = get_settings()
    return {
        "status": "ready",
        "service": "sheetdiff",
        "environment": settings.environment,
    }


async def sheetdiff_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """Render comparison failures as plain text."""
    status_code = 500
    if isinstance(exc, ValidationError):
        status_code = 400
    elif isinstance(exc, FetchError):
        status_code = 404 if isinstance(exc.__cause__, NotFoundError) else 502

    logger.error(
        "Comparison failed: {error}",
        error=str(exc),
        path=request.url.path,
        status_code=status_code,
    )
    return PlainTextResponse(str(exc), status_code=status_code)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    """Render HTTP errors raised by routes and dependencies as plain text."""
    return PlainTextResponse(
        str(exc.detail), status_code=exc.status_code, headers=exc.headers
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """Global handler for unhandled exceptions."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "error": str(exc)},
    )
    return PlainTextResponse("Internal server error", status_code=500)


def rate_limit_exceeded_handler(request: Request, _exc: Exception) -> PlainTextResponse:
    """Handle rate limit exceeded errors."""
    logger.warning(
        "Rate limit exceeded",
        extra={"path": request.url.path, "client": get_remote_address(request)},
    )
    return PlainTextResponse(
        "Rate limit exceeded. Please try again later.", status_code=429
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    configure_logging(
        is_production=settings.is_production,
        log_level=settings.log_level,
    )

    app = FastAPI(
        title="sheetdiff",
        description="Compare the sheets and cell contents of two Google Sheets",
        version="0.1.0",
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if not settings.is_production else None,
    )

    app.add_exception_handler(SheetDiffError, sheetdiff_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.state.limiter = limiter
    app.include_router(router)

    return app


app = create_app()
