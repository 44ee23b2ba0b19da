"""FastAPI application for the regindex HTTP API.

Endpoints:
- GET   {prefix}       search/list the index (keyword, skip, limit)
- PATCH {prefix}       set the status of one (repository, tag) pair
- POST  {events_path}  receive a registry notification envelope
- GET   /health        liveness check

Handlers are plain ``def`` functions so each request runs on its own
worker thread; the IndexService they share is safe for that.
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from ..config import get_default_config
from ..domain import MAX_INT64, QueryArgs, parse_envelope
from ..exceptions import EventDecodeError, IndexServiceError, NotFoundError
from ..services import IndexService
from .models import EventsAppliedResponse, IndexRecordResponse, TagStatusRequest

logger = logging.getLogger(__name__)


class IndexJSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"


_INTEGER = re.compile(r"[+-]?[0-9]+")


def _atoi(value: Optional[str]) -> int:
    """Parse an integer query value.

    Absent, malformed or out of 64-bit range values are 0.
    """
    if value is None or not _INTEGER.fullmatch(value):
        return 0
    number = int(value)
    if not -MAX_INT64 - 1 <= number <= MAX_INT64:
        return 0
    return number


def get_service(request: Request) -> IndexService:
    return request.app.state.service


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        msg = error.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "malformed request body"


def build_router(prefix: str, events_path: str, max_limit: int) -> APIRouter:
    """Build the index and notification routes."""
    router = APIRouter(tags=["index"])

    @router.get(prefix, response_model=list[IndexRecordResponse], summary="Search the index")
    def get_page(
        request: Request,
        service: IndexService = Depends(get_service),
    ):
        """Return one page of repositories whose name contains keyword."""
        params = request.query_params
        limit = _atoi(params.get("limit"))
        if max_limit > 0 and limit > max_limit:
            limit = max_limit

        args = QueryArgs(
            keyword=params.get("keyword") or "",
            skip=_atoi(params.get("skip")),
            limit=limit,
        )
        page = service.get_page(args)
        return IndexJSONResponse(content=[record.to_dict() for record in page])

    @router.patch(prefix, status_code=204, summary="Set tag status")
    def set_tag_status(
        body: TagStatusRequest,
        service: IndexService = Depends(get_service),
    ):
        """Set the status of one (repository, tag) pair."""
        service.set_tag_status(body.repo, body.tag, body.status)
        return Response(status_code=204)

    @router.post(events_path, response_model=EventsAppliedResponse, summary="Receive registry events")
    async def receive_events(
        request: Request,
        service: IndexService = Depends(get_service),
    ):
        """Apply a notification envelope; a failure asks the sender to retry."""
        events = parse_envelope(await request.body())
        applied = await run_in_threadpool(service.write, events)
        return EventsAppliedResponse(applied=applied)

    return router


def register_error_handlers(app: FastAPI) -> None:
    """Map service errors to HTTP status codes."""

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": _validation_message(exc)})

    @app.exception_handler(EventDecodeError)
    async def event_decode_error(request: Request, exc: EventDecodeError):
        logger.warning(f"Rejected notification from {request.client.host if request.client else '-'}: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(IndexServiceError)
    async def service_error(request: Request, exc: IndexServiceError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(
    service: Optional[IndexService] = None,
    config: Optional[dict] = None,
) -> FastAPI:
    """
    Create the regindex API.

    Args:
        service: An open IndexService to serve; the caller keeps ownership
        config: Configuration dictionary; when no service is given one is
            opened at startup and closed at shutdown

    Returns:
        FastAPI application
    """
    config = config or get_default_config()
    server_config = config.get("server", {})
    index_config = config.get("index", {})

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if service is None:
            app.state.service = IndexService(config)
            try:
                yield
            finally:
                app.state.service.close()
        else:
            yield

    app = FastAPI(
        title="regindex API",
        description="Searchable index of registry repositories, kept current from registry notifications.",
        version="0.1.0",
        lifespan=lifespan,
    )
    if service is not None:
        app.state.service = service

    register_error_handlers(app)
    app.include_router(build_router(
        prefix=server_config.get("prefix", "/v2/_index"),
        events_path=server_config.get("events_path", "/events"),
        max_limit=int(index_config.get("max_limit") or 0),
    ))

    @app.get("/health", tags=["meta"])
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
