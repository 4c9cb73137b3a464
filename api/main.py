"""agentdesk FastAPI application and its startup wiring."""

from __future__ import annotations

import os
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from agent.client import create_client
from api.deps import get_games, get_interviews, init_agent_client, init_store
from api.hr import hr_router
from api.routes import metrics_router, router
from api.sessions import games_router, interviews_router
from monitoring.logging import REQUEST_ID_HEADER, bind_request_context, configure_logging
from storage.kv import JsonFileStore, create_store

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # noqa: ARG001
    """Startup and shutdown events."""
    configure_logging()

    logger.info("agentdesk_starting")

    client = create_client()
    init_agent_client(client)
    logger.info(
        "agent_client_initialized",
        provider=type(client).__name__,
        configured=client.configured,
    )

    # JSON file when AGENTDESK_STORE_PATH is set, in-memory otherwise
    store = create_store()
    init_store(store)
    logger.info(
        "store_initialized",
        persistent=isinstance(store, JsonFileStore),
    )

    yield

    get_interviews().clear()
    get_games().clear()
    logger.info("agentdesk_shutdown")


app = FastAPI(
    title="agentdesk",
    description="HR screening and game master apps backed by a hosted conversational agent",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS_ALLOW_ORIGINS: comma-separated, "*" by default
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.environ.get("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next: Any) -> Response:
    request_id = bind_request_context(
        request.headers.get(REQUEST_ID_HEADER),
        method=request.method,
        path=request.url.path,
    )
    start = time.perf_counter()
    response: Response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    duration_ms = (time.perf_counter() - start) * 1000

    logger.info(
        "http_request",
        status=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    return response


# Error handling
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "details": str(exc)},
    )


# Include routers
app.include_router(router)
app.include_router(interviews_router)
app.include_router(games_router)
app.include_router(hr_router)
app.include_router(metrics_router)
