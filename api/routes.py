"""Agent proxy route plus health and metrics endpoints.

The proxy keeps the upstream API key on the server: the browser posts a
prompt and an agent id, and gets back the agent's raw reply. Failures come
back as ``{"success": false, "error": ...}`` with a matching status code.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response as StarletteResponse

from agent.client import AgentHTTPError, AgentNotConfiguredError
from api.deps import get_agent_client, get_games, get_interviews
from monitoring.metrics import agentdesk_proxy_requests_total

logger = structlog.get_logger()

router = APIRouter(prefix="/api")
metrics_router = APIRouter()

CORS_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _failure(status_code: int, outcome: str, **content: Any) -> JSONResponse:
    agentdesk_proxy_requests_total.labels(outcome=outcome).inc()
    return JSONResponse(status_code=status_code, content={"success": False, **content})


@router.post("/agent")
async def proxy_agent(request: Request) -> JSONResponse:
    """Forward a prompt to the external agent using the server-held credential."""
    client = get_agent_client()
    if not client.configured:
        logger.error("agent_proxy_not_configured")
        return _failure(500, "not_configured", error="LYZR_API_KEY not configured")

    try:
        body = await request.json()
    except ValueError as e:
        return _failure(500, "error", error="Internal server error", details=str(e))

    if not isinstance(body, dict):
        body = {}
    message = body.get("message")
    agent_id = body.get("agent_id")
    if not message or not agent_id:
        return _failure(
            400,
            "invalid",
            error="Missing required fields: message and agent_id are required",
        )

    try:
        reply = await client.send(
            message,
            agent_id,
            user_id=body.get("user_id"),
            session_id=body.get("session_id"),
        )
    except AgentNotConfiguredError as e:
        return _failure(500, "not_configured", error=e.message)
    except AgentHTTPError as e:
        return _failure(e.status_code, "upstream_error", error=e.message, details=e.details)
    except Exception as e:
        logger.error("agent_proxy_error", agent_id=agent_id, error=str(e))
        return _failure(500, "error", error="Internal server error", details=str(e))

    agentdesk_proxy_requests_total.labels(outcome="success").inc()
    logger.info("agent_proxy_request", agent_id=agent_id, session_id=reply.session_id)
    return JSONResponse(
        content={
            "success": True,
            "response": reply.response,
            "agent_id": reply.agent_id,
            "user_id": reply.user_id,
            "session_id": reply.session_id,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


@router.options("/agent")
async def proxy_agent_preflight() -> StarletteResponse:
    """Answer CORS preflight for the proxy route."""
    return StarletteResponse(status_code=200, headers=CORS_PREFLIGHT_HEADERS)


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Service health check."""
    client = get_agent_client()
    return {
        "status": "healthy",
        "agent_provider": type(client).__name__,
        "agent_configured": client.configured,
        "active_interviews": len(get_interviews()),
        "active_games": len(get_games()),
    }


@metrics_router.get("/metrics")
async def prometheus_metrics() -> StarletteResponse:
    """Expose Prometheus metrics."""
    return StarletteResponse(
        content=generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
