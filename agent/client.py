"""Client layer for the hosted conversational agent, with Lyzr and mock implementations."""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

from monitoring.metrics import record_upstream_call

logger = structlog.get_logger()

DEFAULT_LYZR_API_URL = "https://agent-prod.studio.lyzr.ai/v3/inference/chat/"
DEFAULT_TIMEOUT_SECONDS = 60.0


class AgentError(Exception):
    """Failure talking to the external agent."""

    def __init__(self, message: str, details: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class AgentNotConfiguredError(AgentError):
    """No API key is available for the upstream agent."""


class AgentHTTPError(AgentError):
    """The upstream agent answered with a non-2xx status."""

    def __init__(self, status_code: int, details: str = "") -> None:
        super().__init__(f"API returned status {status_code}", details)
        self.status_code = status_code


@dataclass
class AgentReply:
    """Raw reply from the agent plus the identifiers used for the call."""

    response: Any
    agent_id: str
    user_id: str
    session_id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def text(self) -> str:
        """Reply as text; non-string payloads are re-serialised as JSON."""
        if self.response is None:
            return ""
        if isinstance(self.response, str):
            return self.response
        return json.dumps(self.response)


@runtime_checkable
class AgentClient(Protocol):
    """Protocol defining the interface for agent clients."""

    @property
    def configured(self) -> bool: ...

    async def send(
        self,
        message: str,
        agent_id: str,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> AgentReply: ...


def _default_ids(user_id: str | None, session_id: str | None) -> tuple[str, str]:
    now_ms = int(time.time() * 1000)
    return user_id or f"user-{now_ms}", session_id or f"session-{now_ms}"


class LyzrClient:
    """Agent client backed by the Lyzr inference chat API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.environ.get("LYZR_API_KEY", "")
        self._api_url = api_url or os.environ.get("LYZR_API_URL", DEFAULT_LYZR_API_URL)
        self._timeout = timeout or float(
            os.environ.get("AGENT_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
        )
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def send(
        self,
        message: str,
        agent_id: str,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> AgentReply:
        if not self._api_key:
            raise AgentNotConfiguredError("LYZR_API_KEY not configured")

        user_id, session_id = _default_ids(user_id, session_id)
        payload = {
            "user_id": user_id,
            "agent_id": agent_id,
            "session_id": session_id,
            "message": message,
        }

        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                api_response = await client.post(
                    self._api_url,
                    json=payload,
                    headers={"x-api-key": self._api_key},
                )
        except httpx.HTTPError as e:
            logger.error("agent_api_unreachable", agent_id=agent_id, error=str(e))
            raise AgentError("Failed to reach agent API", details=str(e)) from e
        duration = time.perf_counter() - start

        record_upstream_call(api_response.status_code, duration)

        if not api_response.is_success:
            logger.warning(
                "agent_api_error",
                agent_id=agent_id,
                status=api_response.status_code,
            )
            raise AgentHTTPError(api_response.status_code, details=api_response.text)

        try:
            data = api_response.json()
        except ValueError as e:
            raise AgentError(
                "Agent API returned a non-JSON body",
                details=api_response.text[:500],
            ) from e

        logger.info(
            "agent_api_call",
            agent_id=agent_id,
            session_id=session_id,
            status=api_response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        return AgentReply(
            response=data.get("response") if isinstance(data, dict) else None,
            agent_id=agent_id,
            user_id=user_id,
            session_id=session_id,
        )


class MockAgentClient:
    """Mock agent client that returns pre-scripted replies for testing."""

    configured = True

    def __init__(self, responses: list[Any] | None = None) -> None:
        self._responses: list[Any] = responses or []
        self._call_index: int = 0
        self.call_history: list[dict[str, Any]] = []

    def add_response(self, response: Any) -> None:
        self._responses.append(response)

    async def send(
        self,
        message: str,
        agent_id: str,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> AgentReply:
        user_id, session_id = _default_ids(user_id, session_id)
        self.call_history.append({
            "message": message,
            "agent_id": agent_id,
            "user_id": user_id,
            "session_id": session_id,
        })

        if self._call_index < len(self._responses):
            response = self._responses[self._call_index]
            self._call_index += 1
        else:
            response = "Mock response (no scripted response available)"

        return AgentReply(
            response=response,
            agent_id=agent_id,
            user_id=user_id,
            session_id=session_id,
        )


def create_client(provider: str | None = None) -> AgentClient:
    """Factory function to create the appropriate agent client based on config."""
    provider = provider or os.environ.get("AGENT_PROVIDER", "lyzr")

    if provider == "lyzr":
        return LyzrClient()
    elif provider == "mock":
        return MockAgentClient()
    else:
        raise ValueError(f"Unknown agent provider: {provider}")
