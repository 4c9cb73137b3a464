"""Prometheus metrics for agentdesk observability."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# --- Proxy / upstream agent metrics ---

agentdesk_proxy_requests_total = Counter(
    "agentdesk_proxy_requests_total",
    "Total requests handled by the agent proxy route",
    ["outcome"],
)

agentdesk_upstream_responses_total = Counter(
    "agentdesk_upstream_responses_total",
    "Responses received from the external agent, by HTTP status",
    ["status"],
)

agentdesk_upstream_duration_seconds = Histogram(
    "agentdesk_upstream_duration_seconds",
    "Latency of calls to the external agent",
    buckets=[0.5, 1, 2.5, 5, 10, 30, 60],
)

# --- Extraction metrics ---

agentdesk_extractions_total = Counter(
    "agentdesk_extractions_total",
    "Agent replies run through tolerant extraction",
    ["purpose", "outcome"],
)

# --- Flow metrics ---

agentdesk_interviews_completed_total = Counter(
    "agentdesk_interviews_completed_total",
    "Interviews evaluated by the agent",
    ["rating"],
)

agentdesk_games_finished_total = Counter(
    "agentdesk_games_finished_total",
    "Games played to completion",
    ["game_type"],
)

agentdesk_active_sessions = Gauge(
    "agentdesk_active_sessions",
    "Interview and game sessions currently held in memory",
    ["kind"],
)


# --- Helper functions ---


def record_upstream_call(status_code: int, duration_seconds: float) -> None:
    """Record one round trip to the external agent."""
    agentdesk_upstream_responses_total.labels(status=str(status_code)).inc()
    agentdesk_upstream_duration_seconds.observe(duration_seconds)


def record_extraction(purpose: str, parsed: bool) -> None:
    """Count an extraction attempt; *parsed* is False when the default was used."""
    outcome = "parsed" if parsed else "fallback"
    agentdesk_extractions_total.labels(purpose=purpose, outcome=outcome).inc()
