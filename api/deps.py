"""Shared application state and dependency injection for the API."""

from __future__ import annotations

from typing import Generic, TypeVar

from agent.client import AgentClient
from flows.game import GameFlow
from flows.interview import InterviewFlow
from flows.services import GameService, InterviewService
from monitoring.metrics import agentdesk_active_sessions
from storage.hr import HRRepository
from storage.kv import KeyValueStore, MemoryStore

F = TypeVar("F", InterviewFlow, GameFlow)


class SessionRegistry(Generic[F]):
    """In-memory sessions of one kind, mirrored into the active-sessions gauge."""

    def __init__(self, kind: str) -> None:
        self._sessions: dict[str, F] = {}
        self._gauge = agentdesk_active_sessions.labels(kind=kind)

    def add(self, flow: F) -> F:
        self._sessions[flow.id] = flow
        self._gauge.set(len(self._sessions))
        return flow

    def get(self, flow_id: str) -> F | None:
        return self._sessions.get(flow_id)

    def discard(self, flow_id: str) -> bool:
        removed = self._sessions.pop(flow_id, None) is not None
        self._gauge.set(len(self._sessions))
        return removed

    def clear(self) -> None:
        self._sessions.clear()
        self._gauge.set(0)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, flow_id: object) -> bool:
        return flow_id in self._sessions


_client: AgentClient | None = None
_store: KeyValueStore = MemoryStore()
_repository: HRRepository = HRRepository(_store)
_interviews: SessionRegistry[InterviewFlow] = SessionRegistry("interview")
_games: SessionRegistry[GameFlow] = SessionRegistry("game")


def init_agent_client(client: AgentClient) -> None:
    global _client
    _client = client


def init_store(store: KeyValueStore) -> None:
    global _store, _repository
    _store = store
    _repository = HRRepository(store)


def get_agent_client() -> AgentClient:
    assert _client is not None, "AgentClient not initialized"
    return _client


def get_store() -> KeyValueStore:
    return _store


def get_repository() -> HRRepository:
    return _repository


def get_interview_service() -> InterviewService:
    return InterviewService(get_agent_client(), get_repository())


def get_game_service() -> GameService:
    return GameService(get_agent_client(), get_repository())


def get_interviews() -> SessionRegistry[InterviewFlow]:
    return _interviews


def get_games() -> SessionRegistry[GameFlow]:
    return _games
