"""API endpoints driving the interview and game screen flows."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from agent.client import AgentError, AgentHTTPError, AgentNotConfiguredError
from agent.models import CandidateInfo
from api.deps import (
    get_game_service,
    get_games,
    get_interview_service,
    get_interviews,
    get_repository,
)
from flows import EvaluationError, FlowError, InvalidTransition
from flows.game import GameFlow
from flows.interview import InterviewFlow

logger = structlog.get_logger()

interviews_router = APIRouter(prefix="/api/interviews", tags=["interviews"])
games_router = APIRouter(prefix="/api/games", tags=["games"])


class AnswerBody(BaseModel):
    answer: str = ""


class NewGameBody(BaseModel):
    game_type: str


def _flow_error(exc: FlowError) -> HTTPException:
    if isinstance(exc, InvalidTransition):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, EvaluationError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _agent_error(exc: AgentError) -> HTTPException:
    if isinstance(exc, AgentNotConfiguredError):
        return HTTPException(status_code=500, detail=exc.message)
    detail: dict[str, Any] = {"error": exc.message, "details": exc.details}
    if isinstance(exc, AgentHTTPError):
        detail["upstream_status"] = exc.status_code
    return HTTPException(status_code=502, detail=detail)


def _interview(interview_id: str) -> InterviewFlow:
    flow = get_interviews().get(interview_id)
    if flow is None:
        raise HTTPException(status_code=404, detail=f"Interview {interview_id} not found")
    return flow


def _game(game_id: str) -> GameFlow:
    flow = get_games().get(game_id)
    if flow is None:
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found")
    return flow


# --- Interviews ---


@interviews_router.post("", status_code=201)
async def start_interview(candidate: CandidateInfo) -> dict[str, Any]:
    """Start a screening interview for a candidate."""
    flow = InterviewFlow()
    try:
        flow.start(candidate)
    except FlowError as e:
        raise _flow_error(e) from e
    get_interviews().add(flow)
    logger.info("interview_started", interview_id=flow.id, role=candidate.role)
    return flow.snapshot()


@interviews_router.get("/{interview_id}")
async def get_interview(interview_id: str) -> dict[str, Any]:
    return _interview(interview_id).snapshot()


@interviews_router.post("/{interview_id}/answers")
async def answer_question(interview_id: str, body: AnswerBody) -> dict[str, Any]:
    """Answer the current question and move on to the next one."""
    flow = _interview(interview_id)
    try:
        flow.answer(body.answer)
    except FlowError as e:
        raise _flow_error(e) from e
    return flow.snapshot()


@interviews_router.post("/{interview_id}/complete")
async def complete_interview(interview_id: str) -> dict[str, Any]:
    """Have the HR agent evaluate the finished interview."""
    flow = _interview(interview_id)
    service = get_interview_service()
    try:
        await service.evaluate(flow)
    except FlowError as e:
        raise _flow_error(e) from e
    except AgentError as e:
        logger.error("interview_evaluation_failed", interview_id=interview_id, error=e.message)
        raise _agent_error(e) from e
    return flow.snapshot()


@interviews_router.delete("/{interview_id}", status_code=204)
async def discard_interview(interview_id: str) -> None:
    if not get_interviews().discard(interview_id):
        raise HTTPException(status_code=404, detail=f"Interview {interview_id} not found")


# --- Games ---


@games_router.post("", status_code=201)
async def start_game(body: NewGameBody) -> dict[str, Any]:
    flow = GameFlow()
    try:
        flow.select(body.game_type)
    except FlowError as e:
        raise _flow_error(e) from e
    get_games().add(flow)
    logger.info("game_started", game_id=flow.id, game_type=body.game_type)
    return flow.snapshot()


@games_router.get("/history")
async def game_history() -> list[dict[str, Any]]:
    return [g.model_dump() for g in get_repository().list_games()]


@games_router.get("/{game_id}")
async def get_game(game_id: str) -> dict[str, Any]:
    return _game(game_id).snapshot()


@games_router.post("/{game_id}/challenge")
async def next_challenge(game_id: str) -> dict[str, Any]:
    """Ask the game master for the next challenge (or return the open one)."""
    flow = _game(game_id)
    try:
        await get_game_service().next_challenge(flow)
    except FlowError as e:
        raise _flow_error(e) from e
    except AgentError as e:
        raise _agent_error(e) from e
    return flow.snapshot()


@games_router.post("/{game_id}/answers")
async def answer_challenge(game_id: str, body: AnswerBody) -> dict[str, Any]:
    flow = _game(game_id)
    try:
        game_round = await get_game_service().judge(flow, body.answer)
    except FlowError as e:
        raise _flow_error(e) from e
    except AgentError as e:
        raise _agent_error(e) from e
    return {"round": game_round.model_dump(), "game": flow.snapshot()}


@games_router.post("/{game_id}/finish")
async def finish_game(game_id: str) -> dict[str, Any]:
    flow = _game(game_id)
    try:
        get_game_service().finish(flow)
    except FlowError as e:
        raise _flow_error(e) from e
    return flow.snapshot()


@games_router.delete("/{game_id}", status_code=204)
async def discard_game(game_id: str) -> None:
    if not get_games().discard(game_id):
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found")
