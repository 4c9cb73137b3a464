"""Flow services: turn screen transitions into agent calls and persisted records."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from agent.client import AgentClient
from agent.extract import extract
from agent.models import (
    AnswerVerdict,
    CandidateInfo,
    EvaluationReply,
    GameChallenge,
    GameRecord,
    GameRound,
    InterviewedCandidate,
    InterviewRecord,
)
from agent.prompts import build_challenge_prompt, build_evaluation_prompt, build_judge_prompt
from flows import EvaluationError, InvalidTransition
from flows.game import GameFlow, GameStage
from flows.interview import InterviewFlow
from monitoring.metrics import (
    agentdesk_games_finished_total,
    agentdesk_interviews_completed_total,
    record_extraction,
)
from storage.hr import HRRepository, generate_id

logger = structlog.get_logger()

DEFAULT_HR_AGENT_ID = "6900bb341b450d08226c4243"
DEFAULT_GAME_AGENT_ID = "6900bb341b450d08226c4243"

UNREADABLE_REPLY = "Could not understand the agent response"


def _extract_for(purpose: str, text: str, default: Any) -> Any:
    data = extract(text, default)
    parsed = data is not default
    record_extraction(purpose, parsed)
    if not parsed:
        logger.warning("agent_reply_unparseable", purpose=purpose, preview=text[:200])
    return data


class InterviewService:
    """Sends finished interviews to the HR agent and files the evaluations."""

    def __init__(
        self,
        client: AgentClient,
        repository: HRRepository,
        agent_id: str | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        self._agent_id = agent_id or os.environ.get("HR_AGENT_ID", DEFAULT_HR_AGENT_ID)

    async def evaluate(self, flow: InterviewFlow) -> InterviewRecord:
        """Evaluate a fully answered interview and add it to the history."""
        if flow.candidate is None:
            raise InvalidTransition("evaluate interview", flow.stage.value)
        flow.begin_evaluation()
        try:
            record = await self._request_evaluation(flow, flow.candidate)
            flow.complete(record)
        finally:
            flow.end_evaluation()

        self._repository.add_interview(record)
        agentdesk_interviews_completed_total.labels(rating=record.overall_rating).inc()

        logger.info(
            "interview_evaluated",
            interview_id=flow.id,
            record_id=record.id,
            role=record.role,
            overall_score=record.overall_score,
            overall_rating=record.overall_rating,
        )
        return record

    async def _request_evaluation(
        self,
        flow: InterviewFlow,
        candidate: CandidateInfo,
    ) -> InterviewRecord:
        prompt = build_evaluation_prompt(
            candidate,
            flow.responses,
            recipient_email=self._repository.get_recipient_email(),
            questions_asked=len(flow.questions),
        )
        reply = await self._client.send(prompt, self._agent_id, session_id=flow.id)

        data = _extract_for("interview_evaluation", reply.text, {})
        try:
            parsed = EvaluationReply.model_validate(data)
        except ValidationError as e:
            logger.warning("interview_evaluation_invalid", interview_id=flow.id, error=str(e))
            raise EvaluationError(UNREADABLE_REPLY) from e

        echoed = parsed.candidate_info or InterviewedCandidate()
        candidate_info = InterviewedCandidate(
            **candidate.model_dump(),
            interview_date=echoed.interview_date or datetime.now(UTC).date().isoformat(),
            interview_duration=echoed.interview_duration,
        )
        evaluation = parsed.evaluation
        return InterviewRecord(
            id=generate_id(),
            candidate_name=candidate.name,
            email=candidate.email,
            role=candidate.role,
            date=datetime.now(UTC).date().isoformat(),
            overall_score=evaluation.overall_score,
            overall_rating=evaluation.overall_rating,
            recommendation=evaluation.recommendation,
            evaluation=evaluation,
            candidate_info=candidate_info,
        )


class GameService:
    """Asks the game master agent for challenges and rulings."""

    def __init__(
        self,
        client: AgentClient,
        repository: HRRepository,
        agent_id: str | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        self._agent_id = agent_id or os.environ.get("GAME_AGENT_ID", DEFAULT_GAME_AGENT_ID)

    async def next_challenge(self, flow: GameFlow) -> GameChallenge:
        if flow.stage != GameStage.ACTIVE or flow.game_type is None:
            raise InvalidTransition("present a challenge", flow.stage.value)
        if flow.pending is not None:
            return flow.pending

        prompt = build_challenge_prompt(
            flow.game_type,
            round_number=len(flow.rounds) + 1,
            previous_questions=[r.challenge.question for r in flow.rounds],
        )
        reply = await self._client.send(prompt, self._agent_id, session_id=flow.id)

        data = _extract_for("game_challenge", reply.text, {})
        try:
            challenge = GameChallenge.model_validate(data)
        except ValidationError as e:
            logger.warning("game_challenge_invalid", game_id=flow.id, error=str(e))
            raise EvaluationError(UNREADABLE_REPLY) from e

        flow.present(challenge)
        logger.info("game_challenge_presented", game_id=flow.id, round=len(flow.rounds) + 1)
        return challenge

    async def judge(self, flow: GameFlow, answer: str) -> GameRound:
        """Have the agent rule on an answer; an unreadable ruling counts as incorrect."""
        challenge = flow.validate_answer(answer)
        prompt = build_judge_prompt(flow.game_type or "", challenge, answer)
        reply = await self._client.send(prompt, self._agent_id, session_id=flow.id)

        fallback = {"correct": False, "points": 0, "feedback": UNREADABLE_REPLY}
        data = _extract_for("game_verdict", reply.text, fallback)
        try:
            verdict = AnswerVerdict.model_validate(data)
        except ValidationError as e:
            logger.warning("game_verdict_invalid", game_id=flow.id, error=str(e))
            verdict = AnswerVerdict.model_validate(fallback)

        game_round = flow.resolve(answer, verdict)
        logger.info(
            "game_answer_judged",
            game_id=flow.id,
            correct=game_round.correct,
            points=game_round.points,
        )
        return game_round

    def finish(self, flow: GameFlow) -> GameRecord:
        record = flow.finish()
        self._repository.add_game(record)
        agentdesk_games_finished_total.labels(game_type=record.game_type).inc()
        logger.info("game_finished", game_id=flow.id, score=record.score, rounds=len(record.rounds))
        return record
