"""Game master screen: SELECTING -> ACTIVE -> FINISHED."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any, get_args

from agent.models import AnswerVerdict, GameChallenge, GameRecord, GameRound, GameType
from flows import FlowError, InvalidTransition

GAME_TYPES: tuple[str, ...] = get_args(GameType)


class GameStage(str, Enum):
    SELECTING = "selecting"
    ACTIVE = "active"
    FINISHED = "finished"


class GameFlow:
    """State of one game session: the chosen game, the open challenge and past rounds."""

    def __init__(self) -> None:
        self.id = uuid.uuid4().hex[:12]
        self.reset()

    def reset(self) -> None:
        self.stage = GameStage.SELECTING
        self.game_type: str | None = None
        self.pending: GameChallenge | None = None
        self.rounds: list[GameRound] = []
        self.record: GameRecord | None = None

    @property
    def score(self) -> int:
        return sum(r.points for r in self.rounds)

    def _require(self, stage: GameStage, action: str) -> None:
        if self.stage != stage:
            raise InvalidTransition(action, self.stage.value)

    def select(self, game_type: str) -> None:
        self._require(GameStage.SELECTING, "select a game")
        if game_type not in GAME_TYPES:
            raise FlowError(f"Unknown game type: {game_type}")
        self.game_type = game_type
        self.stage = GameStage.ACTIVE

    def present(self, challenge: GameChallenge) -> None:
        self._require(GameStage.ACTIVE, "present a challenge")
        if self.pending is not None:
            raise InvalidTransition("present a challenge", "a challenge is still open")
        self.pending = challenge

    def validate_answer(self, answer: str) -> GameChallenge:
        """Check an answer can be submitted now and return the open challenge."""
        self._require(GameStage.ACTIVE, "answer")
        if self.pending is None:
            raise InvalidTransition("answer", "no challenge is open")
        if not answer or not answer.strip():
            raise FlowError("Please provide an answer before continuing")
        return self.pending

    def resolve(self, answer: str, verdict: AnswerVerdict) -> GameRound:
        challenge = self.validate_answer(answer)
        game_round = GameRound(
            challenge=challenge,
            answer=answer,
            correct=verdict.correct,
            points=verdict.points if verdict.correct else 0,
            feedback=verdict.feedback,
        )
        self.rounds.append(game_round)
        self.pending = None
        return game_round

    def finish(self) -> GameRecord:
        self._require(GameStage.ACTIVE, "finish the game")
        self.pending = None
        self.record = GameRecord(
            id=uuid.uuid4().hex[:9],
            game_type=self.game_type,  # type: ignore[arg-type]
            score=self.score,
            rounds=list(self.rounds),
            date=datetime.now(UTC).date().isoformat(),
        )
        self.stage = GameStage.FINISHED
        return self.record

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "stage": self.stage.value,
            "game_type": self.game_type,
            "score": self.score,
            "rounds_played": len(self.rounds),
            "pending": self.pending.model_dump() if self.pending else None,
            "record": self.record.model_dump() if self.record else None,
        }
