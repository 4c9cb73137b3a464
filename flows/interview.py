"""Interview screen: COLLECTING_INFO -> INTERVIEWING -> COMPLETED."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from enum import Enum
from typing import Any

from agent.models import CandidateInfo, InterviewRecord
from agent.prompts import INTERVIEW_QUESTIONS
from flows import FlowError, InvalidTransition


class InterviewStage(str, Enum):
    COLLECTING_INFO = "collecting_info"
    INTERVIEWING = "interviewing"
    COMPLETED = "completed"


class InterviewFlow:
    """State of one candidate's screening interview.

    Answers are collected one question at a time. Once every question has
    an answer the flow is ready for evaluation, but stays INTERVIEWING until
    an evaluated record is attached via ``complete``, so a failed evaluation
    can simply be retried.
    """

    def __init__(self, questions: Sequence[str] = INTERVIEW_QUESTIONS) -> None:
        if not questions:
            raise ValueError("An interview needs at least one question")
        self.id = uuid.uuid4().hex[:12]
        self.questions: tuple[str, ...] = tuple(questions)
        self.reset()

    def reset(self) -> None:
        self.stage = InterviewStage.COLLECTING_INFO
        self.candidate: CandidateInfo | None = None
        self.responses: list[tuple[str, str]] = []
        self.record: InterviewRecord | None = None
        self.evaluating = False

    @property
    def current_index(self) -> int:
        return len(self.responses)

    @property
    def current_question(self) -> str | None:
        if self.stage != InterviewStage.INTERVIEWING or self.ready_for_evaluation:
            return None
        return self.questions[self.current_index]

    @property
    def ready_for_evaluation(self) -> bool:
        return (
            self.stage == InterviewStage.INTERVIEWING
            and len(self.responses) == len(self.questions)
        )

    def _require(self, stage: InterviewStage, action: str) -> None:
        if self.stage != stage:
            raise InvalidTransition(action, self.stage.value)

    def start(self, candidate: CandidateInfo) -> str:
        """Begin the interview and return the first question."""
        self._require(InterviewStage.COLLECTING_INFO, "start interview")
        if not candidate.is_complete():
            raise FlowError("Please fill in all candidate information")

        self.candidate = candidate
        self.responses = []
        self.stage = InterviewStage.INTERVIEWING
        return self.questions[0]

    def answer(self, text: str) -> str | None:
        """Record an answer to the current question; return the next one, if any."""
        self._require(InterviewStage.INTERVIEWING, "answer")
        if self.ready_for_evaluation:
            raise InvalidTransition("answer", "awaiting evaluation")
        if not text or not text.strip():
            raise FlowError("Please provide an answer before continuing")

        self.responses.append((self.questions[self.current_index], text))
        return self.current_question

    def begin_evaluation(self) -> None:
        """Claim the finished interview for one evaluation at a time."""
        if not self.ready_for_evaluation:
            raise InvalidTransition("evaluate interview", self.stage.value)
        if self.evaluating:
            raise InvalidTransition("evaluate interview", "an evaluation is in progress")
        self.evaluating = True

    def end_evaluation(self) -> None:
        self.evaluating = False

    def complete(self, record: InterviewRecord) -> None:
        if not self.ready_for_evaluation:
            raise InvalidTransition("complete interview", self.stage.value)
        self.record = record
        self.stage = InterviewStage.COMPLETED

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "stage": self.stage.value,
            "candidate": self.candidate.model_dump() if self.candidate else None,
            "question_number": min(self.current_index + 1, len(self.questions)),
            "total_questions": len(self.questions),
            "current_question": self.current_question,
            "answered": len(self.responses),
            "ready_for_evaluation": self.ready_for_evaluation,
            "evaluating": self.evaluating,
            "record": self.record.model_dump() if self.record else None,
        }
