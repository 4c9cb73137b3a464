"""Pydantic models for the agentdesk interview and game flows."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

RATINGS = (
    "Strong Candidate",
    "Good Candidate",
    "Adequate Candidate",
    "Weak Candidate",
)

GameType = Literal["trivia", "riddle", "word_puzzle"]


class CandidateInfo(BaseModel):
    """Details collected from the candidate before the interview starts."""

    name: str = ""
    email: str = ""
    phone: str = ""
    role: str = ""

    def is_complete(self) -> bool:
        return all(v.strip() for v in (self.name, self.email, self.phone, self.role))


class InterviewedCandidate(CandidateInfo):
    """Candidate details as echoed back by the agent after an interview."""

    interview_date: str = ""
    interview_duration: str = ""


class QuestionAssessment(BaseModel):
    """Agent's assessment of a single interview answer."""

    question_number: int
    question: str = ""
    candidate_response: str = ""
    score: float = Field(default=0.0, ge=0.0, le=100.0)
    notes: str = ""


class InterviewEvaluation(BaseModel):
    """Overall evaluation of a screening interview."""

    overall_score: float = Field(ge=0.0, le=100.0)
    overall_rating: str
    questions_asked: int = 0
    questions_answered: int = 0
    question_assessments: list[QuestionAssessment] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    recommendation: str = ""
    summary: str = ""


class EmailStatus(BaseModel):
    sent: bool = False
    recipient: str = ""
    subject: str = ""
    timestamp: str = ""


class EvaluationReply(BaseModel):
    """Structured reply expected from the HR screening agent."""

    result: str = ""
    candidate_info: InterviewedCandidate | None = None
    evaluation: InterviewEvaluation
    email_status: EmailStatus | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class InterviewRecord(BaseModel):
    """A completed interview as kept in the HR history."""

    id: str
    candidate_name: str
    email: str
    role: str
    date: str
    overall_score: float
    overall_rating: str
    recommendation: str
    evaluation: InterviewEvaluation
    candidate_info: InterviewedCandidate


class UploadedJD(BaseModel):
    """Metadata for an uploaded job description."""

    id: str
    name: str
    uploaded_date: str
    role: str


class GameChallenge(BaseModel):
    """A single puzzle or question posed by the game master."""

    question: str = Field(min_length=1)
    hint: str = ""
    category: str = ""
    difficulty: str = ""


class AnswerVerdict(BaseModel):
    """Game master's ruling on a player's answer."""

    correct: bool = False
    points: int = Field(default=0, ge=0)
    feedback: str = ""
    correct_answer: str = ""


class GameRound(BaseModel):
    challenge: GameChallenge
    answer: str
    correct: bool
    points: int
    feedback: str = ""


class GameRecord(BaseModel):
    """A finished game as kept in the game history."""

    id: str
    game_type: GameType
    score: int
    rounds: list[GameRound] = Field(default_factory=list)
    date: str
