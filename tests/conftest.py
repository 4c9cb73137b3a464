"""Shared test fixtures for agentdesk tests."""

from __future__ import annotations

import json
from typing import Any

import pytest

from agent.client import MockAgentClient
from agent.models import CandidateInfo
from flows.interview import InterviewFlow
from storage.hr import HRRepository
from storage.kv import MemoryStore

# ---------------------------------------------------------------------------
# Pre-scripted agent replies
# ---------------------------------------------------------------------------


def evaluation_payload(rating: str = "Strong Candidate", score: float = 86) -> dict[str, Any]:
    return {
        "result": "Interview completed successfully",
        "candidate_info": {
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": "555-0100",
            "role": "Backend Engineer",
            "interview_date": "2026-10-18",
            "interview_duration": "~30 minutes",
        },
        "evaluation": {
            "overall_score": score,
            "overall_rating": rating,
            "questions_asked": 6,
            "questions_answered": 6,
            "question_assessments": [
                {
                    "question_number": 1,
                    "question": "Tell us about your experience.",
                    "candidate_response": "Ten years of Python.",
                    "score": 88,
                    "notes": "Concrete and relevant",
                },
            ],
            "strengths": ["Clear communication", "Deep Python experience"],
            "concerns": ["Limited people management"],
            "recommendation": "Move to next interview round",
            "summary": "Solid candidate for the backend team.",
        },
        "email_status": {
            "sent": True,
            "recipient": "hr@company.com",
            "subject": "Interview Evaluation Report - Ada Lovelace",
            "timestamp": "2026-10-18T10:00:00Z",
        },
        "confidence": 0.85,
        "metadata": {"processing_time": "2.5s", "jd_matched": "Yes"},
    }


def fenced_evaluation_reply(**kwargs: Any) -> str:
    """Evaluation wrapped the way chat models like to answer."""
    return (
        "Here is the evaluation you asked for:\n\n"
        f"```json\n{json.dumps(evaluation_payload(**kwargs), indent=2)}\n```\n\n"
        "Let me know if you need anything else!"
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def candidate() -> CandidateInfo:
    return CandidateInfo(
        name="Ada Lovelace",
        email="ada@example.com",
        phone="555-0100",
        role="Backend Engineer",
    )


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repository(memory_store: MemoryStore) -> HRRepository:
    return HRRepository(memory_store)


@pytest.fixture
def mock_client() -> MockAgentClient:
    return MockAgentClient()


@pytest.fixture
def answered_interview(candidate: CandidateInfo) -> InterviewFlow:
    """Interview with every question answered, waiting for evaluation."""
    flow = InterviewFlow()
    flow.start(candidate)
    for i in range(len(flow.questions)):
        flow.answer(f"Answer number {i + 1}")
    return flow
