"""Prompt builders for the HR screening agent and the game master agent."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime

from agent.models import RATINGS, CandidateInfo, GameChallenge

INTERVIEW_QUESTIONS: tuple[str, ...] = (
    "Tell us about your experience relevant to this position and what attracted you to this role.",
    "Describe a challenging project you worked on and how you overcame the obstacles.",
    "How do you approach collaboration and teamwork in a professional environment?",
    "What are your key strengths and how do they align with this role?",
    "Where do you see your career in the next 3-5 years and how does this role fit?",
    "Do you have any questions for us about the role or company?",
)

DEFAULT_RECIPIENT = "hr@company.com"

# Answers are truncated before being echoed back in the requested JSON
MAX_ECHOED_ANSWER_CHARS = 200

EVALUATION_PROMPT = """\
You are an HR screening interview agent. Process this candidate interview and provide a detailed evaluation:

Candidate Information:
- Name: {name}
- Email: {email}
- Phone: {phone}
- Position Applied: {role}

Interview Responses:
{transcript}

Score every answer from 0 to 100 based on its content, then give an overall score and one of these ratings: {ratings}.
Send the evaluation report to {recipient}.

Respond ONLY with a valid JSON object in this exact structure (no markdown, no code blocks, just pure JSON):
{schema}
"""

GAME_MASTER_SYSTEM = """\
You are a friendly game master running a casual {game_label} game.
Keep challenges short, fair and fun. Never reveal the answer in the question or hint.
"""

CHALLENGE_PROMPT = """\
{system}
This is round {round_number}.{previous}

Respond ONLY with a JSON object:
{{"question": "...", "hint": "...", "category": "...", "difficulty": "easy|medium|hard"}}
"""

JUDGE_PROMPT = """\
{system}
The challenge was:
{question}

The player answered:
{answer}

Decide whether the answer is correct. Be lenient with spelling and phrasing.
Award 0 points for a wrong answer and 5-20 points for a correct one depending on difficulty ({difficulty}).

Respond ONLY with a JSON object:
{{"correct": true, "points": 10, "feedback": "...", "correct_answer": "..."}}
"""

GAME_LABELS = {
    "trivia": "trivia quiz",
    "riddle": "riddle",
    "word_puzzle": "word puzzle",
}


def format_transcript(responses: Sequence[tuple[str, str]]) -> str:
    return "\n\n".join(
        f"Q{i}: {question}\nA: {answer}"
        for i, (question, answer) in enumerate(responses, start=1)
    )


def build_evaluation_prompt(
    candidate: CandidateInfo,
    responses: Sequence[tuple[str, str]],
    recipient_email: str | None = None,
    questions_asked: int | None = None,
) -> str:
    """Build the evaluation request for a finished interview.

    Scores, ratings and notes are left for the agent to fill in; only the
    facts known locally (candidate details, answers, counts) are pre-filled.
    """
    recipient = recipient_email or DEFAULT_RECIPIENT
    schema = {
        "result": "Interview completed successfully",
        "candidate_info": {
            **candidate.model_dump(),
            "interview_date": datetime.now(UTC).date().isoformat(),
            "interview_duration": "<estimated duration>",
        },
        "evaluation": {
            "overall_score": "<0-100>",
            "overall_rating": "<rating>",
            "questions_asked": questions_asked if questions_asked is not None else len(responses),
            "questions_answered": len(responses),
            "question_assessments": [
                {
                    "question_number": i,
                    "question": question,
                    "candidate_response": answer[:MAX_ECHOED_ANSWER_CHARS],
                    "score": "<0-100>",
                    "notes": "<assessment>",
                }
                for i, (question, answer) in enumerate(responses, start=1)
            ],
            "strengths": ["<strength>"],
            "concerns": ["<concern>"],
            "recommendation": "<next step>",
            "summary": "<summary>",
        },
        "email_status": {
            "sent": True,
            "recipient": recipient,
            "subject": f"Interview Evaluation Report - {candidate.name}",
            "timestamp": "<ISO timestamp>",
        },
        "confidence": "<0.0-1.0>",
        "metadata": {
            "processing_time": "<duration>",
            "knowledge_base_used": "HR Screening Interview Agent",
            "jd_matched": "<Yes|No>",
        },
    }
    return EVALUATION_PROMPT.format(
        name=candidate.name,
        email=candidate.email,
        phone=candidate.phone,
        role=candidate.role,
        transcript=format_transcript(responses),
        ratings=", ".join(RATINGS),
        recipient=recipient,
        schema=json.dumps(schema, indent=2),
    )


def _system(game_type: str) -> str:
    return GAME_MASTER_SYSTEM.format(game_label=GAME_LABELS.get(game_type, game_type))


def build_challenge_prompt(
    game_type: str,
    round_number: int,
    previous_questions: Sequence[str] = (),
) -> str:
    previous = ""
    if previous_questions:
        listed = "\n".join(f"- {q}" for q in previous_questions)
        previous = f"\nDo not repeat any of these earlier challenges:\n{listed}"
    return CHALLENGE_PROMPT.format(
        system=_system(game_type),
        round_number=round_number,
        previous=previous,
    )


def build_judge_prompt(game_type: str, challenge: GameChallenge, answer: str) -> str:
    return JUDGE_PROMPT.format(
        system=_system(game_type),
        question=challenge.question,
        answer=answer,
        difficulty=challenge.difficulty or "medium",
    )
