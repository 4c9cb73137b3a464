"""HR dashboard persistence: job descriptions, report recipient and histories."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from pathlib import PurePath
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from agent.models import GameRecord, InterviewRecord, UploadedJD
from storage.kv import KeyValueStore

logger = structlog.get_logger()

JDS_KEY = "uploadedJDs"
RECIPIENT_KEY = "recipientEmail"
INTERVIEWS_KEY = "interviewHistory"
GAMES_KEY = "gameHistory"

JD_EXTENSIONS = (".pdf", ".docx", ".txt")

M = TypeVar("M", bound=BaseModel)


def generate_id() -> str:
    return uuid.uuid4().hex[:9]


def _today() -> str:
    return datetime.now(UTC).date().isoformat()


def role_from_filename(filename: str) -> str:
    """Derive a role name from an uploaded file name: everything before the first dot."""
    return PurePath(filename).name.split(".")[0].strip() or "Unknown Role"


class HRRepository:
    """Typed access to the HR view state kept in a KeyValueStore."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def _load(self, key: str, model: type[M]) -> list[M]:
        raw = self._store.get(key)
        if not isinstance(raw, list):
            return []
        items: list[M] = []
        for entry in raw:
            try:
                items.append(model.model_validate(entry))
            except ValidationError as e:
                logger.warning("store_entry_skipped", key=key, error=str(e))
        return items

    def _save(self, key: str, items: list[Any]) -> None:
        self._store.set(key, [i.model_dump(mode="json") for i in items])

    # --- Job descriptions ---

    def list_jds(self) -> list[UploadedJD]:
        return self._load(JDS_KEY, UploadedJD)

    def add_jd(self, filename: str) -> UploadedJD:
        name = PurePath(filename.strip()).name
        if not name.lower().endswith(JD_EXTENSIONS):
            raise ValueError(
                f"Unsupported job description file: {name or filename!r}; "
                f"expected one of {', '.join(JD_EXTENSIONS)}"
            )
        jd = UploadedJD(
            id=generate_id(),
            name=name,
            uploaded_date=_today(),
            role=role_from_filename(name),
        )
        self._save(JDS_KEY, [jd, *self.list_jds()])
        logger.info("jd_uploaded", jd_id=jd.id, role=jd.role)
        return jd

    def delete_jd(self, jd_id: str) -> bool:
        jds = self.list_jds()
        remaining = [jd for jd in jds if jd.id != jd_id]
        if len(remaining) == len(jds):
            return False
        self._save(JDS_KEY, remaining)
        return True

    # --- Report recipient ---

    def get_recipient_email(self) -> str:
        value = self._store.get(RECIPIENT_KEY)
        return value if isinstance(value, str) else ""

    def set_recipient_email(self, email: str) -> None:
        self._store.set(RECIPIENT_KEY, email.strip())

    # --- Interview history ---

    def list_interviews(
        self,
        role: str | None = None,
        rating: str | None = None,
    ) -> list[InterviewRecord]:
        """Interview history, newest first, optionally filtered by role and rating."""
        return [
            r for r in self._load(INTERVIEWS_KEY, InterviewRecord)
            if (not role or r.role == role) and (not rating or r.overall_rating == rating)
        ]

    def get_interview(self, record_id: str) -> InterviewRecord | None:
        for record in self.list_interviews():
            if record.id == record_id:
                return record
        return None

    def add_interview(self, record: InterviewRecord) -> None:
        self._save(INTERVIEWS_KEY, [record, *self.list_interviews()])

    def roles(self) -> list[str]:
        """Distinct roles across the interview history, in first-seen order."""
        return list(dict.fromkeys(r.role for r in self.list_interviews()))

    # --- Game history ---

    def list_games(self) -> list[GameRecord]:
        return self._load(GAMES_KEY, GameRecord)

    def add_game(self, record: GameRecord) -> None:
        self._save(GAMES_KEY, [record, *self.list_games()])


def format_report(record: InterviewRecord) -> str:
    """Plain-text summary of an interview, suitable for copying into an email."""
    return (
        f"Interview Report\n\n"
        f"{record.candidate_name}\n"
        f"{record.role}\n"
        f"Score: {record.overall_score:g}/100\n"
        f"Rating: {record.overall_rating}\n"
        f"Recommendation: {record.recommendation}"
    )
