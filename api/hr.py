"""HR dashboard endpoints: job descriptions, report recipient and interview history."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from agent.models import InterviewRecord, UploadedJD
from api.deps import get_repository
from storage.hr import format_report

hr_router = APIRouter(prefix="/api/hr", tags=["hr"])


class NewJDBody(BaseModel):
    name: str


class RecipientBody(BaseModel):
    email: str


@hr_router.get("/jds", response_model=list[UploadedJD])
async def list_jds() -> list[UploadedJD]:
    return get_repository().list_jds()


@hr_router.post("/jds", response_model=UploadedJD, status_code=201)
async def upload_jd(body: NewJDBody) -> UploadedJD:
    """Register an uploaded job description by file name."""
    try:
        return get_repository().add_jd(body.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@hr_router.delete("/jds/{jd_id}", status_code=204)
async def delete_jd(jd_id: str) -> None:
    if not get_repository().delete_jd(jd_id):
        raise HTTPException(status_code=404, detail=f"Job description {jd_id} not found")


@hr_router.get("/recipient-email")
async def get_recipient_email() -> dict[str, Any]:
    return {"email": get_repository().get_recipient_email()}


@hr_router.put("/recipient-email")
async def set_recipient_email(body: RecipientBody) -> dict[str, Any]:
    repo = get_repository()
    repo.set_recipient_email(body.email)
    return {"email": repo.get_recipient_email()}


@hr_router.get("/interviews")
async def list_interviews(
    role: str | None = Query(default=None),
    rating: str | None = Query(default=None),
) -> list[dict[str, Any]]:
    """List interview history, newest first, filtered by role and rating."""
    return [
        {
            "id": r.id,
            "candidate_name": r.candidate_name,
            "email": r.email,
            "role": r.role,
            "date": r.date,
            "overall_score": r.overall_score,
            "overall_rating": r.overall_rating,
            "recommendation": r.recommendation,
        }
        for r in get_repository().list_interviews(role=role, rating=rating)
    ]


@hr_router.get("/interviews/{record_id}", response_model=InterviewRecord)
async def get_interview_record(record_id: str) -> InterviewRecord:
    record = get_repository().get_interview(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Interview record {record_id} not found")
    return record


@hr_router.get("/interviews/{record_id}/report", response_class=PlainTextResponse)
async def get_interview_report(record_id: str) -> str:
    """Plain-text report for copying into an email."""
    record = get_repository().get_interview(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Interview record {record_id} not found")
    return format_report(record)


@hr_router.get("/roles")
async def list_roles() -> list[str]:
    return get_repository().roles()
