from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

# --- Shared Enums/Types ---
StudyTimeStatusValue = Literal["valid", "invalid", "partial", "pending"]
ReviewStatusValue = Literal["valid", "invalid"]


# --- Processing ---
class SessionModel(BaseModel):
    id: str
    user_id: str
    course_id: str
    lesson_id: str
    course_title: str | None = None
    lesson_title: str | None = None


class ProcessStudyTimeRequest(BaseModel):
    session: SessionModel
    start_time: datetime
    end_time: datetime
    total_duration: float = Field(..., ge=0, description="Reported duration in seconds")
    behavior_events: list[dict[str, Any]] = []


# --- Records ---
class EffectiveStudyRecordResponse(BaseModel):
    id: UUID
    user_id: str
    session_id: str
    course_id: str
    lesson_id: str
    study_date: datetime
    start_time: datetime
    end_time: datetime
    total_duration: float
    effective_duration: float
    invalid_duration: float
    status: StudyTimeStatusValue
    invalid_reason: str | None = None
    description: str | None = None
    quality_score: float | None = None
    focus_score: float | None = None
    interaction_score: float | None = None
    continuity_score: float | None = None
    include_in_daily_total: bool
    student_notified: bool
    reviewed_by: str | None = None
    review_time: datetime | None = None
    review_comment: str | None = None
    created_at: datetime
    updated_at: datetime


class RecordListResponse(BaseModel):
    records: list[EffectiveStudyRecordResponse]
    count: int


# --- Review / Recalculation ---
class ReviewRequest(BaseModel):
    status: ReviewStatusValue
    reviewer: str = Field(..., min_length=1)
    comment: str | None = None


class RecalculateRequest(BaseModel):
    force: bool = False
    dry_run: bool = False


class ErrorResponse(BaseModel):
    errors: list[dict[str, Any]]
