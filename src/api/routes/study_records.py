"""
Study Records API Routes.

Endpoints for certifying closed learning sessions and managing the
resulting effective study records.

- POST /process                 certify a closed session
- GET  /needing-review          PENDING and PARTIAL records
- GET  /users/{user_id}/stats   per-user summary over a date range
- GET  /courses/{course_id}/stats
- GET  /invalid-reasons         invalid time grouped by reason
- GET  /{record_id}
- POST /{record_id}/review      reviewer decision
- POST /{record_id}/recalculate
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.deps import get_study_time_service
from src.api.schemas import (
    EffectiveStudyRecordResponse,
    ErrorResponse,
    ProcessStudyTimeRequest,
    RecalculateRequest,
    RecordListResponse,
    ReviewRequest,
)
from src.components.study_time import EffectiveStudyTimeService, StudyTimeError
from src.domain.entities import EffectiveStudyRecord, LearnSession, StudyTimeStatus

router = APIRouter()

# Workflow error code -> HTTP status
_ERROR_STATUS = {
    "record_not_found": 404,
    "invalid_status": 400,
    "invalid_transition": 409,
    "record_final": 409,
    "record_reviewed": 409,
}


# --- Helper Functions ---


def _record_to_response(record: EffectiveStudyRecord) -> EffectiveStudyRecordResponse:
    """Convert EffectiveStudyRecord to response model."""
    return EffectiveStudyRecordResponse(
        id=record.id,
        user_id=record.user_id,
        session_id=record.session_id,
        course_id=record.course_id,
        lesson_id=record.lesson_id,
        study_date=record.study_date,
        start_time=record.start_time,
        end_time=record.end_time,
        total_duration=record.total_duration,
        effective_duration=record.effective_duration,
        invalid_duration=record.invalid_duration,
        status=record.status.value,
        invalid_reason=record.invalid_reason.value if record.invalid_reason else None,
        description=record.description,
        quality_score=record.quality_score,
        focus_score=record.focus_score,
        interaction_score=record.interaction_score,
        continuity_score=record.continuity_score,
        include_in_daily_total=record.include_in_daily_total,
        student_notified=record.student_notified,
        reviewed_by=record.reviewed_by,
        review_time=record.review_time,
        review_comment=record.review_comment,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _raise_for_errors(errors: list[StudyTimeError]) -> None:
    raise HTTPException(
        status_code=_ERROR_STATUS.get(errors[0].code, 400),
        detail={"errors": [{"code": e.code, "message": e.message} for e in errors]},
    )


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=UTC)


# --- Routes ---


@router.post("/process", response_model=EffectiveStudyRecordResponse)
def process_study_time(
    request: ProcessStudyTimeRequest,
    service: EffectiveStudyTimeService = Depends(get_study_time_service),
) -> EffectiveStudyRecordResponse:
    """Certify a closed learning session."""
    if request.end_time < request.start_time:
        raise HTTPException(status_code=400, detail="end_time is before start_time")

    record = service.process_study_time(
        session=LearnSession(**request.session.model_dump()),
        start_time=request.start_time,
        end_time=request.end_time,
        total_duration=request.total_duration,
        behavior_events=request.behavior_events,
    )
    return _record_to_response(record)


@router.get("/needing-review", response_model=RecordListResponse)
def list_needing_review(
    limit: int = Query(100, ge=1, le=1000),
    service: EffectiveStudyTimeService = Depends(get_study_time_service),
) -> RecordListResponse:
    records = service.list_needing_review(limit)
    return RecordListResponse(
        records=[_record_to_response(r) for r in records],
        count=len(records),
    )


@router.get("/users/{user_id}/stats")
def get_user_stats(
    user_id: str,
    start: date = Query(..., description="First study date (inclusive)"),
    end: date = Query(..., description="Last study date (inclusive)"),
    service: EffectiveStudyTimeService = Depends(get_study_time_service),
) -> dict[str, Any]:
    if end < start:
        raise HTTPException(status_code=400, detail="end is before start")
    stats = service.get_user_study_time_stats(user_id, _day_start(start), _day_start(end))
    return stats.to_dict()


@router.get("/courses/{course_id}/stats")
def get_course_stats(
    course_id: str,
    service: EffectiveStudyTimeService = Depends(get_study_time_service),
) -> dict[str, Any]:
    return service.get_course_study_time_stats(course_id).to_dict()


@router.get("/invalid-reasons")
def get_invalid_reasons(
    start: date = Query(...),
    end: date = Query(...),
    service: EffectiveStudyTimeService = Depends(get_study_time_service),
) -> dict[str, Any]:
    stats = service.get_invalid_reason_stats(_day_start(start), _day_start(end))
    return {"reasons": [s.to_dict() for s in stats], "count": len(stats)}


@router.get(
    "/{record_id}",
    response_model=EffectiveStudyRecordResponse,
    responses={404: {"description": "Record not found"}},
)
def get_record(
    record_id: UUID,
    service: EffectiveStudyTimeService = Depends(get_study_time_service),
) -> EffectiveStudyRecordResponse:
    record = service.get_record(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return _record_to_response(record)


@router.post(
    "/{record_id}/review",
    response_model=EffectiveStudyRecordResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
def review_record(
    record_id: UUID,
    request: ReviewRequest,
    service: EffectiveStudyTimeService = Depends(get_study_time_service),
) -> EffectiveStudyRecordResponse:
    """Apply a reviewer decision to a PENDING or PARTIAL record."""
    record, errors = service.mark_as_reviewed(
        record_id,
        StudyTimeStatus(request.status),
        request.reviewer,
        request.comment,
    )
    if errors:
        _raise_for_errors(errors)

    assert record is not None
    return _record_to_response(record)


@router.post(
    "/{record_id}/recalculate",
    response_model=EffectiveStudyRecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def recalculate_record(
    record_id: UUID,
    request: RecalculateRequest | None = None,
    service: EffectiveStudyTimeService = Depends(get_study_time_service),
) -> EffectiveStudyRecordResponse:
    """Re-run evaluation from the record's stored behavior stats."""
    options = request or RecalculateRequest()
    record, errors = service.recalculate_by_id(
        record_id, force=options.force, dry_run=options.dry_run
    )
    if errors:
        _raise_for_errors(errors)

    assert record is not None
    return _record_to_response(record)
