"""
Study time component - Effective study time certification.

Pure helpers used by EffectiveStudyTimeService: record construction,
status assignment, lock keys and statistics over record lists.

Invariants:
- Every processed record ends in exactly one of VALID, INVALID, PARTIAL, PENDING
- effective_duration + invalid_duration == total_duration after evaluation
- INVALID records have no effective time and are excluded from daily totals
- The daily total is read, decided on and written under one lock per
  (user, study date), so concurrent sessions never exceed the daily cap
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime

from src.components.behavior import BehaviorEvent, convert_to_stats
from src.domain.entities import (
    EffectiveStudyRecord,
    InvalidTimeReason,
    LearnSession,
    StudyTimeStatus,
)

from .models import CourseStudyTimeStats, InvalidReasonStat, UserStudyTimeStats

NOTIFIABLE_STATUSES: frozenset[StudyTimeStatus] = frozenset(
    {StudyTimeStatus.VALID, StudyTimeStatus.INVALID, StudyTimeStatus.PARTIAL}
)


# --- Record Construction ---


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def daily_lock_key(user_id: str, study_date: datetime) -> str:
    return f"study-time:{user_id}:{study_date.date().isoformat()}"


def create_record(
    session: LearnSession,
    start_time: datetime,
    end_time: datetime,
    total_duration: float,
    events: Sequence[BehaviorEvent],
    now: datetime,
) -> EffectiveStudyRecord:
    """Build a PENDING record for a closed session."""
    return EffectiveStudyRecord(
        user_id=session.user_id,
        session_id=session.id,
        course_id=session.course_id,
        lesson_id=session.lesson_id,
        study_date=start_of_day(start_time),
        start_time=start_time,
        end_time=end_time,
        total_duration=max(0.0, float(total_duration)),
        invalid_duration=max(0.0, float(total_duration)),
        behavior_stats=convert_to_stats(events),
        created_at=now,
        updated_at=now,
    )


# --- Status Assignment ---


def reset_outcome(record: EffectiveStudyRecord) -> None:
    """Clear computed fields before a (re)evaluation."""
    record.set_durations(0.0)
    record.status = StudyTimeStatus.PENDING
    record.invalid_reason = None
    record.description = None
    record.quality_score = None
    record.focus_score = None
    record.interaction_score = None
    record.continuity_score = None
    record.include_in_daily_total = True
    record.student_notified = False


def mark_invalid(
    record: EffectiveStudyRecord,
    reason: InvalidTimeReason | None,
    description: str | None,
) -> None:
    record.set_durations(0.0)
    record.status = StudyTimeStatus.INVALID
    record.invalid_reason = reason or InvalidTimeReason.SYSTEM_ERROR
    record.description = description or "Unknown reason"
    record.include_in_daily_total = False


def should_notify(record: EffectiveStudyRecord) -> bool:
    return record.status in NOTIFIABLE_STATUSES and not record.student_notified


# --- Statistics ---


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def summarize_user_stats(
    user_id: str,
    records: Sequence[EffectiveStudyRecord],
) -> UserStudyTimeStats:
    return UserStudyTimeStats(
        user_id=user_id,
        total_records=len(records),
        total_time=sum(r.total_duration for r in records),
        effective_time=sum(r.effective_duration for r in records),
        invalid_time=sum(r.invalid_duration for r in records),
        avg_quality=_mean([r.quality_score for r in records if r.quality_score is not None]),
        avg_focus=_mean([r.focus_score for r in records if r.focus_score is not None]),
        avg_interaction=_mean(
            [r.interaction_score for r in records if r.interaction_score is not None]
        ),
        avg_continuity=_mean(
            [r.continuity_score for r in records if r.continuity_score is not None]
        ),
    )


def summarize_course_stats(
    course_id: str,
    records: Sequence[EffectiveStudyRecord],
) -> CourseStudyTimeStats:
    students = {r.user_id for r in records}
    total_effective = sum(r.effective_duration for r in records)
    return CourseStudyTimeStats(
        course_id=course_id,
        total_students=len(students),
        total_records=len(records),
        total_study_time=sum(r.total_duration for r in records),
        total_effective_time=total_effective,
        avg_effective_time=total_effective / len(students) if students else 0.0,
        avg_quality=_mean([r.quality_score for r in records if r.quality_score is not None]),
    )


def summarize_invalid_reasons(
    records: Sequence[EffectiveStudyRecord],
) -> list[InvalidReasonStat]:
    """Count records per invalid reason, most frequent first."""
    counts: dict[InvalidTimeReason, int] = defaultdict(int)
    durations: dict[InvalidTimeReason, float] = defaultdict(float)
    for record in records:
        if record.invalid_reason is None:
            continue
        counts[record.invalid_reason] += 1
        durations[record.invalid_reason] += record.invalid_duration

    stats = [
        InvalidReasonStat(reason=reason, count=count, total_invalid_time=durations[reason])
        for reason, count in counts.items()
    ]
    stats.sort(key=lambda s: (-s.count, s.reason.value))
    return stats
