"""
Notification component - Message builders.

Pure functions that turn study time outcomes into learner-facing
notifications. Delivery is done by StudyTimeNotificationService.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from src.components.quality import quality_level
from src.domain.entities import (
    EffectiveStudyRecord,
    InvalidTimeReason,
    LearnSession,
)

from .models import NotificationPriority, NotificationType, StudyTimeNotification

RESULT_TITLE = "Study time result"
INVALID_TITLE = "Study time notice"
DAILY_LIMIT_TITLE = "Daily study limit reached"
QUALITY_TITLE = "Learning quality feedback"


def build_result_message(record: EffectiveStudyRecord, session: LearnSession | None = None) -> str:
    course = (session.course_title if session else None) or record.course_id
    lesson = (session.lesson_title if session else None) or record.lesson_id

    message = (
        f"Study time result for course '{course}', lesson '{lesson}': "
        f"{record.status.label}, effective study time {record.effective_duration / 60:.1f} min"
    )
    if record.invalid_reason is not None:
        message += f", reason: {record.invalid_reason.label}"
    if record.quality_score is not None:
        message += f", quality score: {record.quality_score:.1f}"
    return message


def build_daily_limit_message(daily_limit: float, exceeded_time: float) -> str:
    return (
        f"You have reached today's effective study limit ({daily_limit / 3600:.1f}h). "
        f"The excess ({exceeded_time / 3600:.1f}h) does not count toward your study time."
    )


def build_quality_message(score: float) -> str:
    level = quality_level(score)
    message = f"Learning quality score for this session: {score:.1f} ({level.value})"
    if score < 6.0:
        message += ". Try to stay focused and interact more with the lesson."
    elif score >= 8.0:
        message += ". Great learning state, keep it up!"
    return message


def result_notification(
    record: EffectiveStudyRecord,
    now: datetime,
    session: LearnSession | None = None,
) -> StudyTimeNotification:
    return StudyTimeNotification(
        type=NotificationType.RESULT,
        user_id=record.user_id,
        title=RESULT_TITLE,
        message=build_result_message(record, session),
        created_at=now,
        priority=(
            NotificationPriority.HIGH if record.status.is_terminal else NotificationPriority.NORMAL
        ),
        data={
            "record_id": str(record.id),
            "status": record.status.value,
            "status_label": record.status.label,
            "course_title": session.course_title if session else None,
            "lesson_title": session.lesson_title if session else None,
            "study_date": record.study_date.date().isoformat(),
            "effective_time_minutes": round(record.effective_duration / 60, 1),
            "quality_score": record.quality_score,
        },
    )


def invalid_time_notification(
    user_id: str,
    reason: InvalidTimeReason,
    now: datetime,
    details: dict[str, Any] | None = None,
) -> StudyTimeNotification:
    return StudyTimeNotification(
        type=NotificationType.INVALID,
        user_id=user_id,
        title=INVALID_TITLE,
        message=reason.notification_message,
        created_at=now,
        priority=(
            NotificationPriority.HIGH
            if reason.requires_student_notification
            else NotificationPriority.NORMAL
        ),
        data={
            "reason": reason.value,
            "reason_label": reason.label,
            "requires_action": reason.requires_student_notification,
            "details": details or {},
        },
    )


def daily_limit_notification(
    user_id: str,
    current_time: float,
    daily_limit: float,
    exceeded_time: float,
    now: datetime,
) -> StudyTimeNotification:
    return StudyTimeNotification(
        type=NotificationType.DAILY_LIMIT,
        user_id=user_id,
        title=DAILY_LIMIT_TITLE,
        message=build_daily_limit_message(daily_limit, exceeded_time),
        created_at=now,
        priority=NotificationPriority.HIGH,
        data={
            "current_time_hours": round(current_time / 3600, 2),
            "daily_limit_hours": round(daily_limit / 3600, 2),
            "exceeded_time_hours": round(exceeded_time / 3600, 2),
        },
    )


def quality_feedback_notification(
    user_id: str,
    score: float,
    now: datetime,
    details: dict[str, Any] | None = None,
) -> StudyTimeNotification:
    return StudyTimeNotification(
        type=NotificationType.QUALITY,
        user_id=user_id,
        title=QUALITY_TITLE,
        message=build_quality_message(score),
        created_at=now,
        data={
            "quality_score": score,
            "quality_level": quality_level(score).value,
            "score_details": details or {},
        },
    )
