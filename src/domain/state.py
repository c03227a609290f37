from datetime import datetime

from src.domain.entities import EffectiveStudyRecord, InvalidTimeReason, StudyTimeStatus

# Transitions a reviewer may apply. Terminal statuses accept none.
REVIEW_TRANSITIONS: dict[StudyTimeStatus, frozenset[StudyTimeStatus]] = {
    StudyTimeStatus.PENDING: frozenset({StudyTimeStatus.VALID, StudyTimeStatus.INVALID}),
    StudyTimeStatus.PARTIAL: frozenset({StudyTimeStatus.VALID, StudyTimeStatus.INVALID}),
    StudyTimeStatus.VALID: frozenset(),
    StudyTimeStatus.INVALID: frozenset(),
}


def can_review(current: StudyTimeStatus, new: StudyTimeStatus) -> bool:
    """
    Determine if a reviewer may move a record from current to new.
    """
    return new in REVIEW_TRANSITIONS[current]


def can_recalculate(record: EffectiveStudyRecord, force: bool = False) -> bool:
    """
    Non-terminal records can always be recomputed. Terminal ones only when
    forced, and never once a reviewer has judged them.
    """
    if record.reviewed_by is not None:
        return False
    if not record.status.is_terminal:
        return True
    return force


def apply_review(
    record: EffectiveStudyRecord,
    new_status: StudyTimeStatus,
    reviewer: str,
    comment: str | None,
    now: datetime,
) -> EffectiveStudyRecord:
    """
    Apply a reviewer decision in place.
    Raises ValueError if the transition is not allowed.
    """
    if not can_review(record.status, new_status):
        raise ValueError(f"Invalid review transition from {record.status.value} to {new_status.value}")

    if new_status is StudyTimeStatus.INVALID:
        record.set_durations(0.0)
        record.include_in_daily_total = False
        if record.invalid_reason is None:
            record.invalid_reason = InvalidTimeReason.MANUAL_EXCLUSION
    else:
        # Keeps the (possibly capped) effective duration
        record.invalid_reason = None
        record.include_in_daily_total = True

    record.status = new_status
    record.reviewed_by = reviewer
    record.review_comment = comment
    record.review_time = now
    record.updated_at = now
    record.student_notified = False
    return record
