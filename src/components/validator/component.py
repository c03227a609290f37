"""
Validator component - Ordered disqualification rules for a study session.

Rules run in a fixed order and the first failing rule decides the
invalid reason:

1. Browsing site information or taking tests  -> BROWSING_WEB_INFO
2. Failed identity verification               -> IDENTITY_VERIFICATION_FAILED
3. Interaction interval above the maximum     -> INTERACTION_TIMEOUT
4. Required post-lesson test not completed    -> INCOMPLETE_COURSE_TEST

Identity and integrity failures must dominate softer interaction failures,
so the order is part of the contract.
"""

from __future__ import annotations

from collections.abc import Sequence

from src.components.behavior import (
    DEFAULT_INTERACTION_TIMEOUT_SECONDS,
    BehaviorEvent,
    check_interaction_timeout,
    has_authentication_failure,
    has_completed_test,
    is_browsing_or_testing,
)
from src.domain.entities import EffectiveStudyRecord, InvalidTimeReason

from .models import ValidationOutcome
from .ports import LessonTestPolicyPort


def is_test_required(
    record: EffectiveStudyRecord,
    policy: LessonTestPolicyPort | None = None,
) -> bool:
    """Whether the record's lesson requires a completed post-lesson test."""
    if policy is None:
        return False
    return policy.requires_post_lesson_test(record.course_id, record.lesson_id)


def validate_study_time(
    record: EffectiveStudyRecord,
    events: Sequence[BehaviorEvent],
    *,
    policy: LessonTestPolicyPort | None = None,
    interaction_timeout: int = DEFAULT_INTERACTION_TIMEOUT_SECONDS,
) -> ValidationOutcome:
    """
    Apply the validity rules to a session's events.

    Args:
        record: Record under evaluation (read only)
        events: Ordered behavior events
        policy: Optional lesson test policy
        interaction_timeout: Maximum seconds between timestamped events

    Returns:
        ValidationOutcome (valid, or the first failing rule's reason)
    """
    if is_browsing_or_testing(events):
        return ValidationOutcome.rejected(
            InvalidTimeReason.BROWSING_WEB_INFO,
            "Time spent browsing site information or taking online tests is not effective study time",
        )

    if has_authentication_failure(events):
        return ValidationOutcome.rejected(
            InvalidTimeReason.IDENTITY_VERIFICATION_FAILED,
            "Study time after a failed identity verification",
        )

    timeout = check_interaction_timeout(events, interaction_timeout)
    if not timeout.valid:
        return ValidationOutcome.rejected(
            InvalidTimeReason.INTERACTION_TIMEOUT,
            timeout.description or "Interaction timeout detected",
        )

    if is_test_required(record, policy) and not has_completed_test(events):
        return ValidationOutcome.rejected(
            InvalidTimeReason.INCOMPLETE_COURSE_TEST,
            "Study time of a lesson whose test was not completed",
        )

    return ValidationOutcome.ok()
