from datetime import UTC, datetime

import pytest

from src.domain.entities import (
    EffectiveStudyRecord,
    InvalidTimeReason,
    StudyTimeStatus,
    format_duration,
)
from src.domain.state import REVIEW_TRANSITIONS, apply_review, can_recalculate, can_review

NOW = datetime(2026, 1, 14, 12, 0, tzinfo=UTC)


def make_record(**overrides) -> EffectiveStudyRecord:
    data = {
        "user_id": "u1",
        "session_id": "s1",
        "course_id": "c1",
        "lesson_id": "l1",
        "study_date": datetime(2026, 1, 14, tzinfo=UTC),
        "start_time": datetime(2026, 1, 14, 9, 0, tzinfo=UTC),
        "end_time": datetime(2026, 1, 14, 10, 0, tzinfo=UTC),
        "total_duration": 3600.0,
    }
    data.update(overrides)
    return EffectiveStudyRecord(**data)


class TestStatus:
    def test_terminal_statuses(self) -> None:
        assert StudyTimeStatus.VALID.is_terminal
        assert StudyTimeStatus.INVALID.is_terminal
        assert not StudyTimeStatus.PARTIAL.is_terminal
        assert not StudyTimeStatus.PENDING.is_terminal

    def test_review_queue(self) -> None:
        assert {s for s in StudyTimeStatus if s.needs_review} == {
            StudyTimeStatus.PENDING,
            StudyTimeStatus.PARTIAL,
        }

    def test_every_status_has_label(self) -> None:
        assert all(s.label for s in StudyTimeStatus)


class TestInvalidTimeReason:
    def test_label(self) -> None:
        assert InvalidTimeReason.DAILY_LIMIT_EXCEEDED.label == "Daily limit exceeded"

    def test_regulation_categories(self) -> None:
        assert InvalidTimeReason.BROWSING_WEB_INFO.regulation_category == "regulation_a"
        assert InvalidTimeReason.INCOMPLETE_COURSE_TEST.regulation_category == "regulation_e"
        assert InvalidTimeReason.PAGE_HIDDEN.regulation_category == "technical_reason"

    def test_regulation_and_technical_partition(self) -> None:
        regulation = set(InvalidTimeReason.regulation_reasons())
        technical = set(InvalidTimeReason.technical_reasons())

        assert regulation.isdisjoint(technical)
        assert regulation | technical == set(InvalidTimeReason)

    def test_severity(self) -> None:
        assert InvalidTimeReason.IDENTITY_VERIFICATION_FAILED.severity == "critical"
        assert InvalidTimeReason.DAILY_LIMIT_EXCEEDED.severity == "high"
        assert InvalidTimeReason.INTERACTION_TIMEOUT.severity == "medium"
        assert InvalidTimeReason.SYSTEM_ERROR.severity == "low"

    def test_notification_message_fallback(self) -> None:
        assert InvalidTimeReason.DAILY_LIMIT_EXCEEDED.requires_student_notification
        assert not InvalidTimeReason.SYSTEM_ERROR.requires_student_notification
        assert InvalidTimeReason.SYSTEM_ERROR.notification_message


class TestRecord:
    def test_set_durations_clamps(self) -> None:
        record = make_record()

        record.set_durations(5000)
        assert record.effective_duration == 3600.0
        assert record.invalid_duration == 0.0

        record.set_durations(-1)
        assert record.effective_duration == 0.0
        assert record.invalid_duration == 3600.0

    def test_rates(self) -> None:
        record = make_record()
        record.set_durations(2880)

        assert record.effective_rate == pytest.approx(0.8)
        assert record.invalid_rate == pytest.approx(0.2)
        assert record.efficiency_label == "good"

    def test_zero_duration_rates(self) -> None:
        record = make_record(total_duration=0.0)
        assert record.effective_rate == 0.0
        assert record.efficiency_label == "very poor"

    def test_evidence_is_append_only(self) -> None:
        record = make_record()
        record.add_evidence("behavior_summary", {"total_behaviors": 1}, 100)
        record.add_evidence("behavior_summary", {"total_behaviors": 2}, 200)

        assert [e["timestamp"] for e in record.evidence_data] == [100, 200]

    def test_format_duration(self) -> None:
        assert format_duration(3725) == "01:02:05"
        assert format_duration(-5) == "00:00:00"


class TestReviewTransitions:
    def test_table_covers_all_statuses(self) -> None:
        assert set(REVIEW_TRANSITIONS) == set(StudyTimeStatus)

    @pytest.mark.parametrize(
        "current,new,allowed",
        [
            (StudyTimeStatus.PENDING, StudyTimeStatus.VALID, True),
            (StudyTimeStatus.PENDING, StudyTimeStatus.INVALID, True),
            (StudyTimeStatus.PARTIAL, StudyTimeStatus.VALID, True),
            (StudyTimeStatus.PENDING, StudyTimeStatus.PARTIAL, False),
            (StudyTimeStatus.VALID, StudyTimeStatus.INVALID, False),
            (StudyTimeStatus.INVALID, StudyTimeStatus.VALID, False),
        ],
    )
    def test_can_review(self, current, new, allowed) -> None:
        assert can_review(current, new) is allowed

    def test_apply_review_to_valid_clears_reason(self) -> None:
        record = make_record(
            status=StudyTimeStatus.PARTIAL,
            invalid_reason=InvalidTimeReason.DAILY_LIMIT_EXCEEDED,
        )
        record.set_durations(1800)

        apply_review(record, StudyTimeStatus.VALID, "r1", "ok", NOW)

        assert record.status == StudyTimeStatus.VALID
        assert record.invalid_reason is None
        assert record.effective_duration == 1800.0
        assert record.reviewed_by == "r1"
        assert record.review_time == NOW

    def test_apply_review_to_invalid_zeroes_time(self) -> None:
        record = make_record(status=StudyTimeStatus.PENDING)
        record.set_durations(1000)

        apply_review(record, StudyTimeStatus.INVALID, "r1", None, NOW)

        assert record.effective_duration == 0.0
        assert record.invalid_duration == 3600.0
        assert record.invalid_reason == InvalidTimeReason.MANUAL_EXCLUSION
        assert record.include_in_daily_total is False

    def test_apply_review_rejects_terminal(self) -> None:
        record = make_record(status=StudyTimeStatus.VALID)
        with pytest.raises(ValueError):
            apply_review(record, StudyTimeStatus.INVALID, "r1", None, NOW)


class TestRecalculationGuard:
    def test_non_terminal_always(self) -> None:
        assert can_recalculate(make_record(status=StudyTimeStatus.PENDING))
        assert can_recalculate(make_record(status=StudyTimeStatus.PARTIAL))

    def test_terminal_needs_force(self) -> None:
        record = make_record(status=StudyTimeStatus.INVALID)
        assert not can_recalculate(record)
        assert can_recalculate(record, force=True)

    def test_reviewed_never(self) -> None:
        record = make_record(status=StudyTimeStatus.VALID, reviewed_by="r1")
        assert not can_recalculate(record, force=True)
