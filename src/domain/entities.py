from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums ---


class StudyTimeStatus(Enum):
    """Certification status of an effective study record."""

    VALID = "valid"
    INVALID = "invalid"
    PARTIAL = "partial"
    PENDING = "pending"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (StudyTimeStatus.VALID, StudyTimeStatus.INVALID)

    @property
    def is_countable(self) -> bool:
        """Whether records in this status may count toward the daily total."""
        return self is not StudyTimeStatus.INVALID

    @property
    def needs_review(self) -> bool:
        return self in (StudyTimeStatus.PENDING, StudyTimeStatus.PARTIAL)


_STATUS_LABELS = {
    StudyTimeStatus.VALID: "Valid study time",
    StudyTimeStatus.INVALID: "Invalid study time",
    StudyTimeStatus.PARTIAL: "Partially valid study time",
    StudyTimeStatus.PENDING: "Pending review",
}


class InvalidTimeReason(Enum):
    """Why (part of) a session's time does not count as effective study time."""

    # a) browsing site information or taking online tests
    BROWSING_WEB_INFO = "browsing_web_info"
    ONLINE_TESTING = "online_testing"
    # b) time after a failed identity verification
    IDENTITY_VERIFICATION_FAILED = "identity_verification_failed"
    # c) interaction interval above the configured maximum
    INTERACTION_TIMEOUT = "interaction_timeout"
    IDLE_TIMEOUT = "idle_timeout"
    NO_ACTIVITY_DETECTED = "no_activity_detected"
    # d) portion above the daily cap
    DAILY_LIMIT_EXCEEDED = "daily_limit_exceeded"
    # e) post-lesson test not completed
    INCOMPLETE_COURSE_TEST = "incomplete_course_test"
    # technical
    WINDOW_FOCUS_LOST = "window_focus_lost"
    PAGE_HIDDEN = "page_hidden"
    MULTIPLE_DEVICE_LOGIN = "multiple_device_login"
    NETWORK_DISCONNECTED = "network_disconnected"
    SYSTEM_ERROR = "system_error"
    SUSPICIOUS_BEHAVIOR = "suspicious_behavior"
    MANUAL_EXCLUSION = "manual_exclusion"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()

    @property
    def regulation_category(self) -> str:
        return _REGULATION_CATEGORIES.get(self, "technical_reason")

    @property
    def severity(self) -> str:
        if self in (
            InvalidTimeReason.INCOMPLETE_COURSE_TEST,
            InvalidTimeReason.IDENTITY_VERIFICATION_FAILED,
        ):
            return "critical"
        if self in (
            InvalidTimeReason.DAILY_LIMIT_EXCEEDED,
            InvalidTimeReason.MULTIPLE_DEVICE_LOGIN,
            InvalidTimeReason.SUSPICIOUS_BEHAVIOR,
        ):
            return "high"
        if self in (
            InvalidTimeReason.INTERACTION_TIMEOUT,
            InvalidTimeReason.IDLE_TIMEOUT,
            InvalidTimeReason.WINDOW_FOCUS_LOST,
        ):
            return "medium"
        return "low"

    @property
    def affects_whole_course(self) -> bool:
        return self in (
            InvalidTimeReason.INCOMPLETE_COURSE_TEST,
            InvalidTimeReason.IDENTITY_VERIFICATION_FAILED,
        )

    @property
    def requires_student_notification(self) -> bool:
        return self in _NOTIFICATION_MESSAGES

    @property
    def notification_message(self) -> str:
        return _NOTIFICATION_MESSAGES.get(
            self, "This period does not count toward effective study time."
        )

    @classmethod
    def regulation_reasons(cls) -> list["InvalidTimeReason"]:
        return [r for r in cls if r.regulation_category != "technical_reason"]

    @classmethod
    def technical_reasons(cls) -> list["InvalidTimeReason"]:
        return [r for r in cls if r.regulation_category == "technical_reason"]


_REGULATION_CATEGORIES = {
    InvalidTimeReason.BROWSING_WEB_INFO: "regulation_a",
    InvalidTimeReason.ONLINE_TESTING: "regulation_a",
    InvalidTimeReason.IDENTITY_VERIFICATION_FAILED: "regulation_b",
    InvalidTimeReason.INTERACTION_TIMEOUT: "regulation_c",
    InvalidTimeReason.IDLE_TIMEOUT: "regulation_c",
    InvalidTimeReason.NO_ACTIVITY_DETECTED: "regulation_c",
    InvalidTimeReason.DAILY_LIMIT_EXCEEDED: "regulation_d",
    InvalidTimeReason.INCOMPLETE_COURSE_TEST: "regulation_e",
}

_NOTIFICATION_MESSAGES = {
    InvalidTimeReason.BROWSING_WEB_INFO: (
        "Browsing site information does not count toward effective study time."
    ),
    InvalidTimeReason.ONLINE_TESTING: (
        "Time spent in online tests does not count toward effective study time."
    ),
    InvalidTimeReason.IDENTITY_VERIFICATION_FAILED: (
        "Identity verification failed. Please verify again; time after the "
        "failure does not count."
    ),
    InvalidTimeReason.INTERACTION_TIMEOUT: (
        "No interaction with the platform was detected for too long; this "
        "period does not count."
    ),
    InvalidTimeReason.IDLE_TIMEOUT: (
        "No activity was detected for too long. Click to continue studying."
    ),
    InvalidTimeReason.DAILY_LIMIT_EXCEEDED: (
        "You have reached today's effective study time limit; time above it "
        "is not certified."
    ),
    InvalidTimeReason.INCOMPLETE_COURSE_TEST: (
        "Please complete the lesson test, otherwise the lesson's study time "
        "cannot be certified."
    ),
}


# --- Learn Session (collaborator shape) ---


class LearnSession(BaseModel):
    """A closed learning session as handed over by the lifecycle handlers."""

    id: str
    user_id: str
    course_id: str
    lesson_id: str
    course_title: str | None = None
    lesson_title: str | None = None


# --- Effective Study Record ---


def utcnow() -> datetime:
    return datetime.now(UTC)


class EffectiveStudyRecord(BaseModel):
    """
    Certified outcome of one session's evaluation.

    Invariants:
    - 0 <= effective_duration <= total_duration
    - effective_duration + invalid_duration == total_duration once evaluated
    - INVALID implies effective_duration == 0 and not include_in_daily_total
    - VALID implies invalid_reason is None
    """

    id: UUID = Field(default_factory=uuid4)
    user_id: str
    session_id: str
    course_id: str
    lesson_id: str
    study_date: datetime

    start_time: datetime
    end_time: datetime
    total_duration: float
    effective_duration: float = 0.0
    invalid_duration: float = 0.0

    status: StudyTimeStatus = StudyTimeStatus.PENDING
    invalid_reason: InvalidTimeReason | None = None
    description: str | None = None

    quality_score: float | None = None
    focus_score: float | None = None
    interaction_score: float | None = None
    continuity_score: float | None = None

    evidence_data: list[dict[str, Any]] = Field(default_factory=list)
    behavior_stats: list[dict[str, Any]] | None = None
    review_comment: str | None = None
    reviewed_by: str | None = None
    review_time: datetime | None = None
    include_in_daily_total: bool = True
    student_notified: bool = False

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def effective_rate(self) -> float:
        if self.total_duration <= 0:
            return 0.0
        return self.effective_duration / self.total_duration

    @property
    def invalid_rate(self) -> float:
        if self.total_duration <= 0:
            return 0.0
        return self.invalid_duration / self.total_duration

    @property
    def is_high_quality(self) -> bool:
        return self.quality_score is not None and self.quality_score >= 8.0

    @property
    def needs_review(self) -> bool:
        return self.status.needs_review

    @property
    def efficiency_label(self) -> str:
        rate = self.effective_rate
        if rate >= 0.9:
            return "excellent"
        if rate >= 0.8:
            return "good"
        if rate >= 0.6:
            return "fair"
        if rate >= 0.4:
            return "poor"
        return "very poor"

    def set_durations(self, effective: float) -> None:
        """Set effective time and derive the invalid remainder."""
        effective = max(0.0, min(float(effective), self.total_duration))
        self.effective_duration = effective
        self.invalid_duration = self.total_duration - effective

    def add_evidence(self, evidence_type: str, data: dict[str, Any], timestamp: int) -> None:
        """Append an evidence entry; existing entries are never rewritten."""
        self.evidence_data.append({"type": evidence_type, "data": data, "timestamp": timestamp})


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS."""
    total = int(max(0.0, seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
