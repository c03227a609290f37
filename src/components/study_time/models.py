"""
Study time component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from src.components.behavior import (
    DEFAULT_GAP_THRESHOLD_SECONDS,
    DEFAULT_INTERACTION_TIMEOUT_SECONDS,
    BehaviorEvent,
)
from src.components.quality import DEFAULT_FOCUS_THRESHOLD, DEFAULT_QUALITY_THRESHOLD
from src.domain.entities import EffectiveStudyRecord, InvalidTimeReason, LearnSession

if TYPE_CHECKING:
    from src.rules.models import Rules


# --- Configuration ---


@dataclass(frozen=True)
class StudyTimeConfig:
    """Study time engine configuration from rules."""

    interaction_timeout_seconds: int = DEFAULT_INTERACTION_TIMEOUT_SECONDS
    continuity_gap_seconds: int = DEFAULT_GAP_THRESHOLD_SECONDS

    # Review gate
    quality_threshold: float = DEFAULT_QUALITY_THRESHOLD
    focus_threshold: float = DEFAULT_FOCUS_THRESHOLD

    # Batch
    batch_size: int = 50
    batch_deadline_seconds: float | None = None

    @classmethod
    def from_rules(cls, rules: Rules) -> StudyTimeConfig:
        return cls(
            interaction_timeout_seconds=rules.study_time.interaction_timeout_seconds,
            continuity_gap_seconds=rules.study_time.continuity_gap_seconds,
            quality_threshold=rules.quality.review_threshold,
            focus_threshold=rules.quality.focus_threshold,
            batch_size=rules.batch.size,
            batch_deadline_seconds=rules.batch.deadline_seconds,
        )


DEFAULT_CONFIG = StudyTimeConfig()


# --- Errors ---


@dataclass
class StudyTimeError:
    """Study time workflow error."""

    code: str
    message: str
    record_id: UUID | None = None


# --- Batch ---


@dataclass
class BatchItem:
    """One closed session awaiting processing."""

    session: LearnSession
    start_time: datetime
    end_time: datetime
    total_duration: float
    behavior_events: list[BehaviorEvent] = field(default_factory=list)


@dataclass
class BatchItemResult:
    """Outcome of one batch item."""

    index: int
    success: bool
    record: EffectiveStudyRecord | None = None
    error: str | None = None
    skipped: bool = False
    key: str | None = None  # session id or record id


@dataclass
class BatchProcessResult:
    """Outcome of a batch run."""

    results: list[BatchItemResult] = field(default_factory=list)
    cancelled: bool = False
    deadline_exceeded: bool = False

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success and not r.skipped)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def total(self) -> int:
        return len(self.results)


# --- Statistics ---


@dataclass(frozen=True)
class UserStudyTimeStats:
    user_id: str
    total_records: int = 0
    total_time: float = 0.0
    effective_time: float = 0.0
    invalid_time: float = 0.0
    avg_quality: float = 0.0
    avg_focus: float = 0.0
    avg_interaction: float = 0.0
    avg_continuity: float = 0.0

    @property
    def efficiency_rate(self) -> float:
        if self.total_time <= 0:
            return 0.0
        return self.effective_time / self.total_time

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "total_records": self.total_records,
            "total_time_hours": round(self.total_time / 3600, 2),
            "effective_time_hours": round(self.effective_time / 3600, 2),
            "invalid_time_hours": round(self.invalid_time / 3600, 2),
            "efficiency_rate": round(self.efficiency_rate * 100, 1),
            "avg_quality_score": round(self.avg_quality, 1),
            "avg_focus_score": round(self.avg_focus, 3),
            "avg_interaction_score": round(self.avg_interaction, 3),
            "avg_continuity_score": round(self.avg_continuity, 3),
        }


@dataclass(frozen=True)
class CourseStudyTimeStats:
    course_id: str
    total_students: int = 0
    total_records: int = 0
    total_study_time: float = 0.0
    total_effective_time: float = 0.0
    avg_effective_time: float = 0.0  # per student
    avg_quality: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "total_students": self.total_students,
            "total_records": self.total_records,
            "total_study_time_hours": round(self.total_study_time / 3600, 2),
            "total_effective_time_hours": round(self.total_effective_time / 3600, 2),
            "avg_effective_time_hours": round(self.avg_effective_time / 3600, 2),
            "avg_quality_score": round(self.avg_quality, 1),
        }


@dataclass(frozen=True)
class InvalidReasonStat:
    reason: InvalidTimeReason
    count: int
    total_invalid_time: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "reason": self.reason.value,
            "label": self.reason.label,
            "regulation_category": self.reason.regulation_category,
            "count": self.count,
            "total_invalid_time_hours": round(self.total_invalid_time / 3600, 2),
        }
