"""
Study time component port definitions.

Protocol interfaces for external dependencies.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import EffectiveStudyRecord, LearnSession, StudyTimeStatus


class StudyRecordRepoPort(Protocol):
    """Repository for effective study records."""

    def get_by_id(self, record_id: UUID) -> EffectiveStudyRecord | None:
        ...

    def save(self, record: EffectiveStudyRecord) -> EffectiveStudyRecord:
        """Insert or update a record."""
        ...

    def mark_notified(self, record_id: UUID) -> None:
        """Set student_notified without touching other fields."""
        ...

    def get_daily_effective_time(
        self,
        user_id: str,
        study_date: datetime,
        exclude_record_id: UUID | None = None,
    ) -> float:
        """Sum effective_duration of records counted in the user's daily total."""
        ...

    def list_by_user(
        self,
        user_id: str,
        start_date: datetime,
        end_date: datetime,
    ) -> list[EffectiveStudyRecord]:
        """Records of a user with study_date in [start_date, end_date]."""
        ...

    def list_by_course(self, course_id: str, limit: int | None = None) -> list[EffectiveStudyRecord]:
        ...

    def list_in_range(
        self,
        start_date: datetime,
        end_date: datetime,
        statuses: list[StudyTimeStatus] | None = None,
    ) -> list[EffectiveStudyRecord]:
        ...

    def list_unnotified(self, limit: int | None = None) -> list[EffectiveStudyRecord]:
        ...

    def list_needing_review(self, limit: int = 100) -> list[EffectiveStudyRecord]:
        """PENDING and PARTIAL records, oldest first."""
        ...


class KeyedLockPort(Protocol):
    """Mutual exclusion per key (user + study date)."""

    def hold(self, key: str) -> AbstractContextManager[None]:
        ...


class ResultNotifierPort(Protocol):
    """Sends the certification result to the learner."""

    def send_study_time_result_notification(
        self,
        record: EffectiveStudyRecord,
        session: LearnSession | None = None,
    ) -> bool:
        """Returns True when delivered."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
