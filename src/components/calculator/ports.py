"""
Calculator component port definitions.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.behavior import BehaviorEvent


class SegmentFilter(Protocol):
    """
    Strategy that removes non-study spans from the reported duration.

    Returns the seconds that remain before ratio discounting.
    """

    def filter(self, total_duration: float, events: Sequence[BehaviorEvent]) -> float:
        ...


class DailyAggregatePort(Protocol):
    """Read access to a user's already-certified time for a day."""

    def get_daily_effective_time(
        self,
        user_id: str,
        study_date: datetime,
        exclude_record_id: UUID | None = None,
    ) -> float:
        """
        Sum effective_duration of records counted in the daily total.

        exclude_record_id leaves one record out (used when recomputing it).
        """
        ...


class DailyLimitPort(Protocol):
    """Per-user daily cap configuration."""

    def get_user_daily_limit(self, user_id: str) -> float:
        """Daily cap in seconds (default 8 hours)."""
        ...
