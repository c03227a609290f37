"""
Calculator component models.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.domain.entities import InvalidTimeReason

DEFAULT_DAILY_LIMIT_SECONDS = 8 * 3600
DEFAULT_FLAT_SEGMENT_RATIO = 0.8


@dataclass(frozen=True)
class DailyLimitCheck:
    """
    Outcome of the daily cap check.

    - valid and not partial: the whole effective duration fits under the cap
    - valid and partial: effective duration was cut to valid_time (> 0)
    - not valid: nothing fits, effective duration is 0
    """

    valid: bool
    partial: bool = False
    current_daily_time: float = 0.0
    daily_limit: float = DEFAULT_DAILY_LIMIT_SECONDS
    valid_time: float = 0.0
    exceeded_time: float = 0.0
    reason: InvalidTimeReason | None = None
    description: str | None = None
