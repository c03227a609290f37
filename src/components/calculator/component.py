"""
Calculator component - Effective duration arithmetic and daily cap.

Effective time = segment filter(total) x focus x interaction x continuity,
clamped to [0, total_duration].

The daily cap check compares the user's already-counted time for the day
plus this record's effective time with the user's limit. Records that only
partly fit are cut down and marked PARTIAL; records that do not fit at all
are reported invalid with DAILY_LIMIT_EXCEEDED.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.components.behavior import (
    DEFAULT_GAP_THRESHOLD_SECONDS,
    BehaviorEvent,
    compute_ratios,
)
from src.domain.entities import (
    EffectiveStudyRecord,
    InvalidTimeReason,
    StudyTimeStatus,
)

from ._segments import FlatDiscountSegmentFilter
from .models import DailyLimitCheck
from .ports import DailyAggregatePort, DailyLimitPort, SegmentFilter

logger = logging.getLogger(__name__)

DEFAULT_SEGMENT_FILTER = FlatDiscountSegmentFilter()


# --- Pure Functions (Functional Core) ---


def filter_valid_time_segments(
    total_duration: float,
    events: Sequence[BehaviorEvent],
    segment_filter: SegmentFilter | None = None,
) -> float:
    """Apply the segment filter strategy (flat 0.8 by default)."""
    strategy = segment_filter or DEFAULT_SEGMENT_FILTER
    return max(0.0, strategy.filter(total_duration, events))


def calculate_effective_time(
    record: EffectiveStudyRecord,
    events: Sequence[BehaviorEvent],
    *,
    segment_filter: SegmentFilter | None = None,
    gap_threshold: int = DEFAULT_GAP_THRESHOLD_SECONDS,
) -> float:
    """
    Calculate the effective study seconds of a record.

    Args:
        record: Record under evaluation (total_duration is read)
        events: Ordered behavior events
        segment_filter: Segment filter strategy
        gap_threshold: Continuity gap threshold in seconds

    Returns:
        Effective seconds in [0, total_duration]
    """
    total = max(0.0, record.total_duration)
    filtered = filter_valid_time_segments(total, events, segment_filter)
    ratios = compute_ratios(events, gap_threshold)
    return max(0.0, min(filtered * ratios.product, total))


def check_daily_limit(
    record: EffectiveStudyRecord,
    *,
    current_daily_time: float,
    daily_limit: float,
) -> DailyLimitCheck:
    """
    Check the record's effective duration against the user's daily cap.

    Over the cap, the record is annotated in place: durations are cut to the
    portion that still fits, and a partial fit sets PARTIAL status.

    Args:
        record: Record with effective_duration already calculated
        current_daily_time: Seconds already counted for the user and day
        daily_limit: User's cap in seconds

    Returns:
        DailyLimitCheck
    """
    new_time = record.effective_duration
    total_daily = current_daily_time + new_time

    if total_daily <= daily_limit:
        return DailyLimitCheck(
            valid=True,
            current_daily_time=current_daily_time,
            daily_limit=daily_limit,
            valid_time=new_time,
        )

    exceeded = total_daily - daily_limit
    valid_time = max(0.0, new_time - exceeded)
    record.set_durations(valid_time)

    if valid_time <= 0:
        return DailyLimitCheck(
            valid=False,
            current_daily_time=current_daily_time,
            daily_limit=daily_limit,
            valid_time=0.0,
            exceeded_time=exceeded,
            reason=InvalidTimeReason.DAILY_LIMIT_EXCEEDED,
            description=(
                f"Daily study limit exceeded: {current_daily_time / 3600:.1f}h already "
                f"studied today, {exceeded / 3600:.1f}h over the limit"
            ),
        )

    description = (
        f"Part of the session exceeds the daily limit: {valid_time / 60:.1f} min valid, "
        f"{exceeded / 60:.1f} min invalid"
    )
    record.status = StudyTimeStatus.PARTIAL
    record.invalid_reason = InvalidTimeReason.DAILY_LIMIT_EXCEEDED
    record.description = description

    return DailyLimitCheck(
        valid=True,
        partial=True,
        current_daily_time=current_daily_time,
        daily_limit=daily_limit,
        valid_time=valid_time,
        exceeded_time=exceeded,
        reason=InvalidTimeReason.DAILY_LIMIT_EXCEEDED,
        description=description,
    )


# --- Component Entry Points ---


def run_check_daily_limit(
    record: EffectiveStudyRecord,
    *,
    aggregate: DailyAggregatePort,
    limits: DailyLimitPort,
) -> DailyLimitCheck:
    """
    Read the daily aggregate and the user's limit, then check the record.

    The record itself is left out of the aggregate so a recomputation never
    counts its own previous result.
    """
    current = aggregate.get_daily_effective_time(
        record.user_id,
        record.study_date,
        exclude_record_id=record.id,
    )
    limit = limits.get_user_daily_limit(record.user_id)
    result = check_daily_limit(record, current_daily_time=current, daily_limit=limit)

    if result.partial or not result.valid:
        logger.warning(
            "Daily limit reached for user %s on %s: current=%.0fs limit=%.0fs exceeded=%.0fs",
            record.user_id,
            record.study_date.date().isoformat(),
            current,
            limit,
            result.exceeded_time,
        )
    return result
