"""
Calculator component - Effective time calculation and daily cap.
"""

from ._segments import (
    EXCLUDED_SPAN_ACTIONS,
    FlatDiscountSegmentFilter,
    IntervalExclusionSegmentFilter,
    build_segment_filter,
)
from .component import (
    DEFAULT_SEGMENT_FILTER,
    calculate_effective_time,
    check_daily_limit,
    filter_valid_time_segments,
    run_check_daily_limit,
)
from .models import (
    DEFAULT_DAILY_LIMIT_SECONDS,
    DEFAULT_FLAT_SEGMENT_RATIO,
    DailyLimitCheck,
)
from .ports import DailyAggregatePort, DailyLimitPort, SegmentFilter

__all__ = [
    # Entry points
    "run_check_daily_limit",
    # Pure functions
    "calculate_effective_time",
    "check_daily_limit",
    "filter_valid_time_segments",
    # Strategies
    "FlatDiscountSegmentFilter",
    "IntervalExclusionSegmentFilter",
    "build_segment_filter",
    "DEFAULT_SEGMENT_FILTER",
    "EXCLUDED_SPAN_ACTIONS",
    # Models
    "DailyLimitCheck",
    "DEFAULT_DAILY_LIMIT_SECONDS",
    "DEFAULT_FLAT_SEGMENT_RATIO",
    # Ports
    "DailyAggregatePort",
    "DailyLimitPort",
    "SegmentFilter",
]
