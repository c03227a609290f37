"""
Segment filter strategies.

FlatDiscountSegmentFilter keeps a fixed share of the reported duration.
IntervalExclusionSegmentFilter subtracts the spans the event stream marks
as unfocused or as rapid seeking.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.components.behavior import (
    BehaviorEvent,
    extract_duration,
    extract_timestamp,
)

from .models import DEFAULT_FLAT_SEGMENT_RATIO
from .ports import SegmentFilter

if TYPE_CHECKING:
    from src.rules.models import SegmentFilterRules

EXCLUDED_SPAN_ACTIONS: frozenset[str] = frozenset(
    {"window_blur", "mouse_leave", "tab_switch", "page_hidden", "rapid_seek"}
)
SEEK_ACTION = "seek"


@dataclass(frozen=True)
class FlatDiscountSegmentFilter:
    """Keep a fixed ratio of the reported duration."""

    ratio: float = DEFAULT_FLAT_SEGMENT_RATIO

    def __post_init__(self) -> None:
        if not 0.0 <= self.ratio <= 1.0:
            raise ValueError(f"Segment ratio must be within [0, 1], got {self.ratio}")

    def filter(self, total_duration: float, events: Sequence[BehaviorEvent]) -> float:
        return max(0.0, total_duration) * self.ratio


@dataclass(frozen=True)
class IntervalExclusionSegmentFilter:
    """
    Subtract excluded spans from the reported duration.

    Excluded: durations of unfocused/hidden/rapid_seek events, and of seek
    events that follow the previous seek within seek_window_seconds.
    """

    seek_window_seconds: int = 3

    def excluded_seconds(self, events: Sequence[BehaviorEvent]) -> float:
        excluded = 0.0
        last_seek: int | None = None
        for event in events:
            action = event.get("action")
            if action in EXCLUDED_SPAN_ACTIONS:
                excluded += extract_duration(event)
            elif action == SEEK_ACTION:
                ts = extract_timestamp(event)
                if (
                    ts is not None
                    and last_seek is not None
                    and 0 <= ts - last_seek <= self.seek_window_seconds
                ):
                    excluded += extract_duration(event)
                if ts is not None:
                    last_seek = ts
        return excluded

    def filter(self, total_duration: float, events: Sequence[BehaviorEvent]) -> float:
        total = max(0.0, total_duration)
        return max(0.0, total - self.excluded_seconds(events))


def build_segment_filter(rules: SegmentFilterRules | None = None) -> SegmentFilter:
    """Select the segment filter strategy named in the rules file."""
    if rules is None:
        return FlatDiscountSegmentFilter()
    if rules.strategy == "interval":
        return IntervalExclusionSegmentFilter(seek_window_seconds=rules.seek_window_seconds)
    if rules.strategy == "flat":
        return FlatDiscountSegmentFilter(ratio=rules.flat_ratio)
    raise ValueError(f"Unknown segment filter strategy: {rules.strategy}")
