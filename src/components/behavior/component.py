"""
Behavior component - Pure transforms over behavior event streams.

Turns an ordered list of raw player/page events into the ratios and
evidence used by validation, calculation and quality scoring.

Invariants:
- Every ratio is within [0, 1] and is 0 for an empty event list
- Malformed fields degrade to 0 / None; nothing here raises
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping, Sequence
from typing import Any

from .models import (
    AUTH_FAILED_ACTION,
    BROWSING_OR_TESTING_ACTIONS,
    INTERACTION_ACTIONS,
    TEST_COMPLETED_ACTION,
    UNFOCUSED_ACTIONS,
    BehaviorEvent,
    BehaviorRatios,
    EvidenceSnapshot,
    TimeoutCheck,
)

DEFAULT_GAP_THRESHOLD_SECONDS = 120
DEFAULT_INTERACTION_TIMEOUT_SECONDS = 300


# --- Field Extraction ---


def _action(event: BehaviorEvent) -> str:
    action = event.get("action", "")
    return action if isinstance(action, str) else ""


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            return math.isfinite(float(value))
        except ValueError:
            return False
    return False


def extract_duration(event: BehaviorEvent) -> float:
    """Event duration in seconds, 0.0 when missing, negative or not numeric."""
    value = event.get("duration", 0)
    if not _is_number(value):
        return 0.0
    return max(0.0, float(value))


def extract_timestamp(event: BehaviorEvent) -> int | None:
    """Event timestamp in epoch seconds, None when missing or not numeric."""
    value = event.get("timestamp")
    if value is None or value == "":
        return None
    return int(float(value)) if _is_number(value) else None


def _ratio(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return max(0.0, min(1.0, numerator / denominator))


# --- Ratios ---


def calculate_focus_ratio(events: Sequence[BehaviorEvent]) -> float:
    """
    Share of event duration spent focused on the lesson.

    Durations of window_blur, mouse_leave and tab_switch events count as
    unfocused time.
    """
    total = 0.0
    focused = 0.0
    for event in events:
        duration = extract_duration(event)
        total += duration
        if _action(event) not in UNFOCUSED_ACTIONS:
            focused += duration
    return _ratio(focused, total)


def calculate_interaction_ratio(events: Sequence[BehaviorEvent]) -> float:
    """Share of events that are active interactions."""
    interactions = sum(1 for e in events if _action(e) in INTERACTION_ACTIONS)
    return _ratio(float(interactions), float(len(events)))


def count_time_gaps(
    events: Sequence[BehaviorEvent],
    gap_threshold: int = DEFAULT_GAP_THRESHOLD_SECONDS,
) -> int:
    """Count consecutive timestamped events more than gap_threshold apart."""
    gaps = 0
    last: int | None = None
    for event in events:
        current = extract_timestamp(event)
        if current is None:
            continue
        if last is not None and current - last > gap_threshold:
            gaps += 1
        last = current
    return gaps


def calculate_continuity_ratio(
    events: Sequence[BehaviorEvent],
    gap_threshold: int = DEFAULT_GAP_THRESHOLD_SECONDS,
) -> float:
    """Continuity = 1 - gaps / number of events."""
    if not events:
        return 0.0
    gaps = count_time_gaps(events, gap_threshold)
    return max(0.0, 1.0 - gaps / len(events))


def compute_ratios(
    events: Sequence[BehaviorEvent],
    gap_threshold: int = DEFAULT_GAP_THRESHOLD_SECONDS,
) -> BehaviorRatios:
    return BehaviorRatios(
        focus=calculate_focus_ratio(events),
        interaction=calculate_interaction_ratio(events),
        continuity=calculate_continuity_ratio(events, gap_threshold),
    )


# --- Detectors ---


def is_browsing_or_testing(events: Sequence[BehaviorEvent]) -> bool:
    return any(_action(e) in BROWSING_OR_TESTING_ACTIONS for e in events)


def has_authentication_failure(events: Sequence[BehaviorEvent]) -> bool:
    return any(_action(e) == AUTH_FAILED_ACTION for e in events)


def has_completed_test(events: Sequence[BehaviorEvent]) -> bool:
    return any(_action(e) == TEST_COMPLETED_ACTION for e in events)


def check_interaction_timeout(
    events: Sequence[BehaviorEvent],
    max_interval_seconds: int = DEFAULT_INTERACTION_TIMEOUT_SECONDS,
) -> TimeoutCheck:
    """
    Walk timestamped events in the given order and fail on the first
    interval longer than max_interval_seconds.
    """
    last: int | None = None
    for event in events:
        current = extract_timestamp(event)
        if current is None:
            continue
        if last is not None and current - last > max_interval_seconds:
            return TimeoutCheck(
                valid=False,
                description=f"Interaction interval exceeded {max_interval_seconds} seconds",
            )
        last = current
    return TimeoutCheck(valid=True)


# --- Evidence ---


def build_evidence_data(
    events: Sequence[BehaviorEvent],
    total_duration: float,
    captured_at: int | None = None,
) -> EvidenceSnapshot:
    """
    Summarize the event stream for the record's audit trail.

    Args:
        events: Behavior events of the session
        total_duration: Reported session duration in seconds
        captured_at: Epoch seconds of capture (defaults to now)

    Returns:
        EvidenceSnapshot
    """
    unique: list[str] = []
    for event in events:
        action = event.get("action")
        if isinstance(action, str) and action not in unique:
            unique.append(action)

    timestamps = [t for t in (extract_timestamp(e) for e in events) if t is not None]
    timestamp_range = (min(timestamps), max(timestamps)) if timestamps else None

    frequency = len(events) / (total_duration / 60) if total_duration > 0 else 0.0

    return EvidenceSnapshot(
        total_behaviors=len(events),
        unique_actions=tuple(unique),
        timestamp_range=timestamp_range,
        interaction_frequency=frequency,
        captured_at=captured_at if captured_at is not None else int(time.time()),
    )


# --- Stored Stats Conversion ---


def convert_to_stats(events: Sequence[BehaviorEvent]) -> list[dict[str, Any]] | None:
    """Convert events into the form kept in behavior_stats (None when empty)."""
    if not events:
        return None
    return [dict(e) for e in events]


def convert_stats_to_events(
    stats: Sequence[Any] | Mapping[str, Any] | None,
    captured_at: int | None = None,
) -> list[dict[str, Any]]:
    """
    Convert stored behavior_stats back into an event list.

    A list of mappings is returned as-is (non-mapping items dropped). A legacy
    key/value summary is expanded into {"type": "stat", ...} entries.
    """
    if not stats:
        return []
    if isinstance(stats, Mapping):
        now = captured_at if captured_at is not None else int(time.time())
        return [
            {"type": "stat", "key": key, "value": value, "timestamp": now}
            for key, value in stats.items()
        ]
    return [dict(item) for item in stats if isinstance(item, Mapping)]
