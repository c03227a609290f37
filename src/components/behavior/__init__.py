"""
Behavior component - Behavior event ratios and evidence.
"""

from .component import (
    DEFAULT_GAP_THRESHOLD_SECONDS,
    DEFAULT_INTERACTION_TIMEOUT_SECONDS,
    build_evidence_data,
    calculate_continuity_ratio,
    calculate_focus_ratio,
    calculate_interaction_ratio,
    check_interaction_timeout,
    compute_ratios,
    convert_stats_to_events,
    convert_to_stats,
    count_time_gaps,
    extract_duration,
    extract_timestamp,
    has_authentication_failure,
    has_completed_test,
    is_browsing_or_testing,
)
from .models import (
    BROWSING_OR_TESTING_ACTIONS,
    INTERACTION_ACTIONS,
    UNFOCUSED_ACTIONS,
    BehaviorEvent,
    BehaviorRatios,
    EvidenceSnapshot,
    TimeoutCheck,
)

__all__ = [
    # Ratios
    "calculate_focus_ratio",
    "calculate_interaction_ratio",
    "calculate_continuity_ratio",
    "compute_ratios",
    "count_time_gaps",
    # Detectors
    "is_browsing_or_testing",
    "has_authentication_failure",
    "has_completed_test",
    "check_interaction_timeout",
    # Evidence / stats
    "build_evidence_data",
    "convert_to_stats",
    "convert_stats_to_events",
    "extract_duration",
    "extract_timestamp",
    # Models
    "BehaviorEvent",
    "BehaviorRatios",
    "EvidenceSnapshot",
    "TimeoutCheck",
    # Constants
    "BROWSING_OR_TESTING_ACTIONS",
    "INTERACTION_ACTIONS",
    "UNFOCUSED_ACTIONS",
    "DEFAULT_GAP_THRESHOLD_SECONDS",
    "DEFAULT_INTERACTION_TIMEOUT_SECONDS",
]
