"""
Behavior component models.

Behavior events are plain mappings as collected by the session tracking
instrumentation: {"action": str, "timestamp": epoch seconds, "duration": seconds, ...}.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

BehaviorEvent = Mapping[str, Any]


# --- Action Sets ---

UNFOCUSED_ACTIONS: frozenset[str] = frozenset({"window_blur", "mouse_leave", "tab_switch"})
INTERACTION_ACTIONS: frozenset[str] = frozenset({"click", "scroll", "key_press", "video_control"})
BROWSING_OR_TESTING_ACTIONS: frozenset[str] = frozenset(
    {"browse_info", "view_materials", "take_test", "quiz_attempt"}
)
AUTH_FAILED_ACTION = "auth_failed"
TEST_COMPLETED_ACTION = "test_completed"


# --- Results ---


@dataclass(frozen=True)
class BehaviorRatios:
    """Focus, interaction and continuity ratios (each 0.0 - 1.0)."""

    focus: float
    interaction: float
    continuity: float

    @property
    def product(self) -> float:
        return self.focus * self.interaction * self.continuity


@dataclass(frozen=True)
class TimeoutCheck:
    """Outcome of the interaction interval check."""

    valid: bool
    description: str | None = None


@dataclass(frozen=True)
class EvidenceSnapshot:
    """Condensed behavior summary attached to a record as audit evidence."""

    total_behaviors: int
    unique_actions: tuple[str, ...]
    timestamp_range: tuple[int, int] | None
    interaction_frequency: float  # events per minute of reported time
    captured_at: int
    type: str = "behavior_summary"
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "total_behaviors": self.total_behaviors,
            "unique_actions": list(self.unique_actions),
            "timestamp_range": (
                {"start": self.timestamp_range[0], "end": self.timestamp_range[1]}
                if self.timestamp_range
                else None
            ),
            "interaction_frequency": self.interaction_frequency,
            "timestamp": self.captured_at,
            **self.extra,
        }
