"""
Quality component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_QUALITY_THRESHOLD = 6.0
DEFAULT_FOCUS_THRESHOLD = 0.7


class QualityLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class QualityScores:
    """Composite score (0-10) and the ratios it was built from (each 0-1)."""

    quality: float
    focus: float
    interaction: float
    continuity: float
    level: QualityLevel

    def to_dict(self) -> dict[str, float | str]:
        return {
            "quality_score": self.quality,
            "focus_score": self.focus,
            "interaction_score": self.interaction,
            "continuity_score": self.continuity,
            "quality_level": self.level.value,
        }
