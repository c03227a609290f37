"""
Quality component - Learning quality scoring and review gate.
"""

from .component import (
    calculate_quality_score,
    calculate_quality_scores,
    needs_quality_review,
    quality_level,
    score_from_ratios,
)
from .models import (
    DEFAULT_FOCUS_THRESHOLD,
    DEFAULT_QUALITY_THRESHOLD,
    QualityLevel,
    QualityScores,
)

__all__ = [
    # Scoring
    "calculate_quality_score",
    "calculate_quality_scores",
    "score_from_ratios",
    "quality_level",
    # Review gate
    "needs_quality_review",
    # Models
    "QualityLevel",
    "QualityScores",
    "DEFAULT_FOCUS_THRESHOLD",
    "DEFAULT_QUALITY_THRESHOLD",
]
