"""
Quality component - Learning quality score and review gate.

score = 5 + (focus - 0.5) x 4 + (interaction - 0.3) x 2 + (continuity - 0.5) x 3,
clamped to [0, 10]. A full-marks session scores 9.9.

Records scoring below the review threshold, or whose focus is below the
focus threshold, are held for manual review.
"""

from __future__ import annotations

from collections.abc import Sequence

from src.components.behavior import (
    DEFAULT_GAP_THRESHOLD_SECONDS,
    BehaviorEvent,
    BehaviorRatios,
    compute_ratios,
)
from src.domain.entities import EffectiveStudyRecord

from .models import (
    DEFAULT_FOCUS_THRESHOLD,
    DEFAULT_QUALITY_THRESHOLD,
    QualityLevel,
    QualityScores,
)

BASE_SCORE = 5.0
MAX_SCORE = 10.0


def score_from_ratios(ratios: BehaviorRatios) -> float:
    score = BASE_SCORE
    score += (ratios.focus - 0.5) * 4
    score += (ratios.interaction - 0.3) * 2
    score += (ratios.continuity - 0.5) * 3
    return max(0.0, min(MAX_SCORE, score))


def calculate_quality_score(
    events: Sequence[BehaviorEvent],
    gap_threshold: int = DEFAULT_GAP_THRESHOLD_SECONDS,
) -> float:
    """Quality score (0-10) of an event stream."""
    return score_from_ratios(compute_ratios(events, gap_threshold))


def calculate_quality_scores(
    record: EffectiveStudyRecord,
    events: Sequence[BehaviorEvent],
    gap_threshold: int = DEFAULT_GAP_THRESHOLD_SECONDS,
) -> QualityScores:
    """
    Score the session and store the scores on the record.

    Sets quality_score, focus_score, interaction_score and continuity_score.
    """
    ratios = compute_ratios(events, gap_threshold)
    quality = score_from_ratios(ratios)
    scores = QualityScores(
        quality=quality,
        focus=ratios.focus,
        interaction=ratios.interaction,
        continuity=ratios.continuity,
        level=quality_level(quality),
    )
    record.quality_score = scores.quality
    record.focus_score = scores.focus
    record.interaction_score = scores.interaction
    record.continuity_score = scores.continuity
    return scores


def needs_quality_review(
    record: EffectiveStudyRecord,
    *,
    quality_threshold: float = DEFAULT_QUALITY_THRESHOLD,
    focus_threshold: float = DEFAULT_FOCUS_THRESHOLD,
) -> bool:
    """True when the score or focus is below threshold (or not assessed)."""
    if record.quality_score is None or record.focus_score is None:
        return True
    return record.quality_score < quality_threshold or record.focus_score < focus_threshold


def quality_level(score: float) -> QualityLevel:
    if score >= 9.0:
        return QualityLevel.EXCELLENT
    if score >= 8.0:
        return QualityLevel.GOOD
    if score >= 7.0:
        return QualityLevel.AVERAGE
    if score >= 6.0:
        return QualityLevel.PASS
    return QualityLevel.FAIL
