"""
Validator component port definitions.
"""

from __future__ import annotations

from typing import Protocol


class LessonTestPolicyPort(Protocol):
    """Course configuration lookup for post-lesson tests."""

    def requires_post_lesson_test(self, course_id: str, lesson_id: str) -> bool:
        """Return True if the lesson's time only counts once its test is completed."""
        ...


class NoTestRequiredPolicy:
    """Default policy: no lesson requires a test."""

    def requires_post_lesson_test(self, course_id: str, lesson_id: str) -> bool:
        return False
