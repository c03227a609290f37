"""
Validator component - Study time validity gate.
"""

from .component import is_test_required, validate_study_time
from .models import ValidationOutcome
from .ports import LessonTestPolicyPort, NoTestRequiredPolicy

__all__ = [
    "validate_study_time",
    "is_test_required",
    "ValidationOutcome",
    "LessonTestPolicyPort",
    "NoTestRequiredPolicy",
]
