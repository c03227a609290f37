"""
Study time component - Effective study time certification service.
"""

from ._impl import EffectiveStudyTimeService
from .component import (
    NOTIFIABLE_STATUSES,
    create_record,
    daily_lock_key,
    mark_invalid,
    reset_outcome,
    should_notify,
    start_of_day,
    summarize_course_stats,
    summarize_invalid_reasons,
    summarize_user_stats,
)
from .models import (
    DEFAULT_CONFIG,
    BatchItem,
    BatchItemResult,
    BatchProcessResult,
    CourseStudyTimeStats,
    InvalidReasonStat,
    StudyTimeConfig,
    StudyTimeError,
    UserStudyTimeStats,
)
from .ports import KeyedLockPort, ResultNotifierPort, StudyRecordRepoPort, TimePort

__all__ = [
    # Service
    "EffectiveStudyTimeService",
    # Pure functions
    "create_record",
    "daily_lock_key",
    "mark_invalid",
    "reset_outcome",
    "should_notify",
    "start_of_day",
    "summarize_course_stats",
    "summarize_invalid_reasons",
    "summarize_user_stats",
    "NOTIFIABLE_STATUSES",
    # Models
    "BatchItem",
    "BatchItemResult",
    "BatchProcessResult",
    "CourseStudyTimeStats",
    "InvalidReasonStat",
    "StudyTimeConfig",
    "StudyTimeError",
    "UserStudyTimeStats",
    "DEFAULT_CONFIG",
    # Ports
    "KeyedLockPort",
    "ResultNotifierPort",
    "StudyRecordRepoPort",
    "TimePort",
]
