"""
Notification component - Study time notifications for learners.
"""

from ._impl import StudyTimeNotificationService
from .component import (
    build_daily_limit_message,
    build_quality_message,
    build_result_message,
    daily_limit_notification,
    invalid_time_notification,
    quality_feedback_notification,
    result_notification,
)
from .models import (
    NotificationPriority,
    NotificationResult,
    NotificationType,
    StudyTimeNotification,
)
from .ports import NotificationChannelPort, TimePort

__all__ = [
    # Service
    "StudyTimeNotificationService",
    # Builders
    "build_daily_limit_message",
    "build_quality_message",
    "build_result_message",
    "daily_limit_notification",
    "invalid_time_notification",
    "quality_feedback_notification",
    "result_notification",
    # Models
    "NotificationPriority",
    "NotificationResult",
    "NotificationType",
    "StudyTimeNotification",
    # Ports
    "NotificationChannelPort",
    "TimePort",
]
