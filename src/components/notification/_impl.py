"""
StudyTimeNotificationService - Learner notifications for study time outcomes.

Sends result, invalid-reason, daily-limit and quality feedback messages
through a NotificationChannelPort.

Key behaviors:
- Every send returns True only when the channel reports success
- Channel exceptions are logged and reported as False, never raised
- A disabled service sends nothing and reports False
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from src.domain.entities import EffectiveStudyRecord, InvalidTimeReason, LearnSession

from .component import (
    daily_limit_notification,
    invalid_time_notification,
    quality_feedback_notification,
    result_notification,
)
from .models import StudyTimeNotification
from .ports import NotificationChannelPort, TimePort

logger = logging.getLogger(__name__)


class StudyTimeNotificationService:
    """Formats study time notifications and hands them to a channel."""

    def __init__(
        self,
        channel: NotificationChannelPort,
        time_port: TimePort | None = None,
        enabled: bool = True,
    ) -> None:
        self._channel = channel
        self._time = time_port
        self._enabled = enabled

    def _now_utc(self) -> datetime:
        if self._time:
            return self._time.now_utc()
        return datetime.now(UTC)

    def _deliver(self, notification: StudyTimeNotification) -> bool:
        if not self._enabled:
            logger.debug(
                "Notifications disabled, dropping %s for user %s",
                notification.type.value,
                notification.user_id,
            )
            return False
        try:
            result = self._channel.send(notification)
        except Exception:
            logger.exception(
                "Failed to send %s notification to user %s",
                notification.type.value,
                notification.user_id,
            )
            return False

        if not result.success:
            logger.warning(
                "Channel rejected %s notification to user %s: %s",
                notification.type.value,
                notification.user_id,
                result.error,
            )
            return False

        logger.info(
            "Sent %s notification to user %s (message_id=%s)",
            notification.type.value,
            notification.user_id,
            result.message_id,
        )
        return True

    # --- Senders ---

    def send_study_time_result_notification(
        self,
        record: EffectiveStudyRecord,
        session: LearnSession | None = None,
    ) -> bool:
        """
        Notify the learner of a record's certification result.

        The caller owns the student_notified flag; it is not touched here.
        """
        try:
            notification = result_notification(record, self._now_utc(), session)
        except Exception:
            logger.exception("Failed to build result notification for record %s", record.id)
            return False
        return self._deliver(notification)

    def send_invalid_time_notification(
        self,
        user_id: str,
        reason: InvalidTimeReason,
        details: dict[str, Any] | None = None,
    ) -> bool:
        return self._deliver(
            invalid_time_notification(user_id, reason, self._now_utc(), details)
        )

    def send_daily_limit_notification(
        self,
        user_id: str,
        current_time: float,
        daily_limit: float,
        exceeded_time: float,
    ) -> bool:
        logger.warning(
            "Daily limit notification for user %s: current=%.0fs limit=%.0fs exceeded=%.0fs",
            user_id,
            current_time,
            daily_limit,
            exceeded_time,
        )
        return self._deliver(
            daily_limit_notification(
                user_id, current_time, daily_limit, exceeded_time, self._now_utc()
            )
        )

    def send_quality_feedback(
        self,
        user_id: str,
        score: float,
        details: dict[str, Any] | None = None,
    ) -> bool:
        return self._deliver(
            quality_feedback_notification(user_id, score, self._now_utc(), details)
        )
