"""
Dev Notification Channel.

Logs study time notifications instead of delivering them.
Used for local development (notifications.channel: log).

Key behaviors:
- Logs notification details
- Reports the notification as not delivered, so records stay unnotified
  and can be resent once a delivering channel is configured
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import uuid4

from src.components.notification import NotificationResult, StudyTimeNotification

logger = logging.getLogger(__name__)


@dataclass
class DevNotificationChannel:
    """
    Dev channel that logs instead of delivering.

    Implements NotificationChannelPort.
    """

    log_level: int = logging.INFO
    message_preview_length: int = 120

    def send(self, notification: StudyTimeNotification) -> NotificationResult:
        message_id = f"dev-{uuid4().hex[:12]}"

        preview = notification.message[: self.message_preview_length]
        if len(notification.message) > self.message_preview_length:
            preview += "..."
        logger.log(
            self.log_level,
            "NOTIFICATION (dev): To=%s, Type=%s, Title=%s, Message=%s, MessageID=%s",
            notification.user_id,
            notification.type.value,
            notification.title,
            preview,
            message_id,
        )
        return NotificationResult(
            success=False,
            message_id=message_id,
            error="Dev mode - notification logged, not delivered",
        )
