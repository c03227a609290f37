"""
Notification component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    RESULT = "result"
    INVALID = "invalid"
    DAILY_LIMIT = "daily_limit"
    QUALITY = "quality"


class NotificationPriority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"


@dataclass(frozen=True)
class StudyTimeNotification:
    """A message addressed to a learner."""

    type: NotificationType
    user_id: str
    title: str
    message: str
    created_at: datetime
    priority: NotificationPriority = NotificationPriority.NORMAL
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationResult:
    """Delivery outcome reported by a channel."""

    success: bool
    message_id: str | None = None
    error: str | None = None
