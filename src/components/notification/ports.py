"""
Notification component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import NotificationResult, StudyTimeNotification


class NotificationChannelPort(Protocol):
    """Delivery channel (in-app inbox, push, mail...)."""

    def send(self, notification: StudyTimeNotification) -> NotificationResult:
        """Deliver a notification. May raise on transport failure."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
