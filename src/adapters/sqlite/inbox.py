"""
SQLite notification inbox.

Delivers study time notifications as in-app messages: each notification
becomes a row the learner's inbox reads back. Implements
NotificationChannelPort; storage errors propagate to the caller.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any
from uuid import uuid4

from src.adapters.sqlite.repos import dict_factory
from src.components.notification import (
    NotificationPriority,
    NotificationResult,
    NotificationType,
    StudyTimeNotification,
)


class SQLiteNotificationInbox:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = dict_factory
        return conn

    def send(self, notification: StudyTimeNotification) -> NotificationResult:
        message_id = f"inbox-{uuid4().hex}"
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO study_time_notifications (
                    id, user_id, type, priority, title, message, data_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    message_id,
                    notification.user_id,
                    notification.type.value,
                    notification.priority.value,
                    notification.title,
                    notification.message,
                    json.dumps(notification.data, default=str),
                    notification.created_at.isoformat(),
                ),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return NotificationResult(success=True, message_id=message_id)

    def list_for_user(self, user_id: str, limit: int = 50) -> list[StudyTimeNotification]:
        """Newest first."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM study_time_notifications WHERE user_id = ? "
                "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (user_id, limit),
            ).fetchall()
            return [self._map_row(row) for row in rows]
        finally:
            conn.close()

    def count(self, user_id: str | None = None) -> int:
        conn = self._get_conn()
        try:
            if user_id is None:
                row = conn.execute("SELECT count(*) AS n FROM study_time_notifications").fetchone()
            else:
                row = conn.execute(
                    "SELECT count(*) AS n FROM study_time_notifications WHERE user_id = ?",
                    (user_id,),
                ).fetchone()
            return int(row["n"])
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> StudyTimeNotification:
        return StudyTimeNotification(
            type=NotificationType(row["type"]),
            user_id=row["user_id"],
            title=row["title"],
            message=row["message"],
            created_at=datetime.fromisoformat(row["created_at"]),
            priority=NotificationPriority(row["priority"]),
            data=json.loads(row["data_json"]),
        )
