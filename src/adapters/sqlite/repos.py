import json
import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from src.domain.entities import EffectiveStudyRecord, InvalidTimeReason, StudyTimeStatus


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _day(value: datetime) -> str:
    return value.date().isoformat()


def _parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


_NOTIFIABLE = (
    StudyTimeStatus.VALID.value,
    StudyTimeStatus.INVALID.value,
    StudyTimeStatus.PARTIAL.value,
)


class SQLiteEffectiveStudyRecordRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def save(self, record: EffectiveStudyRecord) -> EffectiveStudyRecord:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO effective_study_records (
                    id, user_id, session_id, course_id, lesson_id,
                    study_date, study_day, start_time, end_time,
                    total_duration, effective_duration, invalid_duration,
                    status, invalid_reason, description,
                    quality_score, focus_score, interaction_score, continuity_score,
                    evidence_json, behavior_stats_json,
                    review_comment, reviewed_by, review_time,
                    include_in_daily_total, student_notified,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    total_duration=excluded.total_duration,
                    effective_duration=excluded.effective_duration,
                    invalid_duration=excluded.invalid_duration,
                    status=excluded.status,
                    invalid_reason=excluded.invalid_reason,
                    description=excluded.description,
                    quality_score=excluded.quality_score,
                    focus_score=excluded.focus_score,
                    interaction_score=excluded.interaction_score,
                    continuity_score=excluded.continuity_score,
                    evidence_json=excluded.evidence_json,
                    behavior_stats_json=excluded.behavior_stats_json,
                    review_comment=excluded.review_comment,
                    reviewed_by=excluded.reviewed_by,
                    review_time=excluded.review_time,
                    include_in_daily_total=excluded.include_in_daily_total,
                    student_notified=excluded.student_notified,
                    updated_at=excluded.updated_at
            """,
                (
                    str(record.id),
                    record.user_id,
                    record.session_id,
                    record.course_id,
                    record.lesson_id,
                    record.study_date.isoformat(),
                    _day(record.study_date),
                    record.start_time.isoformat(),
                    record.end_time.isoformat(),
                    record.total_duration,
                    record.effective_duration,
                    record.invalid_duration,
                    record.status.value,
                    record.invalid_reason.value if record.invalid_reason else None,
                    record.description,
                    record.quality_score,
                    record.focus_score,
                    record.interaction_score,
                    record.continuity_score,
                    json.dumps(record.evidence_data),
                    (
                        json.dumps(record.behavior_stats)
                        if record.behavior_stats is not None
                        else None
                    ),
                    record.review_comment,
                    record.reviewed_by,
                    record.review_time.isoformat() if record.review_time else None,
                    1 if record.include_in_daily_total else 0,
                    1 if record.student_notified else 0,
                    record.created_at.isoformat(),
                    record.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return record
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_id(self, record_id: UUID) -> EffectiveStudyRecord | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM effective_study_records WHERE id = ?", (str(record_id),)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def mark_notified(self, record_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE effective_study_records SET student_notified = 1, updated_at = ? "
                "WHERE id = ?",
                (datetime.now(UTC).isoformat(), str(record_id)),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_daily_effective_time(
        self,
        user_id: str,
        study_date: datetime,
        exclude_record_id: UUID | None = None,
    ) -> float:
        sql = (
            "SELECT COALESCE(SUM(effective_duration), 0) AS total "
            "FROM effective_study_records "
            "WHERE user_id = ? AND study_day = ? AND include_in_daily_total = 1 "
            "AND status != ?"
        )
        params: list[Any] = [user_id, _day(study_date), StudyTimeStatus.INVALID.value]
        if exclude_record_id is not None:
            sql += " AND id != ?"
            params.append(str(exclude_record_id))

        conn = self._get_conn()
        try:
            row = conn.execute(sql, params).fetchone()
            return float(row["total"] or 0.0)
        finally:
            conn.close()

    def _query(self, sql: str, params: list[Any]) -> list[EffectiveStudyRecord]:
        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
            return [self._map_row(row) for row in rows]
        finally:
            conn.close()

    def list_by_user(
        self,
        user_id: str,
        start_date: datetime,
        end_date: datetime,
    ) -> list[EffectiveStudyRecord]:
        return self._query(
            "SELECT * FROM effective_study_records "
            "WHERE user_id = ? AND study_day BETWEEN ? AND ? "
            "ORDER BY study_day ASC, start_time ASC",
            [user_id, _day(start_date), _day(end_date)],
        )

    def list_by_course(
        self, course_id: str, limit: int | None = None
    ) -> list[EffectiveStudyRecord]:
        sql = "SELECT * FROM effective_study_records WHERE course_id = ? ORDER BY start_time DESC"
        params: list[Any] = [course_id]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return self._query(sql, params)

    def list_in_range(
        self,
        start_date: datetime,
        end_date: datetime,
        statuses: list[StudyTimeStatus] | None = None,
    ) -> list[EffectiveStudyRecord]:
        sql = "SELECT * FROM effective_study_records WHERE study_day BETWEEN ? AND ?"
        params: list[Any] = [_day(start_date), _day(end_date)]
        if statuses:
            placeholders = ", ".join("?" for _ in statuses)
            sql += f" AND status IN ({placeholders})"
            params.extend(s.value for s in statuses)
        sql += " ORDER BY study_day ASC, start_time ASC"
        return self._query(sql, params)

    def list_unnotified(self, limit: int | None = None) -> list[EffectiveStudyRecord]:
        sql = (
            "SELECT * FROM effective_study_records "
            "WHERE student_notified = 0 AND status IN (?, ?, ?) "
            "ORDER BY created_at ASC"
        )
        params: list[Any] = list(_NOTIFIABLE)
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return self._query(sql, params)

    def list_needing_review(self, limit: int = 100) -> list[EffectiveStudyRecord]:
        return self._query(
            "SELECT * FROM effective_study_records WHERE status IN (?, ?) "
            "ORDER BY created_at ASC LIMIT ?",
            [StudyTimeStatus.PENDING.value, StudyTimeStatus.PARTIAL.value, limit],
        )

    def list_for_recalculation(
        self,
        *,
        user_id: str | None = None,
        study_date: datetime | None = None,
        course_id: str | None = None,
        only_invalid: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[EffectiveStudyRecord]:
        """Records matching the operator's recalculation filters, oldest first."""
        sql = "SELECT * FROM effective_study_records WHERE 1=1"
        params: list[Any] = []
        if user_id:
            sql += " AND user_id = ?"
            params.append(user_id)
        if study_date:
            sql += " AND study_day = ?"
            params.append(_day(study_date))
        if course_id:
            sql += " AND course_id = ?"
            params.append(course_id)
        if only_invalid:
            sql += " AND status = ?"
            params.append(StudyTimeStatus.INVALID.value)
        sql += " ORDER BY created_at ASC, id ASC LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        return self._query(sql, params)

    def _map_row(self, row: dict[str, Any]) -> EffectiveStudyRecord:
        return EffectiveStudyRecord(
            id=UUID(row["id"]),
            user_id=row["user_id"],
            session_id=row["session_id"],
            course_id=row["course_id"],
            lesson_id=row["lesson_id"],
            study_date=datetime.fromisoformat(row["study_date"]),
            start_time=datetime.fromisoformat(row["start_time"]),
            end_time=datetime.fromisoformat(row["end_time"]),
            total_duration=row["total_duration"],
            effective_duration=row["effective_duration"],
            invalid_duration=row["invalid_duration"],
            status=StudyTimeStatus(row["status"]),
            invalid_reason=(
                InvalidTimeReason(row["invalid_reason"]) if row["invalid_reason"] else None
            ),
            description=row["description"],
            quality_score=row["quality_score"],
            focus_score=row["focus_score"],
            interaction_score=row["interaction_score"],
            continuity_score=row["continuity_score"],
            evidence_data=json.loads(row["evidence_json"] or "[]"),
            behavior_stats=(
                json.loads(row["behavior_stats_json"]) if row["behavior_stats_json"] else None
            ),
            review_comment=row["review_comment"],
            reviewed_by=row["reviewed_by"],
            review_time=_parse_dt(row["review_time"]),
            include_in_daily_total=bool(row["include_in_daily_total"]),
            student_notified=bool(row["student_notified"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteUserStudyConfigRepo:
    """Per-user daily limit overrides."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = dict_factory
        return conn

    def get_daily_limit(self, user_id: str) -> int | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT daily_limit_seconds FROM user_study_configs WHERE user_id = ?",
                (user_id,),
            ).fetchone()
            return int(row["daily_limit_seconds"]) if row else None
        finally:
            conn.close()

    def set_daily_limit(self, user_id: str, seconds: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO user_study_configs (user_id, daily_limit_seconds, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    daily_limit_seconds=excluded.daily_limit_seconds,
                    updated_at=excluded.updated_at
            """,
                (user_id, seconds, datetime.now(UTC).isoformat()),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
