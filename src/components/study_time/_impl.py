"""
EffectiveStudyTimeService - Certification of effective study time.

Turns a closed learning session and its behavior events into a persisted
EffectiveStudyRecord, and manages review, recalculation, statistics and
result notifications for existing records.

Key behaviors:
- Validation failures produce INVALID records with no effective time
- Effective time is capped per user and study date (PARTIAL / INVALID)
- Low quality or low focus sessions are held as PENDING for review
- The daily total read, the decision and the save happen under one lock
  per (user, study date)
- Notifications are sent after the lock is released; student_notified is
  only set after a successful delivery
- Batch runs isolate per-item failures and stop at a deadline or on
  cancellation
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from uuid import UUID

from src.components.behavior import (
    BehaviorEvent,
    build_evidence_data,
    convert_stats_to_events,
)
from src.components.calculator import (
    DailyLimitPort,
    SegmentFilter,
    calculate_effective_time,
    run_check_daily_limit,
)
from src.components.quality import calculate_quality_scores, needs_quality_review
from src.components.validator import LessonTestPolicyPort, validate_study_time
from src.domain.entities import EffectiveStudyRecord, LearnSession, StudyTimeStatus
from src.domain.state import apply_review, can_recalculate, can_review

from .component import (
    create_record,
    daily_lock_key,
    mark_invalid,
    reset_outcome,
    should_notify,
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

logger = logging.getLogger(__name__)


class EffectiveStudyTimeService:
    """
    Effective study time service.

    Orchestrates validation, calculation, daily cap and quality review.
    """

    def __init__(
        self,
        repo: StudyRecordRepoPort,
        daily_limits: DailyLimitPort,
        lock: KeyedLockPort,
        notifier: ResultNotifierPort | None = None,
        test_policy: LessonTestPolicyPort | None = None,
        segment_filter: SegmentFilter | None = None,
        time_port: TimePort | None = None,
        config: StudyTimeConfig | None = None,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        self._repo = repo
        self._limits = daily_limits
        self._lock = lock
        self._notifier = notifier
        self._test_policy = test_policy
        self._segment_filter = segment_filter
        self._time = time_port
        self._config = config or DEFAULT_CONFIG
        self._monotonic = monotonic or time.monotonic

    def _now_utc(self) -> datetime:
        if self._time:
            return self._time.now_utc()
        return datetime.now(UTC)

    # --- Evaluation ---

    def _evaluate(self, record: EffectiveStudyRecord, events: Sequence[BehaviorEvent]) -> None:
        """Validate, calculate and cap. Must run under the record's daily lock."""
        cfg = self._config
        now = self._now_utc()

        outcome = validate_study_time(
            record,
            events,
            policy=self._test_policy,
            interaction_timeout=cfg.interaction_timeout_seconds,
        )
        if not outcome.valid:
            mark_invalid(record, outcome.reason, outcome.description)
        else:
            effective = calculate_effective_time(
                record,
                events,
                segment_filter=self._segment_filter,
                gap_threshold=cfg.continuity_gap_seconds,
            )
            record.set_durations(effective)

            check = run_check_daily_limit(record, aggregate=self._repo, limits=self._limits)
            if not check.valid:
                mark_invalid(record, check.reason, check.description)
            else:
                calculate_quality_scores(record, events, cfg.continuity_gap_seconds)
                if not check.partial:
                    review = needs_quality_review(
                        record,
                        quality_threshold=cfg.quality_threshold,
                        focus_threshold=cfg.focus_threshold,
                    )
                    record.status = StudyTimeStatus.PENDING if review else StudyTimeStatus.VALID

        captured_at = int(now.timestamp())
        evidence = build_evidence_data(events, record.total_duration, captured_at=captured_at)
        record.add_evidence(evidence.type, evidence.to_dict(), captured_at)
        record.updated_at = now

    def _notify(self, record: EffectiveStudyRecord, session: LearnSession | None = None) -> bool:
        if self._notifier is None or not should_notify(record):
            return False
        try:
            sent = self._notifier.send_study_time_result_notification(record, session)
        except Exception:
            logger.exception("Result notification failed for record %s", record.id)
            return False
        if sent:
            self._repo.mark_notified(record.id)
            record.student_notified = True
        return sent

    # --- Processing ---

    def process_study_time(
        self,
        session: LearnSession,
        start_time: datetime,
        end_time: datetime,
        total_duration: float,
        behavior_events: Sequence[BehaviorEvent] | None = None,
    ) -> EffectiveStudyRecord:
        """
        Certify a closed session.

        Args:
            session: Closed learning session
            start_time: Session start
            end_time: Session end
            total_duration: Reported duration in seconds
            behavior_events: Ordered behavior events

        Returns:
            The persisted record
        """
        events = list(behavior_events or [])
        record = create_record(
            session, start_time, end_time, total_duration, events, self._now_utc()
        )

        with self._lock.hold(daily_lock_key(record.user_id, record.study_date)):
            self._evaluate(record, events)
            record = self._repo.save(record)

        logger.info(
            "Study time processed: record=%s user=%s status=%s effective=%.1fs total=%.1fs",
            record.id,
            record.user_id,
            record.status.value,
            record.effective_duration,
            record.total_duration,
        )

        self._notify(record, session)
        return record

    def batch_process_study_time(
        self,
        items: Sequence[BatchItem],
        *,
        deadline_seconds: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchProcessResult:
        """
        Process sessions one after another.

        A failing item is logged and reported; the batch continues. When the
        deadline passes or cancel_event is set, the remaining items are
        reported as skipped.
        """
        deadline = (
            deadline_seconds if deadline_seconds is not None else self._config.batch_deadline_seconds
        )

        def process(item: BatchItem) -> EffectiveStudyRecord:
            return self.process_study_time(
                item.session,
                item.start_time,
                item.end_time,
                item.total_duration,
                item.behavior_events,
            )

        return self._run_batch(
            items,
            process,
            key=lambda item: item.session.id,
            deadline_seconds=deadline,
            cancel_event=cancel_event,
        )

    def _run_batch(
        self,
        items: Sequence,
        process: Callable,
        *,
        key: Callable,
        deadline_seconds: float | None,
        cancel_event: threading.Event | None,
    ) -> BatchProcessResult:
        result = BatchProcessResult()
        started = self._monotonic()
        stop_reason: str | None = None

        for index, item in enumerate(items):
            if stop_reason is None:
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    stop_reason = "cancelled"
                elif deadline_seconds is not None and self._monotonic() - started >= deadline_seconds:
                    result.deadline_exceeded = True
                    stop_reason = "deadline exceeded"

            if stop_reason is not None:
                result.results.append(
                    BatchItemResult(
                        index=index,
                        success=False,
                        skipped=True,
                        error=stop_reason,
                        key=str(key(item)),
                    )
                )
                continue

            try:
                record = process(item)
                result.results.append(
                    BatchItemResult(index=index, success=True, record=record, key=str(key(item)))
                )
            except Exception as e:
                logger.exception("Batch item %d (%s) failed", index, key(item))
                result.results.append(
                    BatchItemResult(index=index, success=False, error=str(e), key=str(key(item)))
                )

        logger.info(
            "Batch finished: total=%d succeeded=%d failed=%d skipped=%d",
            result.total,
            result.succeeded,
            result.failed,
            result.skipped,
        )
        return result

    # --- Recalculation ---

    def _recalculation_errors(
        self, record: EffectiveStudyRecord, force: bool
    ) -> list[StudyTimeError]:
        if record.reviewed_by is not None:
            return [
                StudyTimeError(
                    code="record_reviewed",
                    message=f"Record was reviewed by {record.reviewed_by} and cannot be recalculated",
                    record_id=record.id,
                )
            ]
        if not can_recalculate(record, force):
            return [
                StudyTimeError(
                    code="record_final",
                    message=f"Record in '{record.status.value}' status requires force to recalculate",
                    record_id=record.id,
                )
            ]
        return []

    def recalculate_record(
        self,
        record: EffectiveStudyRecord,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> tuple[EffectiveStudyRecord | None, list[StudyTimeError]]:
        """
        Re-run evaluation from the record's stored behavior stats.

        Terminal records need force. Reviewed records are never recomputed.
        The stored row is re-read under the daily lock, so a review that
        landed after the caller loaded the record is respected.
        With dry_run the result is computed on a copy and not persisted.

        Returns:
            Tuple of (record, errors). Record is None if errors.
        """
        errors = self._recalculation_errors(record, force)
        if errors:
            return None, errors

        with self._lock.hold(daily_lock_key(record.user_id, record.study_date)):
            current = self._repo.get_by_id(record.id) or record
            errors = self._recalculation_errors(current, force)
            if errors:
                logger.warning(
                    "Rejected recalculation of record %s: %s", record.id, errors[0].code
                )
                return None, errors

            target = current.model_copy(deep=True) if dry_run else current
            events = convert_stats_to_events(target.behavior_stats)
            reset_outcome(target)
            self._evaluate(target, events)
            if not dry_run:
                target = self._repo.save(target)

        logger.info(
            "Record %s recalculated%s: status=%s effective=%.1fs",
            target.id,
            " (dry run)" if dry_run else "",
            target.status.value,
            target.effective_duration,
        )
        if not dry_run:
            self._notify(target)
        return target, []

    def recalculate_by_id(
        self,
        record_id: UUID,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> tuple[EffectiveStudyRecord | None, list[StudyTimeError]]:
        record = self._repo.get_by_id(record_id)
        if record is None:
            return None, [
                StudyTimeError(
                    code="record_not_found",
                    message=f"Record {record_id} not found",
                    record_id=record_id,
                )
            ]
        return self.recalculate_record(record, force=force, dry_run=dry_run)

    def batch_recalculate(
        self,
        records: Sequence[EffectiveStudyRecord],
        *,
        force: bool = False,
        dry_run: bool = False,
        deadline_seconds: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchProcessResult:
        """Recalculate records sequentially; rejected records count as failures."""

        def process(record: EffectiveStudyRecord) -> EffectiveStudyRecord:
            updated, errors = self.recalculate_record(record, force=force, dry_run=dry_run)
            if errors or updated is None:
                raise ValueError(errors[0].message if errors else "Recalculation failed")
            return updated

        return self._run_batch(
            records,
            process,
            key=lambda record: record.id,
            deadline_seconds=(
                deadline_seconds
                if deadline_seconds is not None
                else self._config.batch_deadline_seconds
            ),
            cancel_event=cancel_event,
        )

    # --- Review ---

    def mark_as_reviewed(
        self,
        record_id: UUID,
        status: StudyTimeStatus,
        reviewer: str,
        comment: str | None = None,
    ) -> tuple[EffectiveStudyRecord | None, list[StudyTimeError]]:
        """
        Apply a reviewer decision to a PENDING or PARTIAL record.

        Returns:
            Tuple of (record, errors). Record is None if errors.
        """
        record = self._repo.get_by_id(record_id)
        if record is None:
            return None, [
                StudyTimeError(
                    code="record_not_found",
                    message=f"Record {record_id} not found",
                    record_id=record_id,
                )
            ]

        if not status.is_terminal:
            return None, [
                StudyTimeError(
                    code="invalid_status",
                    message=f"Review must resolve to valid or invalid, got '{status.value}'",
                    record_id=record_id,
                )
            ]

        with self._lock.hold(daily_lock_key(record.user_id, record.study_date)):
            # Re-read under the lock; a recalculation may have finished meanwhile
            record = self._repo.get_by_id(record_id) or record
            if not can_review(record.status, status):
                logger.warning(
                    "Rejected review of record %s: %s -> %s by %s",
                    record_id,
                    record.status.value,
                    status.value,
                    reviewer,
                )
                return None, [
                    StudyTimeError(
                        code="invalid_transition",
                        message=f"Cannot review record in '{record.status.value}' status",
                        record_id=record_id,
                    )
                ]
            apply_review(record, status, reviewer, comment, self._now_utc())
            record = self._repo.save(record)

        logger.info("Record %s reviewed by %s: %s", record_id, reviewer, status.value)
        self._notify(record)
        return record, []

    # --- Queries ---

    def get_record(self, record_id: UUID) -> EffectiveStudyRecord | None:
        return self._repo.get_by_id(record_id)

    def get_user_study_time_stats(
        self,
        user_id: str,
        start_date: datetime,
        end_date: datetime,
    ) -> UserStudyTimeStats:
        records = self._repo.list_by_user(user_id, start_date, end_date)
        return summarize_user_stats(user_id, records)

    def get_course_study_time_stats(self, course_id: str) -> CourseStudyTimeStats:
        return summarize_course_stats(course_id, self._repo.list_by_course(course_id))

    def get_invalid_reason_stats(
        self,
        start_date: datetime,
        end_date: datetime,
    ) -> list[InvalidReasonStat]:
        records = self._repo.list_in_range(
            start_date,
            end_date,
            statuses=[StudyTimeStatus.INVALID, StudyTimeStatus.PARTIAL],
        )
        return summarize_invalid_reasons(records)

    def list_needing_review(self, limit: int = 100) -> list[EffectiveStudyRecord]:
        return self._repo.list_needing_review(limit)

    # --- Notifications ---

    def send_pending_notifications(self, limit: int | None = None) -> int:
        """Send result notifications for records not yet notified. Returns count sent."""
        records = self._repo.list_unnotified(limit)
        sent = sum(1 for record in records if self._notify(record))
        logger.info("Pending notifications: %d records, %d sent", len(records), sent)
        return sent
