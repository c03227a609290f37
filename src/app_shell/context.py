from __future__ import annotations

from dataclasses import dataclass

from src.adapters.clock import SystemClock
from src.adapters.daily_limit import CachedDailyLimitProvider
from src.adapters.dev_notifier import DevNotificationChannel
from src.adapters.sqlite.inbox import SQLiteNotificationInbox
from src.adapters.sqlite.locks import SQLiteKeyedLock
from src.adapters.sqlite.repos import SQLiteEffectiveStudyRecordRepo, SQLiteUserStudyConfigRepo
from src.components.calculator import build_segment_filter
from src.components.notification import NotificationChannelPort, StudyTimeNotificationService
from src.components.study_time import (
    EffectiveStudyTimeService,
    KeyedLockPort,
    StudyTimeConfig,
    TimePort,
)
from src.components.validator import LessonTestPolicyPort
from src.rules.models import Rules


def build_channel(rules: Rules, db_path: str) -> NotificationChannelPort:
    """Notification channel named by rules.notifications.channel."""
    if rules.notifications.channel == "log":
        return DevNotificationChannel()
    return SQLiteNotificationInbox(db_path)


@dataclass
class StudyTimeContext:
    study_time_service: EffectiveStudyTimeService
    notification_service: StudyTimeNotificationService
    record_repo: SQLiteEffectiveStudyRecordRepo
    user_config_repo: SQLiteUserStudyConfigRepo
    daily_limits: CachedDailyLimitProvider
    lock: KeyedLockPort
    channel: NotificationChannelPort
    rules: Rules
    clock: TimePort

    @classmethod
    def create(
        cls,
        db_path: str,
        rules: Rules,
        channel: NotificationChannelPort | None = None,
        clock: TimePort | None = None,
        lock: KeyedLockPort | None = None,
        test_policy: LessonTestPolicyPort | None = None,
    ) -> StudyTimeContext:
        # Adapters
        record_repo = SQLiteEffectiveStudyRecordRepo(db_path)
        user_config_repo = SQLiteUserStudyConfigRepo(db_path)
        clock = clock or SystemClock()
        channel = channel or build_channel(rules, db_path)
        # Lease rows in the shared database serialize the API and CLI processes
        lock = lock or SQLiteKeyedLock(
            db_path,
            lease_seconds=rules.locks.lease_seconds,
            acquire_timeout=rules.locks.acquire_timeout_seconds,
            poll_interval=rules.locks.poll_interval_seconds,
        )

        daily_limits = CachedDailyLimitProvider(
            source=user_config_repo,
            default_limit=rules.study_time.default_daily_limit_seconds,
            ttl_seconds=rules.study_time.daily_limit_cache_ttl_seconds,
        )

        # Services
        notification_service = StudyTimeNotificationService(
            channel=channel,
            time_port=clock,
            enabled=rules.notifications.enabled,
        )
        study_time_service = EffectiveStudyTimeService(
            repo=record_repo,
            daily_limits=daily_limits,
            lock=lock,
            notifier=notification_service,
            test_policy=test_policy,
            segment_filter=build_segment_filter(rules.study_time.segment_filter),
            time_port=clock,
            config=StudyTimeConfig.from_rules(rules),
        )

        return cls(
            study_time_service=study_time_service,
            notification_service=notification_service,
            record_repo=record_repo,
            user_config_repo=user_config_repo,
            daily_limits=daily_limits,
            lock=lock,
            channel=channel,
            rules=rules,
            clock=clock,
        )
