from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.adapters.sqlite.repos import SQLiteEffectiveStudyRecordRepo, SQLiteUserStudyConfigRepo
from src.domain.entities import EffectiveStudyRecord, InvalidTimeReason, StudyTimeStatus

DAY = datetime(2026, 1, 14, tzinfo=UTC)


@pytest.fixture
def repo(db_path) -> SQLiteEffectiveStudyRecordRepo:
    return SQLiteEffectiveStudyRecordRepo(db_path)


@pytest.fixture
def config_repo(db_path) -> SQLiteUserStudyConfigRepo:
    return SQLiteUserStudyConfigRepo(db_path)


def make_record(
    effective: float = 1800.0,
    status: StudyTimeStatus = StudyTimeStatus.VALID,
    user_id: str = "u1",
    day: datetime = DAY,
    course_id: str = "c1",
    **overrides,
) -> EffectiveStudyRecord:
    record = EffectiveStudyRecord(
        user_id=user_id,
        session_id=f"s-{uuid4().hex[:6]}",
        course_id=course_id,
        lesson_id="l1",
        study_date=day,
        start_time=day + timedelta(hours=9),
        end_time=day + timedelta(hours=10),
        total_duration=3600.0,
        status=status,
        **overrides,
    )
    record.set_durations(effective)
    return record


class TestRecordRepo:
    def test_round_trip(self, repo) -> None:
        record = make_record(
            status=StudyTimeStatus.PARTIAL,
            invalid_reason=InvalidTimeReason.DAILY_LIMIT_EXCEEDED,
            description="cut",
            quality_score=9.9,
            behavior_stats=[{"action": "click", "timestamp": 0}],
        )
        record.add_evidence("behavior_summary", {"total_behaviors": 1}, 100)
        repo.save(record)

        loaded = repo.get_by_id(record.id)

        assert loaded is not None
        assert loaded.status == StudyTimeStatus.PARTIAL
        assert loaded.invalid_reason == InvalidTimeReason.DAILY_LIMIT_EXCEEDED
        assert loaded.effective_duration == 1800.0
        assert loaded.behavior_stats == [{"action": "click", "timestamp": 0}]
        assert loaded.evidence_data[0]["timestamp"] == 100
        assert loaded.study_date == DAY
        assert loaded.include_in_daily_total is True

    def test_get_missing(self, repo) -> None:
        assert repo.get_by_id(uuid4()) is None

    def test_upsert_updates(self, repo) -> None:
        record = make_record(status=StudyTimeStatus.PENDING)
        repo.save(record)

        record.status = StudyTimeStatus.VALID
        record.reviewed_by = "r1"
        record.review_time = DAY
        repo.save(record)

        loaded = repo.get_by_id(record.id)
        assert loaded.status == StudyTimeStatus.VALID
        assert loaded.reviewed_by == "r1"
        assert loaded.review_time == DAY

    def test_mark_notified_only_touches_flag(self, repo) -> None:
        record = make_record()
        repo.save(record)

        repo.mark_notified(record.id)

        loaded = repo.get_by_id(record.id)
        assert loaded.student_notified is True
        assert loaded.effective_duration == 1800.0


class TestDailyAggregate:
    def test_sums_counted_records(self, repo) -> None:
        repo.save(make_record(1000))
        repo.save(make_record(500, status=StudyTimeStatus.PENDING))
        repo.save(make_record(700, status=StudyTimeStatus.PARTIAL))

        assert repo.get_daily_effective_time("u1", DAY) == pytest.approx(2200.0)

    def test_ignores_invalid_excluded_other_days_and_users(self, repo) -> None:
        repo.save(make_record(1000))
        repo.save(make_record(900, status=StudyTimeStatus.INVALID))
        repo.save(make_record(800, include_in_daily_total=False))
        repo.save(make_record(600, day=DAY + timedelta(days=1)))
        repo.save(make_record(400, user_id="u2"))

        assert repo.get_daily_effective_time("u1", DAY) == pytest.approx(1000.0)

    def test_excludes_given_record(self, repo) -> None:
        own = make_record(1000)
        repo.save(own)
        repo.save(make_record(300))

        assert repo.get_daily_effective_time("u1", DAY, exclude_record_id=own.id) == 300.0

    def test_time_of_day_does_not_matter(self, repo) -> None:
        repo.save(make_record(1000))
        assert repo.get_daily_effective_time("u1", DAY + timedelta(hours=23)) == 1000.0

    def test_empty(self, repo) -> None:
        assert repo.get_daily_effective_time("nobody", DAY) == 0.0


class TestQueries:
    def test_list_by_user_range(self, repo) -> None:
        repo.save(make_record(day=DAY))
        repo.save(make_record(day=DAY + timedelta(days=1)))
        repo.save(make_record(day=DAY + timedelta(days=5)))

        records = repo.list_by_user("u1", DAY, DAY + timedelta(days=1))

        assert len(records) == 2

    def test_list_by_course(self, repo) -> None:
        repo.save(make_record(course_id="c1"))
        repo.save(make_record(course_id="c2"))

        assert len(repo.list_by_course("c1")) == 1
        assert len(repo.list_by_course("c1", limit=0)) == 0

    def test_list_in_range_by_status(self, repo) -> None:
        repo.save(make_record(status=StudyTimeStatus.VALID))
        repo.save(make_record(0, status=StudyTimeStatus.INVALID))
        repo.save(make_record(status=StudyTimeStatus.PARTIAL))

        records = repo.list_in_range(
            DAY, DAY, statuses=[StudyTimeStatus.INVALID, StudyTimeStatus.PARTIAL]
        )

        assert {r.status for r in records} == {StudyTimeStatus.INVALID, StudyTimeStatus.PARTIAL}

    def test_list_unnotified_skips_pending(self, repo) -> None:
        repo.save(make_record(status=StudyTimeStatus.VALID))
        repo.save(make_record(status=StudyTimeStatus.PENDING))
        repo.save(make_record(status=StudyTimeStatus.VALID, student_notified=True))

        records = repo.list_unnotified()

        assert len(records) == 1
        assert records[0].status == StudyTimeStatus.VALID

    def test_list_needing_review(self, repo) -> None:
        repo.save(make_record(status=StudyTimeStatus.PENDING))
        repo.save(make_record(status=StudyTimeStatus.PARTIAL))
        repo.save(make_record(status=StudyTimeStatus.VALID))

        assert len(repo.list_needing_review()) == 2
        assert len(repo.list_needing_review(limit=1)) == 1

    def test_list_for_recalculation_filters(self, repo) -> None:
        repo.save(make_record(0, status=StudyTimeStatus.INVALID))
        repo.save(make_record(status=StudyTimeStatus.VALID))
        repo.save(make_record(0, status=StudyTimeStatus.INVALID, user_id="u2"))

        assert len(repo.list_for_recalculation(user_id="u1")) == 2
        assert len(repo.list_for_recalculation(only_invalid=True)) == 2
        assert len(repo.list_for_recalculation(user_id="u1", only_invalid=True)) == 1
        assert len(repo.list_for_recalculation(study_date=DAY + timedelta(days=1))) == 0

    def test_list_for_recalculation_pages(self, repo) -> None:
        for _ in range(5):
            repo.save(make_record())

        first = repo.list_for_recalculation(limit=2)
        second = repo.list_for_recalculation(limit=2, offset=2)
        third = repo.list_for_recalculation(limit=2, offset=4)

        ids = [r.id for r in first + second + third]
        assert len(ids) == 5
        assert len(set(ids)) == 5


class TestUserStudyConfigRepo:
    def test_missing_user(self, config_repo) -> None:
        assert config_repo.get_daily_limit("u1") is None

    def test_set_and_update(self, config_repo) -> None:
        config_repo.set_daily_limit("u1", 3600)
        assert config_repo.get_daily_limit("u1") == 3600

        config_repo.set_daily_limit("u1", 7200)
        assert config_repo.get_daily_limit("u1") == 7200
