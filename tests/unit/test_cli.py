"""
Tests for the study time CLI.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest

from src.app_shell.cli import main
from src.app_shell.context import StudyTimeContext
from src.domain.entities import LearnSession, StudyTimeStatus

START = datetime(2026, 1, 14, 9, 0, tzinfo=UTC)
ONE_CLICK = [{"action": "click", "timestamp": 0, "duration": 3600}]


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("STUDY_TIME_DATA_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def cli_ctx(data_dir, rules) -> StudyTimeContext:
    """Context on the same database the CLI will open."""
    main(["migrate"])
    return StudyTimeContext.create(str(data_dir / "study_time.db"), rules)


def process(ctx: StudyTimeContext, events=ONE_CLICK, user_id: str = "user-1", session: str = "s"):
    return ctx.study_time_service.process_study_time(
        LearnSession(id=session, user_id=user_id, course_id="course-1", lesson_id="lesson-1"),
        START,
        START + timedelta(hours=1),
        3600,
        events,
    )


class TestMigrate:
    def test_creates_database(self, data_dir, capsys) -> None:
        main(["migrate"])

        assert (data_dir / "study_time.db").exists()
        assert "Migrations applied." in capsys.readouterr().out


class TestRecalculate:
    def test_single_record(self, cli_ctx, capsys) -> None:
        record = process(cli_ctx)

        main(["recalculate", "--record-id", str(record.id), "--force"])

        out = capsys.readouterr().out
        assert str(record.id) in out
        assert "status=valid" in out

    def test_single_record_rejected_without_force(self, cli_ctx, capsys) -> None:
        record = process(cli_ctx)

        with pytest.raises(SystemExit) as exc:
            main(["recalculate", "--record-id", str(record.id)])

        assert exc.value.code == 1
        assert "record_final" in capsys.readouterr().out

    def test_only_invalid_with_force(self, cli_ctx, capsys) -> None:
        process(cli_ctx, session="a")
        invalid = process(cli_ctx, events=[{"action": "take_test"}], session="b")

        main(["recalculate", "--only-invalid", "--force", "--batch-size", "1"])

        out = capsys.readouterr().out
        assert "Recalculated 1 of 1 records" in out
        assert cli_ctx.record_repo.get_by_id(invalid.id).status == StudyTimeStatus.INVALID

    def test_dry_run_does_not_save(self, cli_ctx, capsys) -> None:
        record = process(cli_ctx)
        cli_ctx.user_config_repo.set_daily_limit("user-1", 1800)

        main(["recalculate", "--user-id", "user-1", "--force", "--dry-run"])

        assert "[dry run]" in capsys.readouterr().out
        assert cli_ctx.record_repo.get_by_id(record.id).status == StudyTimeStatus.VALID

    def test_date_requires_user(self, cli_ctx) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["recalculate", "--date", "2026-01-14"])
        assert exc.value.code == 2

    def test_no_matches(self, cli_ctx, capsys) -> None:
        main(["recalculate", "--user-id", "nobody"])
        assert "No records matched." in capsys.readouterr().out


class TestReport:
    def test_json_report(self, cli_ctx, capsys) -> None:
        process(cli_ctx, session="a")
        process(cli_ctx, events=[{"action": "auth_failed"}], session="b")

        main(
            [
                "report",
                "--user-id",
                "user-1",
                "--start",
                "2026-01-14",
                "--end",
                "2026-01-14",
                "--json",
            ]
        )

        report = json.loads(capsys.readouterr().out)
        assert report["user"]["total_records"] == 2
        assert report["invalid_reasons"][0]["reason"] == "identity_verification_failed"

    def test_nothing_to_report(self, cli_ctx) -> None:
        with pytest.raises(SystemExit):
            main(["report"])


class TestNotify:
    def test_sends_pending(self, cli_ctx, capsys) -> None:
        record = process(cli_ctx)
        record.student_notified = False
        cli_ctx.record_repo.save(record)

        main(["notify"])

        assert "Sent 1 notifications." in capsys.readouterr().out
        assert cli_ctx.record_repo.get_by_id(record.id).student_notified is True


class TestSetLimit:
    def test_sets_limit(self, cli_ctx, capsys) -> None:
        main(["set-limit", "user-1", "2"])

        assert cli_ctx.user_config_repo.get_daily_limit("user-1") == 7200
        assert "2.0h" in capsys.readouterr().out
