import sqlite3

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator


@pytest.fixture
def temp_db_path(tmp_path):
    return str(tmp_path / "test_db.sqlite")


@pytest.fixture
def migrations_dir():
    # Real migrations directory, so the actual SQL is exercised
    return "migrations"


def table_names(db_path: str) -> set[str]:
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        return {row[0] for row in rows}
    finally:
        conn.close()


def test_migrator_creates_migration_table(temp_db_path, migrations_dir):
    SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()

    assert "_migrations" in table_names(temp_db_path)


def test_migrator_applies_initial(temp_db_path, migrations_dir):
    applied = SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()

    assert "001_initial.sql" in applied
    tables = table_names(temp_db_path)
    assert "effective_study_records" in tables
    assert "user_study_configs" in tables


def test_migrator_applies_locks_and_inbox(temp_db_path, migrations_dir):
    applied = SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()

    assert applied == ["001_initial.sql", "002_locks_and_inbox.sql"]
    assert {"study_time_locks", "study_time_notifications"} <= table_names(temp_db_path)


def test_down_section_is_not_applied(temp_db_path, migrations_dir):
    SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()

    # The Down part drops both tables; they must still exist
    assert {"effective_study_records", "user_study_configs"} <= table_names(temp_db_path)


def test_migrator_is_idempotent(temp_db_path, migrations_dir):
    migrator = SQLiteMigrator(temp_db_path, migrations_dir)

    migrator.run_migrations()
    assert migrator.run_migrations() == []

    conn = sqlite3.connect(temp_db_path)
    cursor = conn.execute("SELECT count(*) FROM _migrations WHERE filename='001_initial.sql'")
    assert cursor.fetchone()[0] == 1
    conn.close()


def test_status_check_constraint(temp_db_path, migrations_dir):
    SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()

    conn = sqlite3.connect(temp_db_path)
    try:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO effective_study_records (id, user_id, session_id, course_id, "
                "lesson_id, study_date, study_day, start_time, end_time, status, "
                "created_at, updated_at) VALUES ('x', 'u', 's', 'c', 'l', 'd', 'd', 't', "
                "'t', 'approved', 'n', 'n')"
            )
    finally:
        conn.close()


def test_failed_migration_raises(tmp_path, temp_db_path):
    bad_dir = tmp_path / "bad_migrations"
    bad_dir.mkdir()
    (bad_dir / "001_broken.sql").write_text("CREATE TABLE (;")

    with pytest.raises(RuntimeError, match="001_broken.sql"):
        SQLiteMigrator(temp_db_path, str(bad_dir)).run_migrations()
