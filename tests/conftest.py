import os
from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.adapters.clock import FixedClock
from src.adapters.sqlite.inbox import SQLiteNotificationInbox
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.app_shell.config import MIGRATIONS_DIR
from src.app_shell.context import StudyTimeContext
from src.rules.loader import load_rules
from src.rules.models import Rules

FIXED_NOW = datetime(2026, 1, 14, 12, 0, tzinfo=UTC)


@pytest.fixture
def rules() -> Rules:
    # Load REAL rules from project root (tests run from there)
    rules_path = Path("rules.yaml").resolve()
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def db_path(tmp_path) -> str:
    """Temporary SQLite database with all migrations applied."""
    path = os.path.join(str(tmp_path), "study_time.db")
    SQLiteMigrator(path, MIGRATIONS_DIR).run_migrations()
    return path


@pytest.fixture
def channel(db_path) -> SQLiteNotificationInbox:
    return SQLiteNotificationInbox(db_path)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(FIXED_NOW)


@pytest.fixture
def test_ctx(db_path, rules, channel, clock) -> StudyTimeContext:
    """
    Full StudyTimeContext backed by a temporary SQLite DB, the inbox
    channel and a fixed clock.
    """
    return StudyTimeContext.create(db_path=db_path, rules=rules, channel=channel, clock=clock)
