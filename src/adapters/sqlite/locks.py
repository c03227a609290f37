"""
SQLite lease lock.

Serializes work per key (user + study date) across every process that
shares the database file. Acquiring inserts a lease row for the key inside
a BEGIN IMMEDIATE transaction; releasing deletes it. A lease older than
lease_seconds belongs to a crashed holder and is taken over.

Threads of one process queue on an InProcessKeyedLock first, so only one
of them polls the database for a given key.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from uuid import uuid4

from src.adapters.locks import InProcessKeyedLock
from src.adapters.sqlite.repos import dict_factory

logger = logging.getLogger(__name__)


class LockTimeoutError(RuntimeError):
    """Raised when a lease could not be acquired in time."""

    def __init__(self, key: str, waited: float):
        self.key = key
        self.waited = waited
        super().__init__(f"Could not acquire lock '{key}' within {waited:.1f}s")


class SQLiteKeyedLock:
    """Implements KeyedLockPort with one lease row per key."""

    def __init__(
        self,
        db_path: str,
        lease_seconds: float = 60.0,
        acquire_timeout: float = 30.0,
        poll_interval: float = 0.05,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self.db_path = db_path
        self.lease_seconds = lease_seconds
        self.acquire_timeout = acquire_timeout
        self.poll_interval = poll_interval
        # Wall clock: lease stamps are compared between processes
        self._clock = clock or time.time
        self._sleep = sleep or time.sleep
        self._local = InProcessKeyedLock()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = dict_factory
        return conn

    def _try_acquire(self, key: str, owner: str) -> bool:
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            now = self._clock()
            row = conn.execute(
                "SELECT owner, acquired_at FROM study_time_locks WHERE lock_key = ?", (key,)
            ).fetchone()
            if row is not None and now - row["acquired_at"] < self.lease_seconds:
                conn.rollback()
                return False
            if row is not None:
                logger.warning(
                    "Taking over expired lease on %s from %s (%.1fs old)",
                    key,
                    row["owner"],
                    now - row["acquired_at"],
                )
            conn.execute(
                """
                INSERT INTO study_time_locks (lock_key, owner, acquired_at) VALUES (?, ?, ?)
                ON CONFLICT(lock_key) DO UPDATE SET
                    owner=excluded.owner,
                    acquired_at=excluded.acquired_at
            """,
                (key, owner, now),
            )
            conn.commit()
            return True
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _release(self, key: str, owner: str) -> None:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "DELETE FROM study_time_locks WHERE lock_key = ? AND owner = ?", (key, owner)
            )
            conn.commit()
            if cursor.rowcount == 0:
                logger.warning("Lease on %s was lost before release", key)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _acquire(self, key: str, owner: str) -> None:
        started = time.monotonic()
        while not self._try_acquire(key, owner):
            waited = time.monotonic() - started
            if waited >= self.acquire_timeout:
                raise LockTimeoutError(key, waited)
            self._sleep(self.poll_interval)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._local.hold(key):
            owner = uuid4().hex
            self._acquire(key, owner)
            try:
                yield
            finally:
                self._release(key, owner)

    @property
    def active_keys(self) -> int:
        """Keys held or waited on by this process."""
        return self._local.active_keys

    def held_leases(self) -> list[str]:
        """Keys with a lease row in the database, from any process."""
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT lock_key FROM study_time_locks ORDER BY lock_key").fetchall()
            return [row["lock_key"] for row in rows]
        finally:
            conn.close()
