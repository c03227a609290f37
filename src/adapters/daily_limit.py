"""
Cached daily limit provider.

Reads per-user daily limits from a config source and keeps them for a TTL.
Users without an override get the default limit.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from threading import Lock
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_DAILY_LIMIT_SECONDS = 8 * 3600


class UserStudyConfigSource(Protocol):
    def get_daily_limit(self, user_id: str) -> int | None:
        """Override in seconds, or None when the user has none."""
        ...


class CachedDailyLimitProvider:
    """Implements DailyLimitPort with a per-user TTL cache."""

    def __init__(
        self,
        source: UserStudyConfigSource | None = None,
        default_limit: float = DEFAULT_DAILY_LIMIT_SECONDS,
        ttl_seconds: float = 300,
        monotonic: Callable[[], float] | None = None,
    ):
        self._source = source
        self._default = float(default_limit)
        self._ttl = ttl_seconds
        self._monotonic = monotonic or time.monotonic
        self._cache: dict[str, tuple[float, float]] = {}
        self._lock = Lock()

    def get_user_daily_limit(self, user_id: str) -> float:
        now = self._monotonic()
        with self._lock:
            cached = self._cache.get(user_id)
            if cached is not None and now - cached[1] < self._ttl:
                return cached[0]

        limit = self._load(user_id)
        with self._lock:
            self._cache[user_id] = (limit, now)
        return limit

    def _load(self, user_id: str) -> float:
        if self._source is None:
            return self._default
        override = self._source.get_daily_limit(user_id)
        if override is None or override <= 0:
            return self._default
        logger.debug("Daily limit override for user %s: %ss", user_id, override)
        return float(override)

    def invalidate(self, user_id: str | None = None) -> None:
        """Drop one user's cached limit, or all of them."""
        with self._lock:
            if user_id is None:
                self._cache.clear()
            else:
                self._cache.pop(user_id, None)
