from datetime import UTC, datetime


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock pinned to a given instant (tests, dry runs)."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now_utc(self) -> datetime:
        return self.instant

    def set(self, instant: datetime) -> None:
        self.instant = instant
