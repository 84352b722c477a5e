"""Wall clock in the deployment timezone"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


class Clock:
    """
    Source of "now" and "today" for every time-dependent rule.

    Instants are timezone-aware UTC; calendar dates (quota rollover) are
    taken in the configured deployment timezone.
    """

    def __init__(self, tz_name: str = "UTC"):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().astimezone(self.tz).date()


class FrozenClock(Clock):
    """Clock pinned to a fixed instant (tests, replays)"""

    def __init__(self, instant: datetime, tz_name: str = "UTC"):
        super().__init__(tz_name)
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta) -> None:
        self.instant = self.instant + delta


def as_utc(value: datetime) -> datetime:
    """Aware UTC copy of an instant; naive values are taken to be UTC already"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
