"""
Horloge et fuseau régional / Clock and regional time zone adapter.
Les décisions de planification se font en heure civile NSW.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RegionalClock:
    """Conversion UTC <-> calendrier régional / UTC <-> regional calendar conversion."""

    def __init__(self, tz_name: str = "Australia/Sydney", now_fn=utc_now):
        self.tz = ZoneInfo(tz_name)
        self._now_fn = now_fn

    def now(self) -> datetime:
        return self._now_fn()

    def to_local(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(self.tz)

    def local_to_utc(self, day: date, hour: int, minute: int = 0) -> datetime:
        """Heure locale d'un jour donné -> UTC / Local wall-clock time on a day -> UTC."""
        local = datetime(day.year, day.month, day.day, hour, minute, tzinfo=self.tz)
        return local.astimezone(timezone.utc)

    def localize(self, naive: datetime) -> datetime:
        """Interpréter un datetime naïf en heure régionale / Interpret a naive datetime as regional time."""
        return naive.replace(tzinfo=self.tz).astimezone(timezone.utc)
