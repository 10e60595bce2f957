"""
Parsing des horodatages du flux / Feed timestamp parsing.
Le flux mélange plusieurs formats ; une valeur illisible donne None.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

# Formats acceptés en plus d'ISO 8601 / Accepted formats besides ISO 8601
SUPPORTED_DATE_FORMATS = (
    "%d/%m/%Y %I:%M:%S %p",
    "%d/%m/%Y %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
)

DEFAULT_FEED_TZ = ZoneInfo("Australia/Sydney")


def _to_utc(value: datetime, tz: ZoneInfo) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc)


def parse_feed_timestamp(raw: str | None, tz: ZoneInfo = DEFAULT_FEED_TZ) -> datetime | None:
    """Horodatage du flux -> datetime UTC / Feed timestamp -> UTC datetime.

    Les valeurs sans décalage sont en heure régionale / Values without offset are regional time.
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None

    try:
        return _to_utc(datetime.fromisoformat(value), tz)
    except ValueError:
        pass

    for fmt in SUPPORTED_DATE_FORMATS:
        try:
            return _to_utc(datetime.strptime(value, fmt), tz)
        except ValueError:
            continue

    return None
