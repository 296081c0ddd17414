import time
import zoneinfo
from datetime import datetime, date
from typing import Optional

from core.errors import ConfigurationError

UTC_ZONE = zoneinfo.ZoneInfo("UTC")
MINUTES_PER_DAY = 1440
MILLIS_PER_DAY = 24 * 60 * 60 * 1000


def now_millis() -> int:
    """Default hub clock: current epoch time in milliseconds."""
    return int(time.time() * 1000)


def load_zone(name: Optional[str]) -> zoneinfo.ZoneInfo:
    if not name or not isinstance(name, str):
        raise ConfigurationError("timezone is empty")
    try:
        return zoneinfo.ZoneInfo(name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ConfigurationError(f"unknown timezone {name!r}") from e


def safe_zone(name: Optional[str]) -> zoneinfo.ZoneInfo:
    """Resolves an IANA zone name, silently substituting UTC when it is unusable."""
    try:
        return load_zone(name)
    except ConfigurationError:
        return UTC_ZONE


def to_local(instant_ms: int, tz_name: Optional[str]) -> datetime:
    return datetime.fromtimestamp(instant_ms / 1000, tz=safe_zone(tz_name))


def local_date(instant_ms: int, tz_name: Optional[str]) -> date:
    return to_local(instant_ms, tz_name).date()


def local_date_str(instant_ms: int, tz_name: Optional[str]) -> str:
    return local_date(instant_ms, tz_name).isoformat()


def days_between(start_ms: int, end_ms: int, tz_name: Optional[str] = "UTC") -> int:
    """Counts the local calendar-day boundaries crossed between two instants."""
    return (local_date(end_ms, tz_name) - local_date(start_ms, tz_name)).days


def minutes_of_day(instant_ms: int, tz_name: Optional[str] = "UTC") -> int:
    local = to_local(instant_ms, tz_name)
    return local.hour * 60 + local.minute


def parse_hhmm(value) -> Optional[int]:
    """'HH:MM' -> minutes after midnight, or None for anything malformed."""
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        return None
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
