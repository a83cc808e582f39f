"""Date, time-of-day and key helpers."""
import re
from datetime import date as date_cls

from .errors import InvalidDateError, InvalidTimeError

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
MINUTES_PER_DAY = 24 * 60

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_date(value: str | date_cls) -> date_cls:
    """Parse a YYYY-MM-DD string, raising InvalidDateError if it is malformed."""
    if isinstance(value, date_cls):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise InvalidDateError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    try:
        return date_cls.fromisoformat(value)
    except ValueError as e:
        raise InvalidDateError(f"Invalid date: {value!r}") from e


def iso_date(value: str | date_cls) -> str:
    return parse_date(value).isoformat()


def day_of_week(value: str | date_cls) -> str:
    """Lowercase English weekday name for a date."""
    return WEEKDAYS[parse_date(value).weekday()]


def to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    match = _TIME_RE.match(value) if isinstance(value, str) else None
    if not match:
        raise InvalidTimeError(f"Invalid time: {value!r} (expected HH:MM)")
    hours, minutes = int(match.group(1)), int(match.group(2))
    # "24:00" is allowed as an end-of-day boundary
    if minutes > 59 or hours > 24 or (hours == 24 and minutes):
        raise InvalidTimeError(f"Invalid time: {value!r}")
    return hours * 60 + minutes


def from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def request_window(time: str, duration_minutes: int) -> tuple[int, int]:
    """Half-open [start, end) window in minutes for a requested appointment."""
    if duration_minutes <= 0:
        raise InvalidTimeError(f"Duration must be positive, got {duration_minutes}")
    start = to_minutes(time)
    end = start + duration_minutes
    if end > MINUTES_PER_DAY:
        raise InvalidTimeError(f"Appointment at {time} for {duration_minutes} minutes crosses midnight")
    return start, end


def branch_key(branch: str) -> str:
    """Normalize a branch name ("San Juan" -> "sanjuan")."""
    return "".join(branch.lower().split())


def override_key(date: str | date_cls, branch: str) -> str:
    """Schedule document key for a per-date override."""
    return f"{iso_date(date)}_{branch_key(branch)}"


def format_time(value: str | None) -> str:
    """Format "13:30" as "1:30 PM"."""
    if not value:
        return ""
    total = to_minutes(value)
    hours, minutes = divmod(total, 60)
    period = "PM" if 12 <= hours < 24 else "AM"
    return f"{hours % 12 or 12}:{minutes:02d} {period}"
