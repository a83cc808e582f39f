"""Default clinic hours and schedule normalization."""
import copy
from typing import Any

from .models import ScheduleDocument, VERSION_KEY


def _week(weekday_hours: tuple[str, str], saturday: dict, sunday: dict) -> dict:
    start, end = weekday_hours
    days = {
        day: {"enabled": True, "start": start, "end": end}
        for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
    }
    days["saturday"] = saturday
    days["sunday"] = sunday
    return days


# Hours a new provider starts with before saving their own.
DEFAULT_WEEKLY_SCHEDULE: dict[str, dict[str, dict[str, Any]]] = {
    "cabugao": _week(
        ("08:00", "12:00"),
        saturday={"enabled": True, "start": "08:00", "end": "17:00"},
        sunday={"enabled": False, "start": "08:00", "end": "17:00"},
    ),
    "sanjuan": _week(
        ("13:00", "17:00"),
        saturday={"enabled": False, "start": "08:00", "end": "17:00"},
        sunday={"enabled": True, "start": "08:00", "end": "17:00"},
    ),
}


def default_schedule(defaults: dict = DEFAULT_WEEKLY_SCHEDULE) -> ScheduleDocument:
    return ScheduleDocument.from_dict(copy.deepcopy(defaults))


def normalize_schedule(raw: Any, defaults: dict = DEFAULT_WEEKLY_SCHEDULE) -> ScheduleDocument:
    """Merge a stored schedule onto the default weekly hours.

    Every default branch and weekday is present in the result; stored day
    fields win over the defaults. Branches absent from the defaults and all
    date overrides are carried over unchanged.
    """
    if isinstance(raw, ScheduleDocument):
        raw = raw.to_dict()
    if not isinstance(raw, dict):
        return default_schedule(defaults)

    merged = copy.deepcopy(defaults)
    for branch, days in defaults.items():
        stored = raw.get(branch)
        if not isinstance(stored, dict):
            continue
        for day in days:
            if isinstance(stored.get(day), dict):
                merged[branch][day] = {**days[day], **stored[day]}

    doc = ScheduleDocument.from_dict(merged)
    doc.version = int(raw.get(VERSION_KEY) or 0)
    extra = ScheduleDocument.from_dict(
        {key: value for key, value in raw.items() if key != VERSION_KEY and key not in defaults}
    )
    doc.overrides.update(extra.overrides)
    for branch, week in extra.weekly.items():
        doc.weekly.setdefault(branch, week)
    return doc
