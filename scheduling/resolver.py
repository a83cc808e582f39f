"""Availability resolution: override precedence over weekly hours."""
from datetime import date as date_cls

import structlog

from .errors import InvalidTimeError
from .models import DaySchedule, ScheduleDocument, TimeSlot, UnavailableDate
from .timeutils import (
    branch_key,
    day_of_week,
    format_time,
    iso_date,
    request_window,
    to_minutes,
)

log = structlog.get_logger()


def weekly_slots(day: DaySchedule | None, weekday: str) -> list[TimeSlot]:
    """The synthetic default slot for an enabled weekly day."""
    if day is None or not day.enabled:
        return []
    if not day.is_bookable:
        log.warning("weekly_day_missing_hours", weekday=weekday)
        return []
    return [
        TimeSlot(
            id=f"default_{weekday}",
            start_time=day.start,
            end_time=day.end,
            is_available=True,
            is_default=True,
        )
    ]


def resolve_availability(
    schedule: ScheduleDocument | None,
    branch: str,
    date: str | date_cls,
    honor_overrides: bool = True,
    unavailable_dates: list[UnavailableDate] | None = None,
) -> list[TimeSlot]:
    """Effective available slots for a provider at a branch on a date.

    A per-date override marked unavailable yields no slots. An override with
    custom slots replaces the weekly day entirely. Otherwise a
    ``specific_schedule`` entry in ``unavailable_dates`` supplies that date's
    hours, and failing that the weekly hours apply. With
    ``honor_overrides=False`` only the weekly hours are consulted.
    """
    weekday = day_of_week(date)
    if schedule is None:
        return []

    if honor_overrides:
        override = schedule.override_for(iso_date(date), branch)
        if override is not None:
            if override.unavailable:
                return []
            if override.time_slots:
                return [
                    slot
                    for slot in override.time_slots
                    if slot.is_available and slot.start_time and slot.end_time
                ]
        specific = specific_schedule_entry(unavailable_dates or [], branch, date)
        if specific is not None:
            return [
                TimeSlot(
                    id=specific.id or f"specific_{weekday}",
                    start_time=specific.start_time,
                    end_time=specific.end_time,
                )
            ]

    return weekly_slots(schedule.day_schedule(branch, weekday), weekday)


def specific_schedule_entry(
    unavailable_dates: list[UnavailableDate], branch: str, date: str | date_cls
) -> UnavailableDate | None:
    """Flat-list entry giving custom hours for the date, if any."""
    for entry in unavailable_dates:
        if not entry.is_specific_schedule or not entry.matches(date, branch):
            continue
        try:
            if to_minutes(entry.start_time) < to_minutes(entry.end_time):
                return entry
        except InvalidTimeError:
            pass
        log.warning("specific_schedule_ignored", entry_id=entry.id, date=entry.date)
    return None


def is_within_any_slot(slots: list[TimeSlot], time: str, duration_minutes: int) -> bool:
    """True if [time, time + duration) fits entirely inside one slot."""
    start, end = request_window(time, duration_minutes)
    for slot in slots:
        if start >= to_minutes(slot.start_time) and end <= to_minutes(slot.end_time):
            return True
    return False


def blocking_entry(
    unavailable_dates: list[UnavailableDate], branch: str, date: str | date_cls, time: str | None = None
) -> UnavailableDate | None:
    """First flat-list entry that blocks the date (or the given start time)."""
    for entry in unavailable_dates:
        if not entry.applies_to(date, branch):
            continue
        if entry.blocks_day() or (time is not None and entry.blocks_time(time)):
            return entry
    return None


def has_custom_schedule_for_date(schedule: ScheduleDocument | None, branch: str, date: str) -> bool:
    if schedule is None:
        return False
    return schedule.override_for(iso_date(date), branch) is not None


def get_custom_scheduled_dates(schedule: ScheduleDocument | None, branch: str | None = None) -> list[dict]:
    """All per-date overrides, optionally for one branch, sorted by date."""
    if schedule is None:
        return []
    wanted = branch_key(branch) if branch else None
    entries = [
        {"date": o.date, "branch": o.branch, "schedule": o}
        for o in schedule.overrides.values()
        if wanted is None or o.branch == wanted
    ]
    return sorted(entries, key=lambda e: e["date"])


def is_provider_working_on_date(
    schedule: ScheduleDocument | None,
    unavailable_dates: list[UnavailableDate],
    branch: str,
    date: str,
    honor_overrides: bool = True,
) -> bool:
    if not resolve_availability(
        schedule, branch, date, honor_overrides=honor_overrides, unavailable_dates=unavailable_dates
    ):
        return False
    return blocking_entry(unavailable_dates, branch, date) is None


def working_hours_summary(schedule: ScheduleDocument | None) -> dict[str, dict[str, str]] | None:
    if schedule is None:
        return None
    summary = {}
    for branch, week in schedule.weekly.items():
        summary[branch] = {
            day: f"{config.start} - {config.end}"
            for day, config in week.days.items()
            if config.is_bookable
        }
    return summary


def format_schedule_for_display(schedule: ScheduleDocument | None, branch: str) -> str:
    week = schedule.weekly.get(branch_key(branch)) if schedule else None
    if week is None:
        return "No schedule set"
    parts = [
        f"{day.capitalize()}: {format_time(config.start)} - {format_time(config.end)}"
        for day, config in week.days.items()
        if config.is_bookable
    ]
    if not parts:
        return "Not working at this branch"
    return ", ".join(parts)
