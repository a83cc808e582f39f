"""Open start times for booking screens."""
from dataclasses import dataclass, field
from datetime import date as date_cls, timedelta

import structlog

from .conflicts import DEFAULT_APPOINTMENT_MINUTES, has_conflict
from .errors import InvalidTimeError
from .models import Appointment, ProviderRecord
from .resolver import blocking_entry, resolve_availability
from .store import PROVIDER_ROLES, ScheduleStore
from .timeutils import from_minutes, iso_date, parse_date, to_minutes

log = structlog.get_logger()

SLOT_INTERVAL_MINUTES = 30


@dataclass
class OpenSlot:
    date: str
    time: str
    provider_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"date": self.date, "time": self.time, "provider_ids": self.provider_ids}


def available_start_times(
    provider: ProviderRecord,
    appointments: list[Appointment],
    branch: str,
    date: str,
    duration_minutes: int = DEFAULT_APPOINTMENT_MINUTES,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
    honor_overrides: bool = True,
    default_existing_duration: int = DEFAULT_APPOINTMENT_MINUTES,
) -> list[str]:
    """Start times where the whole appointment fits one provider's hours."""
    if duration_minutes <= 0 or interval_minutes <= 0:
        raise InvalidTimeError("Duration and interval must be positive")
    slots = resolve_availability(
        provider.schedule,
        branch,
        date,
        honor_overrides=honor_overrides,
        unavailable_dates=provider.unavailable_dates,
    )
    times = []
    for slot in slots:
        start, end = to_minutes(slot.start_time), to_minutes(slot.end_time)
        for minute in range(start, end - duration_minutes + 1, interval_minutes):
            time = from_minutes(minute)
            if blocking_entry(provider.unavailable_dates, branch, date, time) is not None:
                continue
            if has_conflict(appointments, time, duration_minutes, default_existing_duration):
                continue
            times.append(time)
    return sorted(set(times))


def branch_time_slots(
    store: ScheduleStore,
    branch: str,
    date: str,
    duration_minutes: int = DEFAULT_APPOINTMENT_MINUTES,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
    honor_overrides: bool = True,
    default_existing_duration: int = DEFAULT_APPOINTMENT_MINUTES,
) -> list[OpenSlot]:
    """Every start time at which at least one doctor or staff member is free.

    A provider whose slots cannot be computed is logged and left out.
    """
    date = iso_date(date)
    if duration_minutes <= 0 or interval_minutes <= 0:
        raise InvalidTimeError("Duration and interval must be positive")
    by_time: dict[str, list[str]] = {}
    for provider in store.list_providers(PROVIDER_ROLES):
        if provider.schedule is None:
            continue
        try:
            appointments = store.list_appointments(provider.id, date)
            times = available_start_times(
                provider,
                appointments,
                branch,
                date,
                duration_minutes,
                interval_minutes,
                honor_overrides,
                default_existing_duration,
            )
        except Exception as e:
            log.warning("provider_check_failed", provider_id=provider.id, error=str(e))
            continue
        for time in times:
            by_time.setdefault(time, []).append(provider.id)
    return [OpenSlot(date=date, time=time, provider_ids=ids) for time, ids in sorted(by_time.items())]


def find_next_available_slot(
    store: ScheduleStore,
    branch: str,
    start_date: str | date_cls,
    duration_minutes: int = DEFAULT_APPOINTMENT_MINUTES,
    max_days_ahead: int = 30,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
    default_existing_duration: int = DEFAULT_APPOINTMENT_MINUTES,
) -> OpenSlot | None:
    """Earliest open slot on the days after ``start_date``."""
    first = parse_date(start_date)
    for offset in range(1, max_days_ahead + 1):
        day = (first + timedelta(days=offset)).isoformat()
        open_slots = branch_time_slots(
            store,
            branch,
            day,
            duration_minutes,
            interval_minutes,
            default_existing_duration=default_existing_duration,
        )
        if open_slots:
            return open_slots[0]
    log.info("no_open_slot_found", branch=branch, start_date=first.isoformat(), days=max_days_ahead)
    return None
