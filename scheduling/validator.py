"""Booking-time validation for one provider and across all providers."""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import structlog

from .conflicts import DEFAULT_APPOINTMENT_MINUTES, find_conflict
from .errors import NoScheduleConfiguredError
from .models import ProviderRecord
from .resolver import blocking_entry, is_within_any_slot, resolve_availability
from .store import PROVIDER_ROLES, ScheduleStore
from .timeutils import day_of_week, iso_date, request_window

log = structlog.get_logger()

NO_SCHEDULE_REASON = "Provider has not configured their working schedule"
MARKED_UNAVAILABLE_REASON = "Provider is not available at this time (marked as unavailable)"
CONFLICT_REASON = "Time slot conflicts with existing appointment"


@dataclass
class ValidationResult:
    valid: bool
    reason: str | None = None
    code: str | None = None
    provider: ProviderRecord | None = None

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "reason": self.reason,
            "code": self.code,
            "provider": self.provider.to_dict() if self.provider else None,
        }


def check_schedule(
    provider: ProviderRecord,
    branch: str,
    date: str,
    time: str,
    duration_minutes: int,
    honor_overrides: bool = True,
) -> ValidationResult:
    """Schedule-only checks: working hours, overrides and the unavailable list.

    With ``honor_overrides=False`` the raw weekly hours are used and per-date
    overrides in the schedule document are ignored. In both modes the flat
    unavailable-dates list is consulted last and can veto a slot that the
    schedule document allows.
    """
    if provider.schedule is None:
        return ValidationResult(False, str(NoScheduleConfiguredError(provider.id)), "no_schedule")

    slots = resolve_availability(
        provider.schedule,
        branch,
        date,
        honor_overrides=honor_overrides,
        unavailable_dates=provider.unavailable_dates,
    )
    if not slots:
        override = provider.schedule.override_for(date, branch) if honor_overrides else None
        if override is not None and (override.unavailable or override.time_slots):
            return ValidationResult(
                False, f"Provider is not available on {date} at {branch} branch", "date_unavailable"
            )
        weekday = day_of_week(date)
        return ValidationResult(
            False, f"Provider does not work on {weekday}s at {branch} branch", "day_disabled"
        )

    if not is_within_any_slot(slots, time, duration_minutes):
        hours = ", ".join(f"{slot.start_time}-{slot.end_time}" for slot in slots)
        return ValidationResult(
            False, f"Appointment time ({time}) is outside working hours ({hours})", "outside_hours"
        )

    if blocking_entry(provider.unavailable_dates, branch, date, time) is not None:
        return ValidationResult(False, MARKED_UNAVAILABLE_REASON, "marked_unavailable")

    return ValidationResult(True, provider=provider)


def evaluate_provider(
    store: ScheduleStore,
    provider: ProviderRecord,
    branch: str,
    date: str,
    time: str,
    duration_minutes: int = DEFAULT_APPOINTMENT_MINUTES,
    exclude_appointment_id: str | None = None,
    honor_overrides: bool = True,
    default_existing_duration: int = DEFAULT_APPOINTMENT_MINUTES,
) -> ValidationResult:
    result = check_schedule(provider, branch, date, time, duration_minutes, honor_overrides)
    if not result.valid:
        return result

    appointments = store.list_appointments(provider.id, date)
    conflict = find_conflict(
        appointments,
        time,
        duration_minutes,
        default_existing_duration=default_existing_duration,
        exclude_appointment_id=exclude_appointment_id,
    )
    if conflict is not None:
        log.debug("appointment_conflict", provider_id=provider.id, conflicting_id=conflict.id)
        return ValidationResult(False, CONFLICT_REASON, "conflict")

    return ValidationResult(True, provider=provider)


def validate_appointment(
    store: ScheduleStore,
    provider_id: str,
    branch: str,
    date: str,
    time: str,
    duration_minutes: int = DEFAULT_APPOINTMENT_MINUTES,
    exclude_appointment_id: str | None = None,
    honor_overrides: bool = True,
    default_existing_duration: int = DEFAULT_APPOINTMENT_MINUTES,
) -> ValidationResult:
    """Decide whether a provider can take an appointment.

    Raises InvalidDateError / InvalidTimeError for malformed input,
    ProviderNotFoundError for an unknown provider and StoreUnavailableError
    when the store fails. Every other rejection comes back as an invalid
    result with a user-facing reason.
    """
    date = iso_date(date)
    request_window(time, duration_minutes)

    provider = store.get_provider(provider_id)
    result = evaluate_provider(
        store,
        provider,
        branch,
        date,
        time,
        duration_minutes,
        exclude_appointment_id=exclude_appointment_id,
        honor_overrides=honor_overrides,
        default_existing_duration=default_existing_duration,
    )
    log.info(
        "appointment_validated",
        provider_id=provider_id,
        branch=branch,
        date=date,
        time=time,
        valid=result.valid,
        code=result.code,
    )
    return result


def find_available_providers(
    store: ScheduleStore,
    branch: str,
    date: str,
    time: str,
    duration_minutes: int = DEFAULT_APPOINTMENT_MINUTES,
    honor_overrides: bool = True,
    max_workers: int = 1,
    default_existing_duration: int = DEFAULT_APPOINTMENT_MINUTES,
) -> list[ProviderRecord]:
    """Doctors and staff free for the requested slot, in store order.

    A failure while checking one provider excludes that provider and is
    logged; a failure listing providers propagates.
    """
    date = iso_date(date)
    request_window(time, duration_minutes)
    providers = store.list_providers(PROVIDER_ROLES)

    def is_available(provider: ProviderRecord) -> bool:
        try:
            return evaluate_provider(
                store,
                provider,
                branch,
                date,
                time,
                duration_minutes,
                honor_overrides=honor_overrides,
                default_existing_duration=default_existing_duration,
            ).valid
        except Exception as e:
            log.warning("provider_check_failed", provider_id=provider.id, error=str(e))
            return False

    if max_workers > 1 and len(providers) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            flags = list(pool.map(is_available, providers))
    else:
        flags = [is_available(p) for p in providers]

    available = [p for p, ok in zip(providers, flags) if ok]
    log.info(
        "available_providers_found",
        branch=branch,
        date=date,
        time=time,
        checked=len(providers),
        available=len(available),
    )
    return available
