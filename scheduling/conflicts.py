"""Overlap checks against already-booked appointments."""
from .models import Appointment
from .timeutils import request_window, to_minutes

DEFAULT_APPOINTMENT_MINUTES = 30


def appointment_window(appointment: Appointment, default_duration: int = DEFAULT_APPOINTMENT_MINUTES) -> tuple[int, int]:
    start = to_minutes(appointment.appointment_time)
    return start, start + (appointment.duration_minutes or default_duration)


def overlaps(a: tuple[int, int], b: tuple[int, int]) -> bool:
    """Half-open interval overlap; touching windows do not overlap."""
    return a[0] < b[1] and a[1] > b[0]


def find_conflict(
    existing: list[Appointment],
    time: str,
    duration_minutes: int,
    default_existing_duration: int = DEFAULT_APPOINTMENT_MINUTES,
    exclude_appointment_id: str | None = None,
) -> Appointment | None:
    """First active appointment overlapping the requested window."""
    requested = request_window(time, duration_minutes)
    for appointment in existing:
        if not appointment.is_active:
            continue
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        if overlaps(requested, appointment_window(appointment, default_existing_duration)):
            return appointment
    return None


def has_conflict(
    existing: list[Appointment],
    time: str,
    duration_minutes: int,
    default_existing_duration: int = DEFAULT_APPOINTMENT_MINUTES,
    exclude_appointment_id: str | None = None,
) -> bool:
    return (
        find_conflict(existing, time, duration_minutes, default_existing_duration, exclude_appointment_id)
        is not None
    )
