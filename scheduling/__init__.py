from .errors import (
    SchedulingError,
    ProviderNotFoundError,
    NoScheduleConfiguredError,
    InvalidDateError,
    InvalidTimeError,
    StoreUnavailableError,
    ScheduleVersionConflictError,
)
from .models import (
    DaySchedule,
    TimeSlot,
    WeeklyBranchSchedule,
    DateOverride,
    ScheduleEntry,
    ScheduleDocument,
    UnavailableDate,
    ProviderRecord,
    Appointment,
    ScheduleRecord,
    parse_appointments,
)
from .defaults import DEFAULT_WEEKLY_SCHEDULE, default_schedule, normalize_schedule
from .resolver import (
    resolve_availability,
    is_within_any_slot,
    specific_schedule_entry,
    has_custom_schedule_for_date,
    get_custom_scheduled_dates,
    is_provider_working_on_date,
    working_hours_summary,
    format_schedule_for_display,
)
from .conflicts import DEFAULT_APPOINTMENT_MINUTES, has_conflict, find_conflict
from .store import ScheduleStore, InMemoryScheduleStore, SupabaseScheduleStore, PROVIDER_ROLES
from .validator import ValidationResult, validate_appointment, find_available_providers
from .calendar import (
    save_calendar_schedule,
    mark_date_unavailable,
    remove_calendar_schedule,
    save_weekly_schedule,
    add_unavailable_date,
    remove_unavailable_date,
)
from .slots import OpenSlot, available_start_times, branch_time_slots, find_next_available_slot
from .timeutils import WEEKDAYS, branch_key, day_of_week, format_time, override_key

__all__ = [
    "SchedulingError",
    "ProviderNotFoundError",
    "NoScheduleConfiguredError",
    "InvalidDateError",
    "InvalidTimeError",
    "StoreUnavailableError",
    "ScheduleVersionConflictError",
    "DaySchedule",
    "TimeSlot",
    "WeeklyBranchSchedule",
    "DateOverride",
    "ScheduleEntry",
    "ScheduleDocument",
    "UnavailableDate",
    "ProviderRecord",
    "Appointment",
    "ScheduleRecord",
    "parse_appointments",
    "DEFAULT_WEEKLY_SCHEDULE",
    "default_schedule",
    "normalize_schedule",
    "resolve_availability",
    "is_within_any_slot",
    "specific_schedule_entry",
    "has_custom_schedule_for_date",
    "get_custom_scheduled_dates",
    "is_provider_working_on_date",
    "working_hours_summary",
    "format_schedule_for_display",
    "DEFAULT_APPOINTMENT_MINUTES",
    "has_conflict",
    "find_conflict",
    "ScheduleStore",
    "InMemoryScheduleStore",
    "SupabaseScheduleStore",
    "PROVIDER_ROLES",
    "ValidationResult",
    "validate_appointment",
    "find_available_providers",
    "save_calendar_schedule",
    "mark_date_unavailable",
    "remove_calendar_schedule",
    "save_weekly_schedule",
    "add_unavailable_date",
    "remove_unavailable_date",
    "OpenSlot",
    "available_start_times",
    "branch_time_slots",
    "find_next_available_slot",
    "WEEKDAYS",
    "branch_key",
    "day_of_week",
    "format_time",
    "override_key",
]
