"""Availability tools with Pydantic validation."""
import logging
import sys
from dataclasses import dataclass
from typing import Annotated, Callable, Literal

import structlog
from pydantic import AfterValidator, BaseModel, Field

import scheduling
from fixtures import build_demo_store, find_branch
from scheduling import ScheduleStore, SupabaseScheduleStore
from settings import get_settings

settings = get_settings()

# Configure structlog to output to stderr (MCP uses stdout for JSON-RPC)
structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, settings.log_level, logging.INFO)),
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)
log = structlog.get_logger()

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"


def _known_branch(value: str) -> str:
    branch = find_branch(value)
    if branch is None:
        raise ValueError(f"Unknown branch: {value}")
    return branch.key


# ============================================
# Tool Schemas (Pydantic models)
# ============================================

DateStr = Annotated[str, Field(pattern=DATE_PATTERN, description="Date YYYY-MM-DD")]
TimeStr = Annotated[str, Field(pattern=TIME_PATTERN, description="24-hour time HH:MM")]
BranchStr = Annotated[
    str,
    Field(min_length=1, description="Branch (e.g., Cabugao, San Juan)"),
    AfterValidator(_known_branch),
]
ProviderId = Annotated[str, Field(min_length=1, description="Provider ID (e.g., doc-001)")]
Duration = Annotated[int, Field(gt=0, le=24 * 60, description="Duration in minutes")]
Role = Literal["doctor", "staff"]


class ValidateAppointmentInput(BaseModel):
    provider_id: ProviderId
    branch: BranchStr
    date: DateStr
    time: TimeStr
    duration_minutes: Duration = 30
    exclude_appointment_id: str | None = None
    honor_overrides: bool = True


class ValidateAppointmentOutput(BaseModel):
    valid: bool
    reason: str | None = None
    code: str | None = None
    provider_id: str | None = None
    provider_name: str | None = None


class FindAvailableProvidersInput(BaseModel):
    branch: BranchStr
    date: DateStr
    time: TimeStr
    duration_minutes: Duration = 30
    honor_overrides: bool = True


class ProviderSummary(BaseModel):
    id: str
    full_name: str
    role: str


class FindAvailableProvidersOutput(BaseModel):
    providers: list[ProviderSummary]


class GetProviderTimeSlotsInput(BaseModel):
    provider_id: ProviderId
    branch: BranchStr
    date: DateStr
    honor_overrides: bool = True


class GetProviderTimeSlotsOutput(BaseModel):
    slots: list[dict]
    is_custom: bool


class GetOpenTimeSlotsInput(BaseModel):
    branch: BranchStr
    date: DateStr
    duration_minutes: Duration = 30


class GetOpenTimeSlotsOutput(BaseModel):
    slots: list[dict]


class FindNextAvailableSlotInput(BaseModel):
    branch: BranchStr
    start_date: DateStr
    duration_minutes: Duration = 30
    max_days_ahead: Annotated[int, Field(gt=0, le=90)] = 30


class FindNextAvailableSlotOutput(BaseModel):
    found: bool
    date: str | None = None
    time: str | None = None
    provider_ids: list[str] = []


class TimeSlotInput(BaseModel):
    id: str | None = None
    startTime: TimeStr
    endTime: TimeStr
    isAvailable: bool = True


class CalendarDateInput(BaseModel):
    provider_id: ProviderId
    role: Role
    date: DateStr
    branch: BranchStr


class SaveCalendarScheduleInput(CalendarDateInput):
    time_slots: list[TimeSlotInput] = []


class ScheduleUpdateOutput(BaseModel):
    provider_id: str
    version: int
    has_override: bool
    override: dict | None = None


class AddUnavailableDateInput(CalendarDateInput):
    time_slots: list[Annotated[str, Field(pattern=TIME_PATTERN)]] | None = None


class AddUnavailableDateOutput(BaseModel):
    entry_id: str


class RemoveUnavailableDateInput(BaseModel):
    provider_id: ProviderId
    role: Role
    entry_id: Annotated[str, Field(min_length=1)]


class RemoveUnavailableDateOutput(BaseModel):
    removed: bool


class DayScheduleInput(BaseModel):
    enabled: bool = True
    start: TimeStr | None = None
    end: TimeStr | None = None


class SaveWeeklyScheduleInput(BaseModel):
    provider_id: ProviderId
    role: Role
    weekly: dict[str, dict[str, DayScheduleInput]] = Field(
        description="Hours per branch and weekday, e.g. {\"cabugao\": {\"monday\": {...}}}"
    )


class GetProviderScheduleInput(BaseModel):
    provider_id: ProviderId


class GetProviderScheduleOutput(BaseModel):
    provider_id: str
    version: int | None = None
    working_hours: dict[str, dict[str, str]] | None = None
    display: dict[str, str] = {}
    custom_dates: list[dict] = []


# ============================================
# Store
# ============================================

_store: ScheduleStore | None = None


def get_store() -> ScheduleStore:
    """Get or create the configured schedule store."""
    global _store
    if _store is None:
        if settings.use_supabase:
            _store = SupabaseScheduleStore.connect(
                settings.supabase_url,
                settings.supabase_key,
                max_retries=settings.store_max_retries,
                retry_delay=settings.store_retry_delay,
            )
            log.info("store_configured", backend="supabase")
        else:
            _store = build_demo_store()
            log.info("store_configured", backend="memory")
    return _store


def set_store(store: ScheduleStore | None) -> None:
    """Replace the store (None rebuilds from settings on next use)."""
    global _store
    _store = store


# ============================================
# Tool Implementations
# ============================================


def validate_appointment(input: ValidateAppointmentInput) -> ValidateAppointmentOutput:
    """Check whether a provider can take an appointment."""
    result = scheduling.validate_appointment(
        get_store(),
        input.provider_id,
        input.branch,
        input.date,
        input.time,
        input.duration_minutes,
        exclude_appointment_id=input.exclude_appointment_id,
        honor_overrides=input.honor_overrides,
        default_existing_duration=settings.default_appointment_minutes,
    )
    return ValidateAppointmentOutput(
        valid=result.valid,
        reason=result.reason,
        code=result.code,
        provider_id=result.provider.id if result.provider else input.provider_id,
        provider_name=result.provider.full_name if result.provider else None,
    )


def find_available_providers(input: FindAvailableProvidersInput) -> FindAvailableProvidersOutput:
    """List doctors and staff free at a branch, date and time."""
    providers = scheduling.find_available_providers(
        get_store(),
        input.branch,
        input.date,
        input.time,
        input.duration_minutes,
        honor_overrides=input.honor_overrides,
        max_workers=settings.provider_query_workers,
        default_existing_duration=settings.default_appointment_minutes,
    )
    return FindAvailableProvidersOutput(
        providers=[ProviderSummary(id=p.id, full_name=p.full_name, role=p.role) for p in providers]
    )


def get_provider_time_slots(input: GetProviderTimeSlotsInput) -> GetProviderTimeSlotsOutput:
    """Resolved working slots for one provider on one date."""
    provider = get_store().get_provider(input.provider_id)
    slots = scheduling.resolve_availability(
        provider.schedule,
        input.branch,
        input.date,
        honor_overrides=input.honor_overrides,
        unavailable_dates=provider.unavailable_dates,
    )
    log.info(
        "get_provider_time_slots",
        provider_id=input.provider_id,
        branch=input.branch,
        date=input.date,
        slots_found=len(slots),
    )
    return GetProviderTimeSlotsOutput(
        slots=[slot.to_dict() for slot in slots],
        is_custom=(
            scheduling.has_custom_schedule_for_date(provider.schedule, input.branch, input.date)
            or scheduling.specific_schedule_entry(provider.unavailable_dates, input.branch, input.date) is not None
        ),
    )


def get_open_time_slots(input: GetOpenTimeSlotsInput) -> GetOpenTimeSlotsOutput:
    """Bookable start times at a branch on a date."""
    slots = scheduling.branch_time_slots(
        get_store(),
        input.branch,
        input.date,
        input.duration_minutes,
        interval_minutes=settings.slot_interval_minutes,
        default_existing_duration=settings.default_appointment_minutes,
    )
    return GetOpenTimeSlotsOutput(slots=[slot.to_dict() for slot in slots])


def find_next_available_slot(input: FindNextAvailableSlotInput) -> FindNextAvailableSlotOutput:
    """Earliest open slot after a date."""
    slot = scheduling.find_next_available_slot(
        get_store(),
        input.branch,
        input.start_date,
        input.duration_minutes,
        max_days_ahead=input.max_days_ahead,
        interval_minutes=settings.slot_interval_minutes,
        default_existing_duration=settings.default_appointment_minutes,
    )
    if slot is None:
        return FindNextAvailableSlotOutput(found=False)
    return FindNextAvailableSlotOutput(found=True, date=slot.date, time=slot.time, provider_ids=slot.provider_ids)


def _schedule_update(provider_id: str, doc: scheduling.ScheduleDocument, date: str, branch: str) -> ScheduleUpdateOutput:
    override = doc.override_for(date, branch)
    return ScheduleUpdateOutput(
        provider_id=provider_id,
        version=doc.version,
        has_override=override is not None,
        override=override.to_dict() if override else None,
    )


def save_calendar_schedule(input: SaveCalendarScheduleInput) -> ScheduleUpdateOutput:
    """Set custom hours for one date (empty list reverts to weekly hours)."""
    doc = scheduling.save_calendar_schedule(
        get_store(),
        input.provider_id,
        input.role,
        input.date,
        input.branch,
        [slot.model_dump() for slot in input.time_slots],
    )
    return _schedule_update(input.provider_id, doc, input.date, input.branch)


def mark_date_unavailable(input: CalendarDateInput) -> ScheduleUpdateOutput:
    """Block a whole date at a branch."""
    doc = scheduling.mark_date_unavailable(get_store(), input.provider_id, input.role, input.date, input.branch)
    return _schedule_update(input.provider_id, doc, input.date, input.branch)


def remove_calendar_schedule(input: CalendarDateInput) -> ScheduleUpdateOutput:
    """Drop a date override."""
    doc = scheduling.remove_calendar_schedule(get_store(), input.provider_id, input.role, input.date, input.branch)
    return _schedule_update(input.provider_id, doc, input.date, input.branch)


def add_unavailable_date(input: AddUnavailableDateInput) -> AddUnavailableDateOutput:
    """Add an entry to the unavailable-dates list."""
    entry = scheduling.add_unavailable_date(
        get_store(), input.provider_id, input.role, input.date, input.branch, input.time_slots
    )
    return AddUnavailableDateOutput(entry_id=entry.id)


def remove_unavailable_date(input: RemoveUnavailableDateInput) -> RemoveUnavailableDateOutput:
    removed = scheduling.remove_unavailable_date(get_store(), input.provider_id, input.role, input.entry_id)
    return RemoveUnavailableDateOutput(removed=removed)


def save_weekly_schedule(input: SaveWeeklyScheduleInput) -> GetProviderScheduleOutput:
    """Replace weekly hours; date overrides are kept."""
    weekly = {
        branch: {day: hours.model_dump(exclude_none=True) for day, hours in days.items()}
        for branch, days in input.weekly.items()
    }
    scheduling.save_weekly_schedule(get_store(), input.provider_id, input.role, weekly)
    return get_provider_schedule(GetProviderScheduleInput(provider_id=input.provider_id))


def get_provider_schedule(input: GetProviderScheduleInput) -> GetProviderScheduleOutput:
    """Weekly hours summary and per-date overrides for one provider."""
    schedule = get_store().get_provider(input.provider_id).schedule
    if schedule is None:
        return GetProviderScheduleOutput(provider_id=input.provider_id)
    return GetProviderScheduleOutput(
        provider_id=input.provider_id,
        version=schedule.version,
        working_hours=scheduling.working_hours_summary(schedule),
        display={branch: scheduling.format_schedule_for_display(schedule, branch) for branch in schedule.weekly},
        custom_dates=[
            {"date": entry["date"], "branch": entry["branch"], "unavailable": entry["schedule"].unavailable}
            for entry in scheduling.get_custom_scheduled_dates(schedule)
        ],
    )


# ============================================
# Tool Registry
# ============================================


@dataclass
class ToolSpec:
    name: str
    description: str
    input_model: type[BaseModel]
    handler: Callable[[BaseModel], BaseModel]


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in [
        ToolSpec(
            "validate_appointment",
            "Check whether a provider can take an appointment at a branch, date and time",
            ValidateAppointmentInput,
            validate_appointment,
        ),
        ToolSpec(
            "find_available_providers",
            "List doctors and staff available at a branch for a date, time and duration",
            FindAvailableProvidersInput,
            find_available_providers,
        ),
        ToolSpec(
            "get_provider_time_slots",
            "Get a provider's working time slots for a date, applying date overrides",
            GetProviderTimeSlotsInput,
            get_provider_time_slots,
        ),
        ToolSpec(
            "get_open_time_slots",
            "Get bookable start times at a branch on a date",
            GetOpenTimeSlotsInput,
            get_open_time_slots,
        ),
        ToolSpec(
            "find_next_available_slot",
            "Find the earliest open appointment slot at a branch after a date",
            FindNextAvailableSlotInput,
            find_next_available_slot,
        ),
        ToolSpec(
            "save_calendar_schedule",
            "Set custom working hours for one date (empty time_slots reverts to the weekly schedule)",
            SaveCalendarScheduleInput,
            save_calendar_schedule,
        ),
        ToolSpec(
            "mark_date_unavailable",
            "Mark a provider unavailable for a whole date at a branch",
            CalendarDateInput,
            mark_date_unavailable,
        ),
        ToolSpec(
            "remove_calendar_schedule",
            "Remove a date override so the weekly schedule applies again",
            CalendarDateInput,
            remove_calendar_schedule,
        ),
        ToolSpec(
            "add_unavailable_date",
            "Block a date (or specific start times) in the provider's unavailable-dates list",
            AddUnavailableDateInput,
            add_unavailable_date,
        ),
        ToolSpec(
            "remove_unavailable_date",
            "Remove an entry from the provider's unavailable-dates list",
            RemoveUnavailableDateInput,
            remove_unavailable_date,
        ),
        ToolSpec(
            "save_weekly_schedule",
            "Replace a provider's weekly working hours per branch, keeping date overrides",
            SaveWeeklyScheduleInput,
            save_weekly_schedule,
        ),
        ToolSpec(
            "get_provider_schedule",
            "Get a provider's weekly hours summary and custom-scheduled dates",
            GetProviderScheduleInput,
            get_provider_schedule,
        ),
    ]
}

# Tool definitions for LLM function calling
TOOL_DEFINITIONS = [
    {
        "type": "function",
        "function": {
            "name": spec.name,
            "description": spec.description,
            "parameters": spec.input_model.model_json_schema(),
        },
    }
    for spec in TOOLS.values()
]


# ============================================
# Tool Executor
# ============================================

def execute_tool(name: str, arguments: dict) -> dict:
    """Execute a tool by name with validation."""
    spec = TOOLS.get(name)
    if spec is None:
        return {"error": f"Unknown tool: {name}"}
    try:
        input_model = spec.input_model(**arguments)
        result = spec.handler(input_model)
        return result.model_dump()
    except Exception as e:
        log.error("tool_execution_error", tool=name, error=str(e))
        return {"error": str(e)}
