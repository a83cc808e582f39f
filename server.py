"""FastAPI backend for availability checks and schedule edits."""
from typing import Literal

import structlog
from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from scheduling import (
    InvalidDateError,
    InvalidTimeError,
    ProviderNotFoundError,
    ScheduleVersionConflictError,
    StoreUnavailableError,
)
from settings import get_settings
from tools import (
    DATE_PATTERN,
    TIME_PATTERN,
    AddUnavailableDateInput,
    AddUnavailableDateOutput,
    CalendarDateInput,
    DayScheduleInput,
    FindAvailableProvidersInput,
    FindAvailableProvidersOutput,
    FindNextAvailableSlotInput,
    FindNextAvailableSlotOutput,
    GetOpenTimeSlotsInput,
    GetOpenTimeSlotsOutput,
    GetProviderScheduleInput,
    GetProviderScheduleOutput,
    GetProviderTimeSlotsInput,
    GetProviderTimeSlotsOutput,
    RemoveUnavailableDateInput,
    RemoveUnavailableDateOutput,
    SaveCalendarScheduleInput,
    SaveWeeklyScheduleInput,
    ScheduleUpdateOutput,
    TimeSlotInput,
    ValidateAppointmentInput,
    ValidateAppointmentOutput,
    add_unavailable_date,
    find_available_providers,
    find_next_available_slot,
    get_open_time_slots,
    get_provider_schedule,
    get_provider_time_slots,
    mark_date_unavailable,
    remove_calendar_schedule,
    remove_unavailable_date,
    save_calendar_schedule,
    save_weekly_schedule,
    validate_appointment,
)

log = structlog.get_logger()

app = FastAPI(title="Clinic Availability Service")


class CalendarScheduleBody(BaseModel):
    role: Literal["doctor", "staff"]
    time_slots: list[TimeSlotInput] = []


class RoleBody(BaseModel):
    role: Literal["doctor", "staff"]


class UnavailableDateBody(RoleBody):
    time_slots: list[str] | None = None


class WeeklyScheduleBody(RoleBody):
    weekly: dict[str, dict[str, DayScheduleInput]]


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(ProviderNotFoundError)
async def provider_not_found(request, exc: ProviderNotFoundError):
    return _error(404, exc)


@app.exception_handler(ValidationError)
@app.exception_handler(InvalidDateError)
@app.exception_handler(InvalidTimeError)
async def invalid_input(request, exc: Exception):
    return _error(422, exc)


@app.exception_handler(ScheduleVersionConflictError)
async def version_conflict(request, exc: ScheduleVersionConflictError):
    return _error(409, exc)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable(request, exc: StoreUnavailableError):
    log.error("store_unavailable", path=request.url.path, error=str(exc))
    return _error(503, exc)


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.post("/appointments/validate", response_model=ValidateAppointmentOutput)
def validate(body: ValidateAppointmentInput):
    return validate_appointment(body)


@app.get("/branches/{branch}/available-providers", response_model=FindAvailableProvidersOutput)
def available_providers(
    branch: str,
    date: str = Query(pattern=DATE_PATTERN),
    time: str = Query(pattern=TIME_PATTERN),
    duration_minutes: int = Query(30, gt=0, le=24 * 60),
    honor_overrides: bool = True,
):
    return find_available_providers(
        FindAvailableProvidersInput(
            branch=branch,
            date=date,
            time=time,
            duration_minutes=duration_minutes,
            honor_overrides=honor_overrides,
        )
    )


@app.get("/branches/{branch}/open-slots", response_model=GetOpenTimeSlotsOutput)
def open_slots(
    branch: str,
    date: str = Query(pattern=DATE_PATTERN),
    duration_minutes: int = Query(30, gt=0, le=24 * 60),
):
    return get_open_time_slots(GetOpenTimeSlotsInput(branch=branch, date=date, duration_minutes=duration_minutes))


@app.get("/branches/{branch}/next-slot", response_model=FindNextAvailableSlotOutput)
def next_slot(
    branch: str,
    start_date: str = Query(pattern=DATE_PATTERN),
    duration_minutes: int = Query(30, gt=0, le=24 * 60),
    max_days_ahead: int = Query(30, gt=0, le=90),
):
    return find_next_available_slot(
        FindNextAvailableSlotInput(
            branch=branch,
            start_date=start_date,
            duration_minutes=duration_minutes,
            max_days_ahead=max_days_ahead,
        )
    )


@app.get("/providers/{provider_id}/time-slots", response_model=GetProviderTimeSlotsOutput)
def provider_time_slots(
    provider_id: str,
    branch: str,
    date: str = Query(pattern=DATE_PATTERN),
    honor_overrides: bool = True,
):
    return get_provider_time_slots(
        GetProviderTimeSlotsInput(provider_id=provider_id, branch=branch, date=date, honor_overrides=honor_overrides)
    )


@app.put("/providers/{provider_id}/calendar/{date}/{branch}", response_model=ScheduleUpdateOutput)
def put_calendar_schedule(provider_id: str, date: str, branch: str, body: CalendarScheduleBody):
    return save_calendar_schedule(
        SaveCalendarScheduleInput(
            provider_id=provider_id, role=body.role, date=date, branch=branch, time_slots=body.time_slots
        )
    )


@app.post("/providers/{provider_id}/calendar/{date}/{branch}/unavailable", response_model=ScheduleUpdateOutput)
def post_unavailable(provider_id: str, date: str, branch: str, body: RoleBody):
    return mark_date_unavailable(CalendarDateInput(provider_id=provider_id, role=body.role, date=date, branch=branch))


@app.delete("/providers/{provider_id}/calendar/{date}/{branch}", response_model=ScheduleUpdateOutput)
def delete_calendar_schedule(provider_id: str, date: str, branch: str, role: Literal["doctor", "staff"] = "doctor"):
    return remove_calendar_schedule(CalendarDateInput(provider_id=provider_id, role=role, date=date, branch=branch))


@app.post("/providers/{provider_id}/unavailable-dates/{date}/{branch}", response_model=AddUnavailableDateOutput)
def post_unavailable_date(provider_id: str, date: str, branch: str, body: UnavailableDateBody):
    return add_unavailable_date(
        AddUnavailableDateInput(
            provider_id=provider_id, role=body.role, date=date, branch=branch, time_slots=body.time_slots
        )
    )


@app.delete("/providers/{provider_id}/unavailable-dates/{entry_id}", response_model=RemoveUnavailableDateOutput)
def delete_unavailable_date(provider_id: str, entry_id: str, role: Literal["doctor", "staff"] = "doctor"):
    return remove_unavailable_date(RemoveUnavailableDateInput(provider_id=provider_id, role=role, entry_id=entry_id))


@app.get("/providers/{provider_id}/schedule", response_model=GetProviderScheduleOutput)
def provider_schedule(provider_id: str):
    return get_provider_schedule(GetProviderScheduleInput(provider_id=provider_id))


@app.put("/providers/{provider_id}/schedule", response_model=GetProviderScheduleOutput)
def put_weekly_schedule(provider_id: str, body: WeeklyScheduleBody):
    return save_weekly_schedule(
        SaveWeeklyScheduleInput(provider_id=provider_id, role=body.role, weekly=body.weekly)
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
