"""Schedule document, override and provider models.

A stored schedule document is a single flat mapping that mixes weekly
branch schedules ("cabugao": {"monday": {...}}) with per-date overrides
("2025-09-12_cabugao": {...}). ``ScheduleDocument.from_dict`` splits the
two apart by key pattern so resolution code never inspects raw keys.
"""
import copy
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from .errors import InvalidTimeError
from .timeutils import branch_key, iso_date, override_key, to_minutes

log = structlog.get_logger()

OVERRIDE_KEY_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})_(.+)$")
VERSION_KEY = "version"
INACTIVE_STATUSES = frozenset({"cancelled", "rejected"})
SPECIFIC_SCHEDULE = "specific_schedule"


@dataclass
class DaySchedule:
    enabled: bool = False
    start: str | None = None
    end: str | None = None

    @property
    def is_bookable(self) -> bool:
        """Enabled with both bounds present."""
        return self.enabled and bool(self.start) and bool(self.end)

    @classmethod
    def from_dict(cls, data: dict) -> "DaySchedule":
        return cls(
            enabled=bool(data.get("enabled", False)),
            start=data.get("start"),
            end=data.get("end"),
        )

    def to_dict(self) -> dict:
        return {"enabled": self.enabled, "start": self.start, "end": self.end}


@dataclass
class TimeSlot:
    id: str
    start_time: str
    end_time: str
    is_available: bool = True
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "TimeSlot":
        return cls(
            id=str(data.get("id") or f"slot_{data.get('startTime')}_{data.get('endTime')}"),
            start_time=data.get("startTime") or data.get("start_time"),
            end_time=data.get("endTime") or data.get("end_time"),
            is_available=bool(data.get("isAvailable", data.get("is_available", True))),
            is_default=bool(data.get("isDefault", data.get("is_default", False))),
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "isAvailable": self.is_available,
        }
        if self.is_default:
            data["isDefault"] = True
        return data


@dataclass
class WeeklyBranchSchedule:
    """Recurring weekday hours for one branch."""

    branch: str
    days: dict[str, DaySchedule] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, branch: str, data: dict) -> "WeeklyBranchSchedule":
        days = {}
        for day, config in data.items():
            if isinstance(config, dict):
                days[day.lower()] = DaySchedule.from_dict(config)
        return cls(branch=branch, days=days)

    def to_dict(self) -> dict:
        return {day: config.to_dict() for day, config in self.days.items()}


@dataclass
class DateOverride:
    """Replacement of the weekly schedule for one (date, branch)."""

    date: str
    branch: str
    time_slots: list[TimeSlot] = field(default_factory=list)
    unavailable: bool = False
    last_updated: str | None = None

    @property
    def key(self) -> str:
        return override_key(self.date, self.branch)

    @classmethod
    def from_dict(cls, date: str, branch: str, data: dict) -> "DateOverride":
        slots = data.get("timeSlots") or []
        return cls(
            date=date,
            branch=branch_key(branch),
            time_slots=[TimeSlot.from_dict(s) for s in slots if isinstance(s, dict)],
            unavailable=bool(data.get("unavailable", False)),
            last_updated=data.get("lastUpdated"),
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "date": self.date,
            "branch": self.branch,
            "timeSlots": [slot.to_dict() for slot in self.time_slots],
        }
        if self.unavailable:
            data["unavailable"] = True
        if self.last_updated:
            data["lastUpdated"] = self.last_updated
        return data


ScheduleEntry = WeeklyBranchSchedule | DateOverride


def parse_entry(key: str, value: Any) -> ScheduleEntry | None:
    """Classify one raw document entry by its key pattern."""
    if not isinstance(value, dict):
        return None
    match = OVERRIDE_KEY_RE.match(key)
    if match:
        return DateOverride.from_dict(match.group(1), match.group(2), value)
    return WeeklyBranchSchedule.from_dict(branch_key(key), value)


@dataclass
class ScheduleDocument:
    weekly: dict[str, WeeklyBranchSchedule] = field(default_factory=dict)
    overrides: dict[str, DateOverride] = field(default_factory=dict)
    version: int = 0

    @classmethod
    def from_dict(cls, raw: dict | None) -> "ScheduleDocument":
        """Split a stored document into weekly schedules and overrides.

        Entries that cannot be classified or keyed are logged and skipped so
        one bad entry never hides the rest of the schedule.
        """
        doc = cls()
        if not raw:
            return doc
        if not isinstance(raw, dict):
            log.warning("schedule_document_ignored", type=type(raw).__name__)
            return doc
        for key, value in raw.items():
            try:
                if key == VERSION_KEY:
                    doc.version = int(value or 0)
                    continue
                entry = parse_entry(key, value)
                if entry is None:
                    log.warning("schedule_entry_ignored", key=key)
                elif isinstance(entry, DateOverride):
                    doc.overrides[entry.key] = entry
                else:
                    doc.weekly[entry.branch] = entry
            except (ValueError, TypeError) as e:
                log.warning("schedule_entry_ignored", key=key, error=str(e))
        return doc

    def to_dict(self) -> dict:
        data: dict[str, Any] = {branch: week.to_dict() for branch, week in self.weekly.items()}
        for key, entry in self.overrides.items():
            data[key] = entry.to_dict()
        data[VERSION_KEY] = self.version
        return data

    def copy(self) -> "ScheduleDocument":
        return copy.deepcopy(self)

    def day_schedule(self, branch: str, weekday: str) -> DaySchedule | None:
        week = self.weekly.get(branch_key(branch))
        return week.days.get(weekday) if week else None

    def override_for(self, date: str, branch: str) -> DateOverride | None:
        return self.overrides.get(override_key(date, branch))


@dataclass
class UnavailableDate:
    """Flat unavailable-dates list entry.

    ``time_slots`` of None blocks the whole day; a list blocks those exact
    start times only. Entries of type ``specific_schedule`` block nothing
    and instead carry working hours for that date in ``start_time`` and
    ``end_time``.
    """

    id: str
    date: str
    branch: str
    time_slots: list[str] | None = None
    type: str | None = None
    start_time: str | None = None
    end_time: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "UnavailableDate":
        return cls(
            id=str(data.get("id", "")),
            date=data.get("date", ""),
            branch=data.get("branch", ""),
            time_slots=data.get("timeSlots"),
            type=data.get("type"),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
        )

    def to_dict(self) -> dict:
        data = {"id": self.id, "date": self.date, "branch": self.branch, "timeSlots": self.time_slots}
        if self.type:
            data["type"] = self.type
        if self.start_time:
            data["startTime"] = self.start_time
        if self.end_time:
            data["endTime"] = self.end_time
        return data

    @property
    def is_specific_schedule(self) -> bool:
        return self.type == SPECIFIC_SCHEDULE

    def matches(self, date: str, branch: str) -> bool:
        return self.date == iso_date(date) and branch_key(self.branch) == branch_key(branch)

    def applies_to(self, date: str, branch: str) -> bool:
        if self.is_specific_schedule:
            return False
        return self.matches(date, branch)

    def blocks_day(self) -> bool:
        return self.time_slots is None

    def blocks_time(self, time: str) -> bool:
        return self.time_slots is None or time in self.time_slots


def _json_column(row: dict, column: str) -> Any:
    """Column value, decoding rows saved as JSON text instead of jsonb."""
    value = row.get(column)
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        log.warning("provider_column_unreadable", provider_id=row.get("id"), column=column)
        return None


@dataclass
class ProviderRecord:
    id: str
    full_name: str
    role: str
    schedule: ScheduleDocument | None = None
    unavailable_dates: list[UnavailableDate] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict) -> "ProviderRecord":
        raw_schedule = _json_column(row, "schedule")
        raw_unavailable = _json_column(row, "unavailable_dates")
        if not isinstance(raw_unavailable, list):
            raw_unavailable = []
        return cls(
            id=str(row["id"]),
            full_name=row.get("full_name") or "",
            role=row.get("role") or "",
            schedule=ScheduleDocument.from_dict(raw_schedule) if raw_schedule is not None else None,
            unavailable_dates=[UnavailableDate.from_dict(e) for e in raw_unavailable if isinstance(e, dict)],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "role": self.role,
            "schedule": self.schedule.to_dict() if self.schedule else None,
            "unavailable_dates": [e.to_dict() for e in self.unavailable_dates],
        }


@dataclass
class Appointment:
    id: str
    doctor_id: str
    appointment_date: str
    appointment_time: str
    status: str = "confirmed"
    duration_minutes: int | None = None

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_STATUSES

    @classmethod
    def from_row(cls, row: dict) -> "Appointment":
        # Postgres time columns come back as "HH:MM:SS"
        time = str(row.get("appointment_time") or "")[:5]
        return cls(
            id=str(row.get("id", "")),
            doctor_id=str(row.get("doctor_id", "")),
            appointment_date=str(row.get("appointment_date", "")),
            appointment_time=time,
            status=row.get("status") or "confirmed",
            duration_minutes=row.get("duration_minutes") or row.get("duration"),
        )


def parse_appointments(rows: list[dict]) -> list[Appointment]:
    """Appointments from rows, skipping rows without a usable start time."""
    appointments = []
    for row in rows:
        appointment = Appointment.from_row(row)
        try:
            to_minutes(appointment.appointment_time)
        except InvalidTimeError:
            log.warning("appointment_row_skipped", appointment_id=appointment.id, time=row.get("appointment_time"))
            continue
        appointments.append(appointment)
    return appointments


@dataclass
class ScheduleRecord:
    """What the store returns for one provider's schedule."""

    schedule: ScheduleDocument | None
    unavailable_dates: list[UnavailableDate] = field(default_factory=list)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
