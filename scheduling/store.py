"""Schedule store adapters.

The engine reaches persisted schedules, providers and appointments only
through the ``ScheduleStore`` protocol. ``InMemoryScheduleStore`` backs the
demo data and tests; ``SupabaseScheduleStore`` talks to the hosted clinic
database.
"""
import copy
import time
from typing import Any, Callable, Protocol

import httpx
import structlog
from postgrest.exceptions import APIError
from supabase import Client, create_client

from .errors import ProviderNotFoundError, ScheduleVersionConflictError, StoreUnavailableError
from .models import (
    Appointment,
    ProviderRecord,
    ScheduleDocument,
    ScheduleRecord,
    UnavailableDate,
    parse_appointments,
    utc_now,
)

log = structlog.get_logger()

PROVIDER_ROLES = ("doctor", "staff")
PROVIDER_COLUMNS = "id, full_name, role, schedule, unavailable_dates"
APPOINTMENT_COLUMNS = "id, doctor_id, appointment_date, appointment_time, status"


class ScheduleStore(Protocol):
    def load_schedule(self, provider_id: str, role: str) -> ScheduleRecord: ...

    def save_schedule(
        self,
        provider_id: str,
        role: str,
        schedule: ScheduleDocument,
        unavailable_dates: list[UnavailableDate],
        expected_version: int | None = None,
    ) -> ScheduleDocument: ...

    def get_provider(self, provider_id: str) -> ProviderRecord: ...

    def list_providers(self, roles: list[str] | tuple[str, ...] = PROVIDER_ROLES) -> list[ProviderRecord]: ...

    def list_appointments(self, provider_id: str, date: str) -> list[Appointment]: ...


def _next_version(
    provider_id: str, current: ScheduleDocument | None, expected_version: int | None
) -> int:
    actual = current.version if current is not None else 0
    if expected_version is None:
        log.warning("schedule_last_write_wins", provider_id=provider_id, version=actual)
    elif expected_version != actual:
        raise ScheduleVersionConflictError(provider_id, expected_version, actual)
    return actual + 1


class InMemoryScheduleStore:
    """Profiles and appointments kept as raw rows in process memory."""

    def __init__(self, profiles: list[dict] | None = None, appointments: list[dict] | None = None):
        self._profiles: dict[str, dict] = {}
        self._appointments: list[dict] = []
        for row in profiles or []:
            self.add_profile(row)
        for row in appointments or []:
            self.add_appointment(row)

    def add_profile(self, row: dict) -> None:
        self._profiles[str(row["id"])] = copy.deepcopy(row)

    def add_appointment(self, row: dict) -> None:
        self._appointments.append(copy.deepcopy(row))

    def _profile(self, provider_id: str, role: str | None = None) -> dict:
        row = self._profiles.get(provider_id)
        if row is None or (role is not None and row.get("role") != role):
            raise ProviderNotFoundError(provider_id)
        return row

    def load_schedule(self, provider_id: str, role: str) -> ScheduleRecord:
        record = ProviderRecord.from_row(self._profile(provider_id, role))
        return ScheduleRecord(schedule=record.schedule, unavailable_dates=record.unavailable_dates)

    def save_schedule(
        self,
        provider_id: str,
        role: str,
        schedule: ScheduleDocument,
        unavailable_dates: list[UnavailableDate],
        expected_version: int | None = None,
    ) -> ScheduleDocument:
        row = self._profile(provider_id, role)
        current = ProviderRecord.from_row(row).schedule
        saved = schedule.copy()
        saved.version = _next_version(provider_id, current, expected_version)
        row["schedule"] = saved.to_dict()
        row["unavailable_dates"] = [e.to_dict() for e in unavailable_dates]
        row["updated_at"] = utc_now()
        log.info("schedule_saved", provider_id=provider_id, role=role, version=saved.version)
        return saved

    def get_provider(self, provider_id: str) -> ProviderRecord:
        return ProviderRecord.from_row(self._profile(provider_id))

    def list_providers(self, roles: list[str] | tuple[str, ...] = PROVIDER_ROLES) -> list[ProviderRecord]:
        return [ProviderRecord.from_row(row) for row in self._profiles.values() if row.get("role") in roles]

    def list_appointments(self, provider_id: str, date: str) -> list[Appointment]:
        rows = [
            row
            for row in self._appointments
            if str(row.get("doctor_id")) == provider_id and row.get("appointment_date") == date
        ]
        return [apt for apt in parse_appointments(rows) if apt.is_active]


class SupabaseScheduleStore:
    """Store backed by the clinic's Supabase project.

    Doctor schedules live on ``profiles``; staff schedules are mirrored into
    ``staff_schedules``. Reads are retried ``max_retries`` times with a fixed
    delay before failing with StoreUnavailableError; writes are not retried.
    """

    def __init__(self, client: Client, max_retries: int = 2, retry_delay: float = 0.5):
        self.client = client
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @classmethod
    def connect(cls, url: str, key: str, max_retries: int = 2, retry_delay: float = 0.5) -> "SupabaseScheduleStore":
        return cls(create_client(url, key), max_retries=max_retries, retry_delay=retry_delay)

    def _execute(self, operation: str, build: Callable[[], Any], retry: bool = True) -> list[dict]:
        attempts = self.max_retries + 1 if retry else 1
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                response = build().execute()
                return response.data or []
            except (APIError, httpx.HTTPError) as e:
                last_error = e
                log.warning("store_retry", operation=operation, attempt=attempt + 1, error=str(e))
                if attempt < attempts - 1:
                    time.sleep(self.retry_delay)

        log.error("store_failed", operation=operation, error=str(last_error))
        raise StoreUnavailableError(f"{operation} failed: {last_error}") from last_error

    def _staff_schedules(self, staff_ids: list[str]) -> dict[str, dict]:
        if not staff_ids:
            return {}
        rows = self._execute(
            "list_staff_schedules",
            lambda: self.client.table("staff_schedules").select("*").in_("staff_id", staff_ids),
        )
        return {str(row["staff_id"]): row for row in rows}

    def _with_staff_schedule(self, rows: list[dict]) -> list[ProviderRecord]:
        missing = [str(r["id"]) for r in rows if r.get("role") == "staff" and r.get("schedule") is None]
        staff = self._staff_schedules(missing)
        records = []
        for row in rows:
            mirrored = staff.get(str(row["id"]))
            if mirrored is not None:
                row = {
                    **row,
                    "schedule": mirrored.get("schedule"),
                    "unavailable_dates": mirrored.get("unavailable_dates") or [],
                }
            records.append(ProviderRecord.from_row(row))
        return records

    def load_schedule(self, provider_id: str, role: str) -> ScheduleRecord:
        rows = self._execute(
            "load_schedule",
            lambda: self.client.table("profiles")
            .select(PROVIDER_COLUMNS)
            .eq("id", provider_id)
            .eq("role", role)
            .limit(1),
        )
        if not rows:
            raise ProviderNotFoundError(provider_id)
        record = self._with_staff_schedule(rows)[0]
        return ScheduleRecord(schedule=record.schedule, unavailable_dates=record.unavailable_dates)

    def save_schedule(
        self,
        provider_id: str,
        role: str,
        schedule: ScheduleDocument,
        unavailable_dates: list[UnavailableDate],
        expected_version: int | None = None,
    ) -> ScheduleDocument:
        current = self.load_schedule(provider_id, role).schedule
        saved = schedule.copy()
        saved.version = _next_version(provider_id, current, expected_version)
        now = utc_now()
        payload = {
            "schedule": saved.to_dict(),
            "unavailable_dates": [e.to_dict() for e in unavailable_dates],
            "updated_at": now,
        }

        def update_profile():
            query = self.client.table("profiles").update(payload).eq("id", provider_id).eq("role", role)
            if current is not None and expected_version:
                # Version 0 documents predate the version field and have nothing to match
                query = query.eq("schedule->>version", str(expected_version))
            return query

        updated = self._execute("save_schedule", update_profile, retry=False)
        if not updated:
            raise ScheduleVersionConflictError(provider_id, expected_version or 0, None)

        if role == "staff":
            self._execute(
                "save_staff_schedule",
                lambda: self.client.table("staff_schedules").upsert({"staff_id": provider_id, **payload}),
                retry=False,
            )

        log.info("schedule_saved", provider_id=provider_id, role=role, version=saved.version)
        return saved

    def get_provider(self, provider_id: str) -> ProviderRecord:
        rows = self._execute(
            "get_provider",
            lambda: self.client.table("profiles").select(PROVIDER_COLUMNS).eq("id", provider_id).limit(1),
        )
        if not rows:
            raise ProviderNotFoundError(provider_id)
        return self._with_staff_schedule(rows)[0]

    def list_providers(self, roles: list[str] | tuple[str, ...] = PROVIDER_ROLES) -> list[ProviderRecord]:
        rows = self._execute(
            "list_providers",
            lambda: self.client.table("profiles").select(PROVIDER_COLUMNS).in_("role", list(roles)),
        )
        return self._with_staff_schedule(rows)

    def list_appointments(self, provider_id: str, date: str) -> list[Appointment]:
        rows = self._execute(
            "list_appointments",
            lambda: self.client.table("appointments")
            .select(APPOINTMENT_COLUMNS)
            .eq("doctor_id", provider_id)
            .eq("appointment_date", date)
            .neq("status", "cancelled")
            .neq("status", "rejected"),
        )
        return parse_appointments(rows)
