"""Provider-side schedule edits.

Every operation loads the whole document, changes it in memory and saves
it back with the version it loaded, so a concurrent edit surfaces as
ScheduleVersionConflictError instead of being silently overwritten.
"""
import uuid
from datetime import date as date_cls

import structlog

from .defaults import DEFAULT_WEEKLY_SCHEDULE, normalize_schedule
from .models import DateOverride, ScheduleDocument, ScheduleRecord, TimeSlot, UnavailableDate, utc_now
from .store import ScheduleStore
from .timeutils import branch_key, iso_date, override_key, to_minutes

log = structlog.get_logger()


def _load(store: ScheduleStore, provider_id: str, role: str) -> tuple[ScheduleRecord, ScheduleDocument]:
    record = store.load_schedule(provider_id, role)
    doc = record.schedule.copy() if record.schedule is not None else ScheduleDocument()
    return record, doc


def _save(
    store: ScheduleStore,
    provider_id: str,
    role: str,
    record: ScheduleRecord,
    doc: ScheduleDocument,
    unavailable_dates: list[UnavailableDate] | None = None,
) -> ScheduleDocument:
    if unavailable_dates is None:
        unavailable_dates = record.unavailable_dates
    before = record.schedule if record.schedule is not None else ScheduleDocument()
    if before.to_dict() == doc.to_dict() and unavailable_dates == record.unavailable_dates:
        log.debug("schedule_unchanged", provider_id=provider_id)
        return before
    expected = record.schedule.version if record.schedule is not None else 0
    return store.save_schedule(provider_id, role, doc, unavailable_dates, expected_version=expected)


def _coerce_slots(time_slots: list[TimeSlot | dict] | None) -> list[TimeSlot]:
    slots = [s if isinstance(s, TimeSlot) else TimeSlot.from_dict(s) for s in time_slots or []]
    for slot in slots:
        to_minutes(slot.start_time)
        to_minutes(slot.end_time)
    return slots


def save_calendar_schedule(
    store: ScheduleStore,
    provider_id: str,
    role: str,
    date: str | date_cls,
    branch: str,
    time_slots: list[TimeSlot | dict] | None,
) -> ScheduleDocument:
    """Replace the weekly hours on one date with custom slots.

    An empty slot list removes the override so the date reverts to the
    weekly schedule.
    """
    slots = _coerce_slots(time_slots)
    key = override_key(date, branch)
    record, doc = _load(store, provider_id, role)

    if slots:
        doc.overrides[key] = DateOverride(
            date=iso_date(date), branch=branch_key(branch), time_slots=slots, last_updated=utc_now()
        )
    else:
        doc.overrides.pop(key, None)

    log.info("calendar_schedule_saved", provider_id=provider_id, key=key, slots=len(slots))
    return _save(store, provider_id, role, record, doc)


def mark_date_unavailable(
    store: ScheduleStore, provider_id: str, role: str, date: str | date_cls, branch: str
) -> ScheduleDocument:
    key = override_key(date, branch)
    record, doc = _load(store, provider_id, role)
    doc.overrides[key] = DateOverride(
        date=iso_date(date), branch=branch_key(branch), unavailable=True, last_updated=utc_now()
    )
    log.info("date_marked_unavailable", provider_id=provider_id, key=key)
    return _save(store, provider_id, role, record, doc)


def remove_calendar_schedule(
    store: ScheduleStore, provider_id: str, role: str, date: str | date_cls, branch: str
) -> ScheduleDocument:
    key = override_key(date, branch)
    record, doc = _load(store, provider_id, role)
    doc.overrides.pop(key, None)
    log.info("calendar_schedule_removed", provider_id=provider_id, key=key)
    return _save(store, provider_id, role, record, doc)


def save_weekly_schedule(
    store: ScheduleStore,
    provider_id: str,
    role: str,
    weekly: dict,
    defaults: dict = DEFAULT_WEEKLY_SCHEDULE,
) -> ScheduleDocument:
    """Replace the weekly hours, keeping existing date overrides."""
    record, doc = _load(store, provider_id, role)
    updated = normalize_schedule(weekly, defaults)
    updated.overrides = doc.overrides
    updated.version = doc.version
    return _save(store, provider_id, role, record, updated)


def add_unavailable_date(
    store: ScheduleStore,
    provider_id: str,
    role: str,
    date: str | date_cls,
    branch: str,
    time_slots: list[str] | None = None,
) -> UnavailableDate:
    """Block a whole day (``time_slots=None``) or specific start times.

    Replaces any earlier entry for the same date and branch.
    """
    for time in time_slots or []:
        to_minutes(time)
    date = iso_date(date)
    record, doc = _load(store, provider_id, role)
    entry = UnavailableDate(id=uuid.uuid4().hex, date=date, branch=branch_key(branch), time_slots=time_slots)
    kept = [
        e for e in record.unavailable_dates
        if e.is_specific_schedule or not (e.date == date and branch_key(e.branch) == entry.branch)
    ]
    _save(store, provider_id, role, record, doc, kept + [entry])
    log.info("unavailable_date_added", provider_id=provider_id, date=date, branch=entry.branch)
    return entry


def remove_unavailable_date(store: ScheduleStore, provider_id: str, role: str, entry_id: str) -> bool:
    record, doc = _load(store, provider_id, role)
    kept = [e for e in record.unavailable_dates if e.id != entry_id]
    if len(kept) == len(record.unavailable_dates):
        return False
    _save(store, provider_id, role, record, doc, kept)
    return True
