"""Tests for availability resolution."""
import pytest

from scheduling import (
    DateOverride,
    InvalidDateError,
    InvalidTimeError,
    ScheduleDocument,
    TimeSlot,
    UnavailableDate,
    format_schedule_for_display,
    get_custom_scheduled_dates,
    has_custom_schedule_for_date,
    is_provider_working_on_date,
    is_within_any_slot,
    resolve_availability,
    specific_schedule_entry,
    working_hours_summary,
)

from conftest import FRIDAY, MONDAY, SUNDAY, TUESDAY


def _with_override(doc: ScheduleDocument, key: str, entry: dict) -> ScheduleDocument:
    raw = doc.to_dict()
    raw[key] = entry
    return ScheduleDocument.from_dict(raw)


class TestResolveAvailability:
    """Tests for resolve_availability."""

    def test_weekly_day_gives_default_slot(self, weekly_doc):
        """Test an enabled weekday resolves to one default slot."""
        slots = resolve_availability(weekly_doc, "cabugao", MONDAY)

        assert slots == [
            TimeSlot(id="default_monday", start_time="08:00", end_time="12:00", is_available=True, is_default=True)
        ]

    def test_disabled_weekday_is_empty(self, weekly_doc):
        """Test a disabled weekday has no availability."""
        assert resolve_availability(weekly_doc, "sanjuan", FRIDAY) == []

    def test_missing_weekday_is_empty(self, weekly_doc):
        """Test a weekday absent from the schedule has no availability."""
        assert resolve_availability(weekly_doc, "cabugao", SUNDAY) == []

    def test_unknown_branch_is_empty(self, weekly_doc):
        """Test a branch the provider never works at."""
        assert resolve_availability(weekly_doc, "vigan", MONDAY) == []

    def test_no_schedule_is_empty(self):
        """Test a missing schedule document."""
        assert resolve_availability(None, "cabugao", MONDAY) == []

    def test_branch_name_is_normalized(self, weekly_doc):
        """Test branch names ignore case and spaces."""
        doc = _with_override(weekly_doc, f"{FRIDAY}_sanjuan", {
            "timeSlots": [{"id": "s1", "startTime": "13:00", "endTime": "17:00", "isAvailable": True}],
        })
        assert len(resolve_availability(doc, "San Juan", FRIDAY)) == 1
        assert len(resolve_availability(weekly_doc, "CABUGAO", MONDAY)) == 1

    def test_unavailable_override_wins_over_weekly(self, weekly_doc):
        """Test an unavailable override empties an enabled weekday."""
        doc = _with_override(weekly_doc, f"{MONDAY}_cabugao", {"unavailable": True, "timeSlots": []})

        assert resolve_availability(doc, "cabugao", MONDAY) == []

    def test_override_slots_replace_weekly(self, weekly_doc):
        """Test custom slots replace the weekly default instead of merging."""
        doc = _with_override(weekly_doc, f"{MONDAY}_cabugao", {
            "timeSlots": [
                {"id": "a", "startTime": "13:00", "endTime": "15:00", "isAvailable": True},
                {"id": "b", "startTime": "15:00", "endTime": "16:00", "isAvailable": False},
            ],
        })
        slots = resolve_availability(doc, "cabugao", MONDAY)

        assert [s.id for s in slots] == ["a"]
        assert not any(s.is_default for s in slots)

    def test_override_supersedes_disabled_weekday(self, weekly_doc):
        """Test custom slots open a day the weekly schedule keeps closed."""
        doc = _with_override(weekly_doc, f"{FRIDAY}_sanjuan", {
            "timeSlots": [{"id": "s1", "startTime": "13:00", "endTime": "17:00", "isAvailable": True}],
        })
        slots = resolve_availability(doc, "sanjuan", FRIDAY)

        assert [(s.start_time, s.end_time) for s in slots] == [("13:00", "17:00")]
        assert is_within_any_slot(slots, "14:00", 60) is True

    def test_override_without_slots_falls_through(self, weekly_doc):
        """Test an override with no slots reverts to the weekly hours."""
        doc = _with_override(weekly_doc, f"{MONDAY}_cabugao", {"timeSlots": []})

        assert resolve_availability(doc, "cabugao", MONDAY) == resolve_availability(weekly_doc, "cabugao", MONDAY)

    def test_override_for_other_branch_is_ignored(self, weekly_doc):
        """Test overrides only apply to their own branch."""
        doc = _with_override(weekly_doc, f"{MONDAY}_sanjuan", {"unavailable": True})

        assert len(resolve_availability(doc, "cabugao", MONDAY)) == 1

    def test_weekly_only_ignores_overrides(self, weekly_doc):
        """Test honor_overrides=False consults only the weekly hours."""
        doc = _with_override(weekly_doc, f"{MONDAY}_cabugao", {"unavailable": True})

        slots = resolve_availability(doc, "cabugao", MONDAY, honor_overrides=False)
        assert [s.id for s in slots] == ["default_monday"]

    def test_enabled_day_without_hours_is_empty(self):
        """Test a malformed enabled day does not raise."""
        doc = ScheduleDocument.from_dict({"cabugao": {"monday": {"enabled": True}}})

        assert resolve_availability(doc, "cabugao", MONDAY) == []

    def test_invalid_date_raises(self, weekly_doc):
        """Test malformed dates raise InvalidDateError."""
        with pytest.raises(InvalidDateError):
            resolve_availability(weekly_doc, "cabugao", "2025-13-45")
        with pytest.raises(InvalidDateError):
            resolve_availability(weekly_doc, "cabugao", "next monday")


class TestIsWithinAnySlot:
    """Tests for time-window containment."""

    @pytest.fixture
    def morning(self):
        return [TimeSlot(id="m", start_time="08:00", end_time="12:00")]

    def test_request_ending_on_slot_end_is_accepted(self, morning):
        """Test the slot end boundary is inclusive for the request end."""
        assert is_within_any_slot(morning, "11:30", 30) is True

    def test_request_past_slot_end_is_rejected(self, morning):
        """Test partial overlap with the slot end is rejected."""
        assert is_within_any_slot(morning, "11:45", 30) is False

    def test_request_before_slot_start_is_rejected(self, morning):
        """Test requests starting before the slot are rejected."""
        assert is_within_any_slot(morning, "07:45", 30) is False

    def test_request_at_slot_start_is_accepted(self, morning):
        """Test requests may start exactly at the slot start."""
        assert is_within_any_slot(morning, "08:00", 240) is True

    def test_any_slot_may_accept(self):
        """Test the request only needs to fit one slot."""
        slots = [
            TimeSlot(id="a", start_time="08:00", end_time="09:00"),
            TimeSlot(id="b", start_time="13:00", end_time="17:00"),
        ]
        assert is_within_any_slot(slots, "14:00", 60) is True
        assert is_within_any_slot(slots, "08:30", 60) is False

    def test_no_slots_rejects(self):
        """Test empty availability rejects every request."""
        assert is_within_any_slot([], "09:00", 30) is False

    def test_crossing_midnight_raises(self, morning):
        """Test windows past 24:00 are input errors."""
        with pytest.raises(InvalidTimeError):
            is_within_any_slot(morning, "23:45", 30)

    def test_malformed_time_raises(self, morning):
        """Test malformed times raise InvalidTimeError."""
        with pytest.raises(InvalidTimeError):
            is_within_any_slot(morning, "9am", 30)
        with pytest.raises(InvalidTimeError):
            is_within_any_slot(morning, "09:75", 30)

    def test_non_positive_duration_raises(self, morning):
        """Test a zero duration is rejected."""
        with pytest.raises(InvalidTimeError):
            is_within_any_slot(morning, "09:00", 0)


class TestOverrideIntrospection:
    """Tests for custom-date helpers."""

    def test_has_custom_schedule_for_date(self, weekly_doc):
        """Test detection of a per-date override."""
        doc = _with_override(weekly_doc, f"{MONDAY}_cabugao", {"unavailable": True})

        assert has_custom_schedule_for_date(doc, "Cabugao", MONDAY) is True
        assert has_custom_schedule_for_date(doc, "sanjuan", MONDAY) is False
        assert has_custom_schedule_for_date(None, "cabugao", MONDAY) is False

    def test_custom_dates_sorted_and_filtered(self, weekly_doc):
        """Test custom dates are sorted by date and filtered by branch."""
        doc = _with_override(weekly_doc, f"{TUESDAY}_cabugao", {"unavailable": True})
        doc = _with_override(doc, f"{MONDAY}_cabugao", {"unavailable": True})
        doc = _with_override(doc, f"{FRIDAY}_sanjuan", {"unavailable": True})

        dates = get_custom_scheduled_dates(doc)
        assert [d["date"] for d in dates] == [FRIDAY, MONDAY, TUESDAY]

        cabugao = get_custom_scheduled_dates(doc, "cabugao")
        assert [d["date"] for d in cabugao] == [MONDAY, TUESDAY]
        assert all(isinstance(d["schedule"], DateOverride) for d in cabugao)


class TestWorkingDay:
    """Tests for working-day summaries."""

    def test_full_day_unavailable_entry_blocks_day(self, weekly_doc):
        """Test a flat full-day entry means not working."""
        blocked = [UnavailableDate(id="u1", date=MONDAY, branch="Cabugao", time_slots=None)]

        assert is_provider_working_on_date(weekly_doc, [], "cabugao", MONDAY) is True
        assert is_provider_working_on_date(weekly_doc, blocked, "cabugao", MONDAY) is False

    def test_partial_entry_does_not_block_day(self, weekly_doc):
        """Test specific blocked times leave the day working."""
        partial = [UnavailableDate(id="u1", date=MONDAY, branch="cabugao", time_slots=["09:00"])]

        assert is_provider_working_on_date(weekly_doc, partial, "cabugao", MONDAY) is True

    def test_specific_schedule_entries_never_block(self, weekly_doc):
        """Test specific_schedule entries are not unavailability markers."""
        entry = [UnavailableDate(id="u1", date=MONDAY, branch="cabugao", time_slots=None, type="specific_schedule")]

        assert is_provider_working_on_date(weekly_doc, entry, "cabugao", MONDAY) is True

    def test_working_hours_summary(self, weekly_doc):
        """Test the summary lists enabled days only."""
        summary = working_hours_summary(weekly_doc)

        assert summary["cabugao"]["monday"] == "08:00 - 12:00"
        assert summary["sanjuan"] == {}
        assert working_hours_summary(None) is None

    def test_format_schedule_for_display(self, weekly_doc):
        """Test human-readable weekly hours."""
        text = format_schedule_for_display(weekly_doc, "cabugao")

        assert text.startswith("Monday: 8:00 AM - 12:00 PM")
        assert format_schedule_for_display(weekly_doc, "sanjuan") == "Not working at this branch"
        assert format_schedule_for_display(None, "cabugao") == "No schedule set"


class TestSpecificSchedule:
    """Tests for specific_schedule entries in the flat list."""

    @pytest.fixture
    def afternoon(self):
        return [UnavailableDate(
            id="u7", date=SUNDAY, branch="Cabugao", type="specific_schedule",
            start_time="13:00", end_time="15:00",
        )]

    def test_entry_opens_day_off(self, weekly_doc, afternoon):
        """Test a specific_schedule entry supplies hours on a day off."""
        slots = resolve_availability(weekly_doc, "cabugao", SUNDAY, unavailable_dates=afternoon)

        assert [(s.id, s.start_time, s.end_time) for s in slots] == [("u7", "13:00", "15:00")]
        assert specific_schedule_entry(afternoon, "cabugao", SUNDAY) is afternoon[0]

    def test_weekly_only_ignores_entry(self, weekly_doc, afternoon):
        """Test honor_overrides=False skips specific_schedule entries."""
        assert resolve_availability(
            weekly_doc, "cabugao", SUNDAY, honor_overrides=False, unavailable_dates=afternoon
        ) == []

    def test_keyed_override_wins(self, weekly_doc, afternoon):
        """Test a keyed override takes precedence over the flat entry."""
        closed = _with_override(weekly_doc, f"{SUNDAY}_cabugao", {"unavailable": True})
        custom = _with_override(weekly_doc, f"{SUNDAY}_cabugao", {
            "timeSlots": [{"id": "s1", "startTime": "09:00", "endTime": "10:00", "isAvailable": True}],
        })

        assert resolve_availability(closed, "cabugao", SUNDAY, unavailable_dates=afternoon) == []
        slots = resolve_availability(custom, "cabugao", SUNDAY, unavailable_dates=afternoon)
        assert [s.id for s in slots] == ["s1"]

    def test_empty_override_falls_through_to_entry(self, weekly_doc, afternoon):
        """Test an override with no slots defers to the flat entry."""
        doc = _with_override(weekly_doc, f"{SUNDAY}_cabugao", {"timeSlots": []})

        slots = resolve_availability(doc, "cabugao", SUNDAY, unavailable_dates=afternoon)
        assert [s.id for s in slots] == ["u7"]

    def test_entry_for_other_branch_ignored(self, weekly_doc, afternoon):
        """Test entries only apply to their own branch."""
        assert resolve_availability(weekly_doc, "sanjuan", SUNDAY, unavailable_dates=afternoon) == []

    def test_inverted_hours_ignored(self, weekly_doc):
        """Test an entry whose end is not after its start is skipped."""
        inverted = [UnavailableDate(
            id="u8", date=MONDAY, branch="cabugao", type="specific_schedule",
            start_time="15:00", end_time="13:00",
        )]

        assert specific_schedule_entry(inverted, "cabugao", MONDAY) is None
        slots = resolve_availability(weekly_doc, "cabugao", MONDAY, unavailable_dates=inverted)
        assert [s.id for s in slots] == ["default_monday"]

    def test_entry_makes_day_working(self, weekly_doc, afternoon):
        """Test a day off with a specific_schedule entry counts as working."""
        assert is_provider_working_on_date(weekly_doc, [], "cabugao", SUNDAY) is False
        assert is_provider_working_on_date(weekly_doc, afternoon, "cabugao", SUNDAY) is True
