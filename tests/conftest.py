"""Pytest configuration and fixtures."""
import pytest

from fixtures import build_demo_store
from scheduling import InMemoryScheduleStore, ScheduleDocument

MONDAY = "2025-09-15"
TUESDAY = "2025-09-16"
WEDNESDAY = "2025-09-17"
FRIDAY = "2025-09-12"
SUNDAY = "2025-09-14"


@pytest.fixture
def store() -> InMemoryScheduleStore:
    """Fresh demo clinic store."""
    return build_demo_store()


@pytest.fixture
def weekly_doc() -> ScheduleDocument:
    """Cabugao mornings Monday to Friday, San Juan closed on Fridays."""
    return ScheduleDocument.from_dict({
        "cabugao": {
            day: {"enabled": True, "start": "08:00", "end": "12:00"}
            for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
        },
        "sanjuan": {
            "friday": {"enabled": False, "start": "13:00", "end": "17:00"},
        },
    })
