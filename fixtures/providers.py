"""Branch and provider profile fixtures."""
import copy
from dataclasses import dataclass

from scheduling import DEFAULT_WEEKLY_SCHEDULE, branch_key


@dataclass
class Branch:
    key: str
    name: str
    address: str


BRANCHES = [
    Branch(key="cabugao", name="Cabugao", address="Rizal Street, Cabugao, Ilocos Sur"),
    Branch(key="sanjuan", name="San Juan", address="National Highway, San Juan, Ilocos Sur"),
]


def _day(start: str, end: str, enabled: bool = True) -> dict:
    return {"enabled": enabled, "start": start, "end": end}


_OFF = _day("08:00", "17:00", enabled=False)

# Rows shaped like the clinic's profiles table
PROVIDER_PROFILES = [
    {
        "id": "doc-001",
        "full_name": "Dr. Maria Santos",
        "role": "doctor",
        "schedule": {
            **copy.deepcopy(DEFAULT_WEEKLY_SCHEDULE),
            "2025-09-16_cabugao": {
                "date": "2025-09-16",
                "branch": "cabugao",
                "unavailable": True,
                "timeSlots": [],
            },
            "version": 1,
        },
        "unavailable_dates": [
            {"id": "ud-001", "date": "2025-09-17", "branch": "sanjuan", "timeSlots": None},
        ],
    },
    {
        "id": "doc-002",
        "full_name": "Dr. Jose Reyes",
        "role": "doctor",
        "schedule": {
            "cabugao": {
                "monday": _day("09:00", "12:00"),
                "tuesday": _OFF,
                "wednesday": _day("09:00", "12:00"),
                "thursday": _OFF,
                "friday": _day("09:00", "12:00"),
                "saturday": _OFF,
                "sunday": _OFF,
            },
            "sanjuan": {
                "friday": _day("13:00", "17:00", enabled=False),
            },
            "2025-09-12_sanjuan": {
                "date": "2025-09-12",
                "branch": "sanjuan",
                "timeSlots": [
                    {"id": "slot-1", "startTime": "13:00", "endTime": "17:00", "isAvailable": True},
                ],
            },
            "version": 3,
        },
        "unavailable_dates": [
            {"id": "ud-002", "date": "2025-09-15", "branch": "cabugao", "timeSlots": ["10:00", "10:30"]},
            {
                "id": "ud-003",
                "date": "2025-09-18",
                "branch": "Cabugao",
                "type": "specific_schedule",
                "startTime": "13:00",
                "endTime": "15:00",
            },
        ],
    },
    {
        "id": "staff-001",
        "full_name": "Ana Cruz",
        "role": "staff",
        "schedule": {
            "cabugao": {
                day: _day("08:00", "12:00")
                for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
            },
        },
        "unavailable_dates": [],
    },
    {
        "id": "doc-003",
        "full_name": "Dr. Paolo Garcia",
        "role": "doctor",
        "schedule": None,
        "unavailable_dates": [],
    },
]


def find_branch(name: str) -> Branch | None:
    """Find a branch by key or display name."""
    wanted = branch_key(name)
    for branch in BRANCHES:
        if wanted in (branch.key, branch_key(branch.name)):
            return branch
    return None
