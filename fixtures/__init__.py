from scheduling import InMemoryScheduleStore

from .providers import (
    Branch,
    BRANCHES,
    PROVIDER_PROFILES,
    find_branch,
)
from .bookings import APPOINTMENTS


def build_demo_store() -> InMemoryScheduleStore:
    """Fresh in-memory store seeded with the demo clinic."""
    return InMemoryScheduleStore(profiles=PROVIDER_PROFILES, appointments=APPOINTMENTS)


__all__ = [
    "Branch",
    "BRANCHES",
    "PROVIDER_PROFILES",
    "find_branch",
    "APPOINTMENTS",
    "build_demo_store",
]
