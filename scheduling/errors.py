"""Scheduling error taxonomy."""


class SchedulingError(Exception):
    """Base class for availability engine errors."""


class ProviderNotFoundError(SchedulingError):
    def __init__(self, provider_id: str):
        super().__init__(f"Provider not found: {provider_id}")
        self.provider_id = provider_id


class NoScheduleConfiguredError(SchedulingError):
    def __init__(self, provider_id: str):
        super().__init__("Provider has not configured their working schedule")
        self.provider_id = provider_id


class InvalidDateError(SchedulingError, ValueError):
    """Date string is not a valid YYYY-MM-DD calendar date."""


class InvalidTimeError(SchedulingError, ValueError):
    """Time string or time window is malformed."""


class StoreUnavailableError(SchedulingError):
    """The schedule store could not be read or written."""


class ScheduleVersionConflictError(StoreUnavailableError):
    """The stored schedule changed since it was loaded."""

    def __init__(self, provider_id: str, expected: int, actual: int | None):
        super().__init__(
            f"Schedule for {provider_id} changed (expected version {expected}, found {actual})"
        )
        self.provider_id = provider_id
        self.expected = expected
        self.actual = actual
