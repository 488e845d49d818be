"""
Clock -- the kernel's only source of "now".

Services receive a Clock through their constructor.  Transaction timestamps
come from ``now()``; request and confirmation dates come from ``today()``.
Nothing else in the kernel reads the system time.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """
    Time source injected into services.

    Guarantees:
        - ``now()`` is timezone-aware.
        - ``today()`` is the calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC.  The default when a service gets no clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at 2024-01-01 12:00 UTC unless given another instant, so tests can
    assert exact transaction and confirmation dates.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Move forward one second and return the new time."""
        self.advance(1)
        return self._current
