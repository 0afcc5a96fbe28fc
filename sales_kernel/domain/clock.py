"""
Injectable time source.

Services that stamp backups, snapshots or ``updated_at`` columns take a
``Clock``; engines that compare dates take ``now`` as an argument.  Only
``SystemClock`` reads the wall clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of the current UTC instant."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock pinned to a fixed instant for tests.

    The instant only moves through ``advance`` or ``set_time``; the default
    is the first day of 2025 at noon UTC.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(2025, 1, 1, 12, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        self._current += timedelta(days=days)
