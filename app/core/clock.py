"""Clock abstraction so expiry and overlap logic can run under injected time."""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Anything that can tell the current UTC time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Controllable clock for tests and replays."""

    def __init__(self, current: datetime) -> None:
        self._current = as_utc(current)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = as_utc(current)

    def advance(self, **delta) -> None:
        """Advance by timedelta keyword arguments, e.g. advance(hours=2)."""
        self._current += timedelta(**delta)


def as_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime.

    Naive values are taken to already be UTC. SQLite hands back naive
    datetimes for timezone-aware columns, so values read from storage go
    through here before being compared in Python.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


system_clock = SystemClock()


def utcnow() -> datetime:
    """Column default for creation/update timestamps."""
    return system_clock.now()
