"""Clocks and lazily evaluated "now" providers for datetime fields.

Datetime defaults and bounds are zero-argument callables evaluated at
validation time. Routing them through a Clock lets tests pin time with
FixedClock.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime: ...


@dataclass(frozen=True)
class SystemClock:
    """Wall clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FixedClock:
    """A clock that always returns the same instant."""

    at: datetime

    def now(self) -> datetime:
        return self.at


@dataclass(frozen=True)
class Now:
    """Provider returning the clock's current time shifted by offset.

    Examples:
        DateTimeFieldType(default=Now())                       # created at
        DateTimeFieldType(min_value=Now())                     # not in the past
        DateTimeFieldType(max_value=Now(timedelta(days=30)))   # within 30 days
    """

    offset: timedelta = timedelta(0)
    clock: Clock = field(default_factory=SystemClock)

    def __call__(self) -> datetime:
        return self.clock.now() + self.offset
