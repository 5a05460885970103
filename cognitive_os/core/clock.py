"""Current-time source shared by the stores and the session composer."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Return the local wall-clock time as a timezone-aware datetime."""
    return datetime.now().astimezone()


def start_of_day(moment: datetime) -> datetime:
    """Midnight at the start of the calendar day containing ``moment``."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def as_aware(moment: datetime) -> datetime:
    """
    Attach the local timezone to a naive datetime.

    Aware values are returned unchanged, so readings from injected clocks and
    timestamps loaded from older documents can be compared with each other.
    """
    if moment.tzinfo is not None and moment.utcoffset() is not None:
        return moment
    return moment.astimezone()
