"""Time sources for the dashboard.

The aggregator never reads the wall clock directly; it asks a ``Clock``.
"""

from datetime import datetime
from typing import Protocol

from src.models.common import local_now


class Clock(Protocol):
    def now(self) -> datetime:
        """Current naive local datetime."""
        ...


class SystemClock:
    """Wall-clock time in a fixed IANA zone."""

    def __init__(self, tz_name: str) -> None:
        self._tz_name = tz_name

    def now(self) -> datetime:
        return local_now(self._tz_name)


class FixedClock:
    """Always returns the same instant. Used by tests and backfills."""

    def __init__(self, moment: datetime) -> None:
        self._moment = moment.replace(tzinfo=None)

    def now(self) -> datetime:
        return self._moment
