"""Clock implementations."""

import threading
from datetime import datetime, timedelta, timezone

from vestibule.interfaces.clock import Clock

# pylint: disable=too-few-public-methods


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock(Clock):
    """A clock that only moves when told to.

    Lets tests expire sessions and tokens without sleeping.

    Note:
        Not suitable for production use; primarily for testing and demos.
    """

    def __init__(self, start: datetime | None = None) -> None:
        start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        if start.tzinfo is None:
            raise ValueError("start must be timezone-aware")
        self._now = start.astimezone(timezone.utc)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward by ``delta``.

        Raises:
            ValueError: If ``delta`` is negative.
        """
        if delta < timedelta(0):
            raise ValueError("cannot move a clock backwards")
        with self._lock:
            self._now += delta
