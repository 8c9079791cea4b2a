from datetime import datetime, timedelta, tzinfo
from typing import Optional

from src.core.time.clock import Clock

class FrozenClock(Clock):
    """
    Test clock.
    Time only moves when advance() or set() is called.
    """
    def __init__(self, start_time: datetime, tz: Optional[tzinfo] = None):
        if start_time.tzinfo is None:
            raise ValueError("FrozenClock requires timezone-aware datetime")
        super().__init__(tz or start_time.tzinfo)
        self._current_time = start_time

    def now_datetime(self) -> datetime:
        return self._current_time

    def advance(self, delta: timedelta):
        self._current_time += delta

    def set(self, moment: datetime):
        if moment.tzinfo is None:
            raise ValueError("FrozenClock requires timezone-aware datetime")
        self._current_time = moment
