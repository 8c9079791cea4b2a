from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ms(moment: datetime) -> int:
    """Exact integer milliseconds since the Unix epoch for an aware datetime."""
    return (moment - EPOCH) // timedelta(milliseconds=1)


def resolve_timezone(name: Optional[str]) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class Clock(ABC):
    """
    Abstract source of the current instant and calendar date.
    All "now" and "today" reads in the ledger go through a Clock,
    so tests can pin time without touching production code paths.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self._tz = tz or timezone.utc

    @property
    def tz(self) -> tzinfo:
        return self._tz

    @abstractmethod
    def now_datetime(self) -> datetime:
        pass

    def now(self) -> int:
        """Current instant in milliseconds since the Unix epoch."""
        return to_epoch_ms(self.now_datetime())

    def today(self) -> date:
        return self.now_datetime().astimezone(self._tz).date()

    def start_of_day_ms(self, day: date) -> int:
        """Epoch milliseconds of local midnight at the start of `day`."""
        midnight = datetime.combine(day, time.min, tzinfo=self._tz)
        return to_epoch_ms(midnight)

    def local_date_of(self, timestamp_ms: int) -> date:
        moment = EPOCH + timedelta(milliseconds=timestamp_ms)
        return moment.astimezone(self._tz).date()

    def end_of_day_cutoff_ms(self, day: date) -> int:
        """First millisecond that no longer belongs to `day` (local midnight of the next day)."""
        return self.start_of_day_ms(day + timedelta(days=1))
