from datetime import datetime, timezone
from src.core.time.clock import Clock

class SystemClock(Clock):
    """
    Production clock backed by the system time.
    """
    def now_datetime(self) -> datetime:
        return datetime.now(timezone.utc)
