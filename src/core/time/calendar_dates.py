from datetime import date, timedelta
from typing import Iterator


def parse_iso(value: str) -> date:
    return date.fromisoformat(value)


def add_days(value: str, days: int) -> str:
    return (parse_iso(value) + timedelta(days=days)).isoformat()


def iter_dates(start: str, end: str) -> Iterator[str]:
    """Yield YYYY-MM-DD strings from start to end inclusive. Empty if start > end."""
    current = parse_iso(start)
    last = parse_iso(end)
    while current <= last:
        yield current.isoformat()
        current += timedelta(days=1)
