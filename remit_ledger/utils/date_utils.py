"""Date manipulation utilities"""

from datetime import date, datetime, time, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """First and last instant of a UTC calendar day"""
    return (
        datetime.combine(day, time.min, tzinfo=timezone.utc),
        datetime.combine(day, time.max, tzinfo=timezone.utc),
    )


def range_bounds(start: Optional[date], end: Optional[date]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Inclusive datetime bounds for an optional [start, end] date filter"""
    lower = day_bounds(start)[0] if start else None
    upper = day_bounds(end)[1] if end else None
    return lower, upper


def month_stamp(moment: datetime) -> str:
    """YYYYMM stamp used in receipt numbers"""
    return f"{moment.year}{moment.month:02d}"
