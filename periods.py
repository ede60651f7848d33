import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class MonthWindow:
    """Closed interval of whole-second epoch timestamps."""

    start: int
    end: int

    def contains(self, timestamp: int) -> bool:
        return self.start <= timestamp <= self.end


def _first_instant(year: int, month: int, timezone: Optional[str]) -> datetime:
    # Naive datetimes are interpreted in the process's local zone by timestamp().
    tzinfo = ZoneInfo(timezone) if timezone else None
    return datetime(year, month, 1, tzinfo=tzinfo)


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def month_window(
    year: int, month: int, timezone: Optional[str] = None
) -> MonthWindow:
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12")
    start = _first_instant(year, month, timezone)
    next_year, next_month = _next_month(year, month)
    end = _first_instant(next_year, next_month, timezone) - timedelta(milliseconds=1)
    return MonthWindow(math.floor(start.timestamp()), math.floor(end.timestamp()))


def current_month_window(
    now: Optional[datetime] = None, timezone: Optional[str] = None
) -> MonthWindow:
    if now is None:
        now = datetime.now(ZoneInfo(timezone)) if timezone else datetime.now()
    elif now.tzinfo is not None:
        # Month boundaries are taken in the window's zone, not in now's zone.
        now = now.astimezone(ZoneInfo(timezone)) if timezone else now.astimezone()
    return month_window(now.year, now.month, timezone)
