from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo

from memberdash.errors import InvalidParameter, require_positive
from memberdash.models import DayWindow


def local_midnight(now: datetime, tz: tzinfo) -> datetime:
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    local = now.astimezone(tz)
    return datetime.combine(local.date(), time.min, tzinfo=tz)


def _shift_days(midnight: datetime, days: int, tz: tzinfo) -> datetime:
    # Calendar arithmetic on the date keeps every boundary at local midnight.
    return datetime.combine(midnight.date() + timedelta(days=days), time.min, tzinfo=tz)


def day_windows(n: int, now: datetime, tz: tzinfo) -> list[DayWindow]:
    """Trailing ``n`` local days as half-open windows, oldest first.

    The last window starts at today's local midnight and ends at tomorrow's.
    """
    require_positive("days", n)
    today = local_midnight(now, tz)
    # One spare day at each end so boundaries still convert to UTC.
    if n + 1 > (today.date() - date.min).days or today.date() >= date.max - timedelta(days=1):
        raise InvalidParameter("days", n)
    return [
        DayWindow(start=_shift_days(today, -offset, tz), end=_shift_days(today, 1 - offset, tz))
        for offset in range(n - 1, -1, -1)
    ]


def today_window(now: datetime, tz: tzinfo) -> DayWindow:
    return day_windows(1, now, tz)[0]
