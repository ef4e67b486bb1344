from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import InvalidDate
from .models import TimeWindow, datetime_to_ms

_DAY_MS = 24 * 3600 * 1000


def _utc_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def yesterday_window(now: Optional[datetime] = None) -> TimeWindow:
    """The previous UTC calendar day, ending at 23:59:59.999."""
    current = _utc_now(now)
    today_start = datetime_to_ms(datetime(current.year, current.month, current.day, tzinfo=timezone.utc))
    return TimeWindow(from_ms=today_start - _DAY_MS, to_ms=today_start - 1, kind="yesterday")


def ytd_window(now: Optional[datetime] = None) -> TimeWindow:
    """January 1st 00:00 UTC of the current year up to ``now``."""
    current = _utc_now(now)
    start = datetime_to_ms(datetime(current.year, 1, 1, tzinfo=timezone.utc))
    return TimeWindow(from_ms=start, to_ms=datetime_to_ms(current), kind="ytd")


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


def day_window(date_str: str) -> TimeWindow:
    """Parse ``YYYY-MM-DD`` into the full UTC day it names."""
    parts = [_to_int(part) for part in str(date_str or "").split("-")[:3]]
    while len(parts) < 3:
        parts.append(0)
    year, month, day = parts
    if not year or not month or not day:
        raise InvalidDate(f"invalid date: {date_str!r}")
    try:
        start = datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError as exc:
        raise InvalidDate(f"invalid date: {date_str!r}") from exc
    start_ms = datetime_to_ms(start)
    end_ms = datetime_to_ms(start + timedelta(days=1)) - 1
    return TimeWindow(from_ms=start_ms, to_ms=end_ms, kind=f"date:{start.date().isoformat()}")


def today_string(now: Optional[datetime] = None) -> str:
    return _utc_now(now).date().isoformat()


def resolve_window(window: Optional[str] = None, date: Optional[str] = None, now: Optional[datetime] = None) -> TimeWindow:
    """Turn request parameters into a concrete window.

    A ``date`` always wins. Without one, ``ytd`` and ``yesterday`` select
    their rolling windows and anything unspecified falls back to the current
    UTC day.
    """
    if date:
        return day_window(date)
    mode = (window or "").strip().lower()
    if mode == "ytd":
        return ytd_window(now)
    if mode == "yesterday":
        return yesterday_window(now)
    if mode in ("", "date", "today"):
        return day_window(today_string(now))
    raise InvalidDate(f"unknown window: {window!r}")
