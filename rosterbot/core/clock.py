from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

DATE_FMT = "%d.%m.%Y"  # date format used in the first sheet column


class Clock:
    """Injectable, testable clock bound to a timezone."""

    def __init__(self, tz: ZoneInfo):
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def today_str(self) -> str:
        return format_date(self.today())

    def tomorrow_str(self) -> str:
        return format_date(self.today() + timedelta(days=1))


def format_date(d: date) -> str:
    return d.strftime(DATE_FMT)


def parse_date(date_str: str) -> date | None:
    try:
        return datetime.strptime((date_str or "").strip(), DATE_FMT).date()
    except ValueError:
        return None


def parse_event_hour(time_str: str | None) -> int | None:
    """'22:00' -> 22; anything unparsable -> None."""
    if not isinstance(time_str, str) or ":" not in time_str:
        return None
    hour_str = time_str.split(":", 1)[0].strip()
    if not hour_str.isdigit():
        return None
    hour = int(hour_str)
    return hour if 0 <= hour <= 23 else None


def event_start(date_str: str, time_str: str, tz: ZoneInfo) -> datetime | None:
    d = parse_date(date_str)
    hour = parse_event_hour(time_str)
    if d is None or hour is None:
        return None
    minute_str = time_str.split(":", 1)[1].strip()[:2]
    minute = int(minute_str) if minute_str.isdigit() and int(minute_str) < 60 else 0
    return datetime(d.year, d.month, d.day, hour, minute, tzinfo=tz)


def greeting_by_hour(hour: int) -> str:
    if 5 <= hour <= 11:
        return "Доброе утро"
    if 12 <= hour <= 17:
        return "Добрый день"
    if 18 <= hour <= 23:
        return "Добрый вечер"
    return "Здравствуй"
