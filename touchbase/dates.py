"""Calendar helpers shared by the due-status engine.

Everything here works on whole calendar days. Datetimes are truncated to
their date before any arithmetic, so time-of-day never leaks into a count.
"""

import calendar
from collections import namedtuple
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

# Year-less lookups use a leap year so Feb 29 is a valid stored birthday.
_LEAP_YEAR = 2000

MONTH_NAMES = list(calendar.month_name)[1:]


class InvalidDateKind(ValueError):
    """Raised for a month/day pair that cannot name a calendar day."""


Occurrence = namedtuple("Occurrence", ["date", "days_until"])


def as_date(value, tz: str | None = None) -> date:
    """Calendar date of ``value``, seen from timezone ``tz`` when given.

    With a ``tz``, naive datetimes are taken to be UTC (how the database
    hands back stored timestamps) and converted before truncating.
    """
    if isinstance(value, datetime):
        if tz:
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            value = value.astimezone(ZoneInfo(tz))
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        if len(value) == 10:
            return date.fromisoformat(value)
        return as_date(datetime.fromisoformat(value), tz)
    raise TypeError(f"Expected a date, got {type(value).__name__}")


def days_between(a, b, tz: str | None = None) -> int:
    """Whole days from ``a`` to ``b``; negative when ``b`` is earlier."""
    return (as_date(b, tz) - as_date(a, tz)).days


def local_today(tz: str | None = None) -> date:
    if not tz:
        return date.today()
    return datetime.now(tz=ZoneInfo(tz)).date()


def days_in_month(month: int, year: int | None = None) -> int:
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidDateKind(f"Invalid month: {month!r}")
    return calendar.monthrange(year if year is not None else _LEAP_YEAR, month)[1]


def validate_month_day(month: int, day: int) -> tuple[int, int]:
    max_day = days_in_month(month)
    if not isinstance(day, int) or not 1 <= day <= max_day:
        raise InvalidDateKind(f"Invalid day {day!r} for month {month}")
    return month, day


def _on_year(month: int, day: int, year: int) -> date:
    # Feb 29 lands on Feb 28 in non-leap years
    return date(year, month, min(day, days_in_month(month, year)))


def next_occurrence(month: int, day: int, today) -> Occurrence:
    """Next date (today included) on which an annual month/day falls."""
    validate_month_day(month, day)
    today = as_date(today)
    candidate = _on_year(month, day, today.year)
    if candidate < today:
        candidate = _on_year(month, day, today.year + 1)
    return Occurrence(candidate, days_between(today, candidate))


def format_month_day(month: int, day: int) -> str:
    validate_month_day(month, day)
    return f"{MONTH_NAMES[month - 1]} {day}"
