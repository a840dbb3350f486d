"""Date manipulation utilities"""

from datetime import date, datetime


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative when end is earlier)"""
    return (as_date(end) - as_date(start)).days


def same_month(a: date, b: date) -> bool:
    return (a.year, a.month) == (b.year, b.month)


def as_date(value: date | datetime) -> date:
    """Drop the time part so day arithmetic ignores hours"""
    return value.date() if isinstance(value, datetime) else value
