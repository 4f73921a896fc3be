"""Date manipulation utilities"""

from datetime import date, timedelta


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative when end precedes start)"""
    return (end - start).days


def day_before(d: date) -> date:
    return d - timedelta(days=1)


def month_start(d: date) -> date:
    """First day of the calendar month containing d"""
    return d.replace(day=1)


def months_between(start: date, end: date, days_per_month: float = 30.44) -> float:
    """Fractional months between two dates using an average month length"""
    return days_between(start, end) / days_per_month
