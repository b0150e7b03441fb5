"""
Calendar helpers - calendar-day and working-day date arithmetic.
"""
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

DEFAULT_WORKING_DAYS = (0, 1, 2, 3, 4)  # Monday..Friday


def add_days(start: date, days: int) -> date:
    """Add calendar days."""
    return start + timedelta(days=int(days))


def diff_days(first: date, second: date) -> int:
    """Inclusive day count between two dates, order independent."""
    return abs((second - first).days) + 1


def is_working_day(
    day: date,
    working_days: Sequence[int] = DEFAULT_WORKING_DAYS,
    holidays: Optional[Iterable[date]] = None,
) -> bool:
    """True when day is a working weekday and not a holiday."""
    return day.weekday() in working_days and day not in set(holidays or ())


def add_working_days(
    start: date,
    duration: int,
    working_days: Sequence[int] = DEFAULT_WORKING_DAYS,
    holidays: Optional[Iterable[date]] = None,
) -> date:
    """
    Return the last working day of a task lasting `duration` working days.

    A start falling on a non-working day is pushed to the next working day.
    A one-day task starts and ends on the same day.

    Args:
        start: Planned start
        duration: Working days of work
        working_days: Allowed weekdays (0 = Monday)
        holidays: Specific non-working dates

    Returns:
        Date of the last working day
    """
    working_days = tuple(d for d in working_days if 0 <= d <= 6)
    if not working_days:
        # No valid working weekday: fall back to plain calendar days
        return add_days(start, max(0, duration - 1))

    holiday_set = set(holidays or ())
    current = start
    while not is_working_day(current, working_days, holiday_set):
        current += timedelta(days=1)

    remaining = max(0, int(duration) - 1)
    while remaining > 0:
        current += timedelta(days=1)
        if is_working_day(current, working_days, holiday_set):
            remaining -= 1
    return current
