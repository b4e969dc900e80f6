"""Period generation for rollout schedules.

Periods are always counted from the schedule start, so month-end dates do not
drift: 31/01 + 1 month = 28/02 (or 29/02), + 2 months = 31/03.
"""

import calendar
from datetime import date, timedelta
from enum import Enum


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


# frequency -> (days, months) per step
STEPS = {
    Frequency.DAILY: (1, 0),
    Frequency.WEEKLY: (7, 0),
    Frequency.MONTHLY: (0, 1),
    Frequency.QUARTERLY: (0, 3),
    Frequency.ANNUALLY: (0, 12),
}


def add_months(d: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def step(start: date, frequency: Frequency, n: int) -> date:
    """The n-th schedule date counted from start."""
    days, months = STEPS[frequency]
    if months:
        return add_months(start, months * n)
    return start + timedelta(days=days * n)


def generate_periods(start: date, end: date, frequency: Frequency) -> list[tuple[date, date]]:
    """Split [start, end] into consecutive periods. The last one is cut at end."""
    periods = []
    n = 0
    period_start = start
    while period_start < end:
        period_end = min(step(start, frequency, n + 1), end)
        periods.append((period_start, period_end))
        n += 1
        period_start = period_end
    return periods
