"""Installment due-date stepping rules."""

import calendar
from datetime import date

from dateutil.relativedelta import relativedelta

QUINCENA_DAY = 15


def last_day_of_month(day: date) -> date:
    """Return the last calendar day of day's month."""
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def next_quincenal_date(day: date) -> date:
    """Advance one quincenal step.

    Before the 15th goes to the 15th; before month end goes to month end;
    otherwise goes to the 15th of the next month.
    """
    month_end = last_day_of_month(day)
    if day.day < QUINCENA_DAY:
        return day.replace(day=QUINCENA_DAY)
    if day < month_end:
        return month_end
    return (day.replace(day=1) + relativedelta(months=1)).replace(day=QUINCENA_DAY)


def quincenal_date(start: date, steps: int) -> date:
    """Apply next_quincenal_date steps times from start."""
    result = start
    for _ in range(steps):
        result = next_quincenal_date(result)
    return result


def month_end_after(start: date, months: int) -> date:
    """Return the last day of the month that is months after start's month."""
    return last_day_of_month(start.replace(day=1) + relativedelta(months=months))
