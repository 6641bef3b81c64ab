"""Date manipulation utilities for billing cycles"""

import calendar
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

MAX_CYCLE_DAY = 29


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(value: date, months: int, day: Optional[int] = None) -> date:
    """
    Shift a date by a number of months.

    The day of month is `day` when given, otherwise the day of `value`, and is
    clamped to the length of the target month (Jan 31 + 1 month -> Feb 28/29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    target_day = value.day if day is None else day
    return date(year, month, min(target_day, days_in_month(year, month)))


def year_month_of(value: date) -> Tuple[int, int]:
    return value.year, value.month


def due_date_for(closing_date: date, due_day: int) -> date:
    """Payment due date of the statement closed on `closing_date`"""
    return add_months(closing_date, 1, day=due_day)


def closing_date_in_month(year: int, month: int, cutoff_day: int) -> date:
    return date(year, month, min(cutoff_day, days_in_month(year, month)))


def cutoff_days_closing_on(value: date) -> List[int]:
    """
    Cut-off days whose statement closes on `value`.

    On the last day of a month every cut-off day beyond the month length also
    closes (a day-29 card closes on Feb 28 in non-leap years).
    """
    if value.day == days_in_month(value.year, value.month):
        return list(range(value.day, max(value.day, MAX_CYCLE_DAY) + 1))
    return [value.day]


def previous_closing_date(reference: date, cutoff_day: int) -> date:
    """Most recent closing date strictly before the current cycle around `reference`"""
    this_month = closing_date_in_month(reference.year, reference.month, cutoff_day)
    if reference > this_month:
        return this_month
    last_month = add_months(reference, -1)
    return closing_date_in_month(last_month.year, last_month.month, cutoff_day)


def next_closing_date(reference: date, cutoff_day: int) -> date:
    """Closing date that ends the cycle containing `reference`"""
    this_month = closing_date_in_month(reference.year, reference.month, cutoff_day)
    if reference > this_month:
        next_month = add_months(reference, 1)
        return closing_date_in_month(next_month.year, next_month.month, cutoff_day)
    return this_month


def today_in(timezone_name: str) -> date:
    return datetime.now(ZoneInfo(timezone_name)).date()


def yesterday_in(timezone_name: str) -> date:
    """Day being closed by the nightly run: the previous calendar day in `timezone_name`"""
    return today_in(timezone_name) - timedelta(days=1)
