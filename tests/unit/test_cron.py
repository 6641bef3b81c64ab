"""Unit tests for cron expression parsing and matching"""

import pytest
from datetime import datetime
from card_billing.scheduler.cron import CronExpression


def test_midnight_daily():
    cron = CronExpression.parse("0 0 * * *")

    assert cron.matches(datetime(2024, 3, 11, 0, 0))
    assert not cron.matches(datetime(2024, 3, 11, 0, 1))
    assert not cron.matches(datetime(2024, 3, 11, 12, 0))


def test_every_minute():
    cron = CronExpression.parse("* * * * *")
    assert cron.matches(datetime(2024, 3, 11, 17, 43))


def test_lists_ranges_and_steps():
    cron = CronExpression.parse("*/15 8-10 1,15 * *")

    assert cron.minutes == frozenset({0, 15, 30, 45})
    assert cron.hours == frozenset({8, 9, 10})
    assert cron.days_of_month == frozenset({1, 15})


def test_day_of_week_sunday_is_zero():
    cron = CronExpression.parse("0 0 * * 0")

    assert cron.matches(datetime(2024, 3, 10, 0, 0))  # Sunday
    assert not cron.matches(datetime(2024, 3, 11, 0, 0))  # Monday


@pytest.mark.parametrize("expression", ["0 0 * *", "60 0 * * *", "0 24 * * *", "0 0 0 * *", "*/0 * * * *"])
def test_invalid_expressions(expression):
    with pytest.raises(ValueError):
        CronExpression.parse(expression)
