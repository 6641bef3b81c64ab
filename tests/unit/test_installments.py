"""Unit tests for installment plan generation"""

import pytest
from datetime import date
from card_billing.domain.installments import first_due_date, generate_installment_plan


def test_generate_installment_plan_equal_split():
    """Test plan with evenly divisible amount"""
    amount = 30000  # $300
    installments = generate_installment_plan(amount, 3, date(2024, 1, 10), cutoff_day=25, due_day=5)

    assert len(installments) == 3
    assert all(inst.amount_cents == 10000 for inst in installments)  # Each $100
    assert sum(inst.amount_cents for inst in installments) == amount


def test_generate_installment_plan_rounding():
    """Test last installment absorbs remainder"""
    amount = 10000  # $100.00 in 3
    installments = generate_installment_plan(amount, 3, date(2024, 1, 10), cutoff_day=25, due_day=5)

    assert [inst.amount_cents for inst in installments] == [3333, 3333, 3334]
    assert sum(inst.amount_cents for inst in installments) == amount


def test_generate_installment_plan_numbers_are_sequential():
    installments = generate_installment_plan(12000, 12, date(2024, 3, 1), cutoff_day=25, due_day=5)
    assert [inst.number for inst in installments] == list(range(1, 13))


def test_purchase_before_cutoff_due_next_month():
    """Purchase on or before the cut-off enters this month's statement"""
    installments = generate_installment_plan(30000, 3, date(2024, 1, 10), cutoff_day=25, due_day=5)

    assert [inst.due_date for inst in installments] == [
        date(2024, 2, 5),
        date(2024, 3, 5),
        date(2024, 4, 5),
    ]


def test_purchase_on_cutoff_day_counts_as_before():
    assert first_due_date(date(2024, 7, 25), cutoff_day=25, due_day=5) == date(2024, 8, 5)


def test_purchase_after_cutoff_due_in_two_months():
    """Purchase after the cut-off slides to next month's statement"""
    assert first_due_date(date(2024, 7, 28), cutoff_day=25, due_day=5) == date(2024, 9, 5)


def test_due_dates_roll_over_year_end():
    installments = generate_installment_plan(20000, 2, date(2024, 11, 30), cutoff_day=25, due_day=5)
    assert [inst.due_date for inst in installments] == [date(2025, 1, 5), date(2025, 2, 5)]


def test_due_day_clamped_in_short_february():
    """Due day 29 becomes Feb 28 in a non-leap year, then returns to 29"""
    installments = generate_installment_plan(30000, 3, date(2023, 1, 10), cutoff_day=20, due_day=29)

    assert [inst.due_date for inst in installments] == [
        date(2023, 2, 28),
        date(2023, 3, 29),
        date(2023, 4, 29),
    ]


def test_due_day_29_kept_in_leap_february():
    installments = generate_installment_plan(10000, 1, date(2024, 1, 10), cutoff_day=20, due_day=29)
    assert installments[0].due_date == date(2024, 2, 29)


@pytest.mark.parametrize("count", [0, -1])
def test_generate_installment_plan_non_positive_count(count):
    """Test no installments are produced without a positive count"""
    assert generate_installment_plan(10000, count, date(2024, 1, 10), cutoff_day=25, due_day=5) == []


def test_single_installment_carries_full_amount():
    installments = generate_installment_plan(12345, 1, date(2024, 1, 10), cutoff_day=25, due_day=5)

    assert len(installments) == 1
    assert installments[0].amount_cents == 12345
