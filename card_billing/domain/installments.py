"""Installment schedule generation for credit-card purchases"""

from datetime import date
from typing import List

from card_billing.domain.models import ScheduledInstallment
from card_billing.utils.date_utils import add_months


def first_due_date(purchase_date: date, cutoff_day: int, due_day: int) -> date:
    """
    Due date of the first installment of a purchase.

    Purchases made on or before the cut-off day enter the statement that closes
    this month and are due next month. Purchases after the cut-off enter next
    month's statement and are due the month after.

    Example (cut-off 25, due day 5):
        2024-07-20 -> closes 2024-07-25 -> due 2024-08-05
        2024-07-28 -> closes 2024-08-25 -> due 2024-09-05
    """
    months_ahead = 2 if purchase_date.day > cutoff_day else 1
    return add_months(purchase_date, months_ahead, day=due_day)


def generate_installment_plan(
    amount_cents: int,
    installment_count: int,
    purchase_date: date,
    cutoff_day: int,
    due_day: int,
) -> List[ScheduledInstallment]:
    """
    Split a credit purchase into monthly installments.

    Requirements:
    - Equal installments of amount_cents // installment_count
    - Last installment absorbs rounding remainder so the total is exact
    - One installment per month starting at first_due_date(), each month
      clamping due_day to its own length (29 -> 28 in non-leap February)

    Returns:
        Empty list when installment_count is not positive

    Example:
        $300.00 in 3, bought 2024-01-10 on a (25, 5) card
        -> 10000 due 2024-02-05, 10000 due 2024-03-05, 10000 due 2024-04-05
    """
    if installment_count <= 0:
        return []

    base_amount = amount_cents // installment_count
    remainder = amount_cents % installment_count
    first_due = first_due_date(purchase_date, cutoff_day, due_day)

    installments = []
    for i in range(installment_count):
        amount = base_amount + (remainder if i == installment_count - 1 else 0)
        installments.append(
            ScheduledInstallment(
                number=i + 1,
                due_date=add_months(first_due, i, day=due_day),
                amount_cents=amount,
            )
        )

    return installments
