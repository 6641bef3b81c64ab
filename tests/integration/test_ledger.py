"""Integration tests for transaction recording and balance ledgers"""

import pytest
from datetime import date
from sqlalchemy.orm import Session
from card_billing.domain.exceptions import ValidationError
from card_billing.domain.models import TransactionDetails, TransactionType
from card_billing.infrastructure.database.repositories import WorkspaceRepository
from card_billing.services.ledger import TransactionLedger


def details(workspace, type, amount_cents, bank_account=None, when=date(2024, 5, 15)):
    return TransactionDetails(
        workspace_id=workspace.id,
        type=type,
        amount_cents=amount_cents,
        transaction_date=when,
        description="Salary",
        recorded_by="ana@example.com",
        bank_account_id=bank_account.id if bank_account else None,
    )


def test_income_credits_account_workspace_and_month(db: Session, workspace, bank_account):
    TransactionLedger(db).create_transaction(details(workspace, TransactionType.INCOME, 250000, bank_account))
    db.commit()

    assert bank_account.balance_cents == 1_250_000
    assert workspace.balance_cents == 250000
    summary = WorkspaceRepository(db).get_monthly_summary(workspace.id, 2024, 5)
    assert summary.income_cents == 250000
    assert summary.expenses_cents == 0


def test_monthly_summary_accumulates(db: Session, workspace):
    ledger = TransactionLedger(db)
    ledger.create_transaction(details(workspace, TransactionType.EXPENSE, 1000))
    ledger.create_transaction(details(workspace, TransactionType.EXPENSE, 2500))
    db.commit()

    summary = WorkspaceRepository(db).get_monthly_summary(workspace.id, 2024, 5)
    assert summary.expenses_cents == 3500


@pytest.mark.parametrize("amount", [0, -100])
def test_non_positive_amount_rejected(db: Session, workspace, amount):
    with pytest.raises(ValidationError):
        TransactionLedger(db).create_transaction(details(workspace, TransactionType.EXPENSE, amount))
