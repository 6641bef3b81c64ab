"""Integration tests for statement payment"""

import uuid
import pytest
from datetime import date
from prometheus_client import REGISTRY
from sqlalchemy.orm import Session
from card_billing.domain.exceptions import (
    AmountMismatchError,
    InsufficientFundsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from card_billing.domain.models import PaymentDetails, StatementState, TransactionType
from card_billing.infrastructure.database.models import BankAccount, LedgerTransaction, Statement, Workspace
from card_billing.infrastructure.database.repositories import WorkspaceRepository
from card_billing.services.billing_cycle import close_card
from card_billing.services.settlement import StatementSettlement


@pytest.fixture
def closed_statement(db: Session, card, make_purchase) -> Statement:
    """Statement for January 2024 holding the first of three $100 installments"""
    make_purchase(30000, date(2024, 1, 5), installment_count=3)
    statement = close_card(db, card, date(2024, 1, 10))
    db.commit()
    return statement


def payment_for(workspace, amount_cents, bank_account=None):
    return PaymentDetails(
        workspace_id=workspace.id,
        amount_cents=amount_cents,
        payment_date=date(2024, 2, 3),
        recorded_by="ana@example.com",
        bank_account_id=bank_account.id if bank_account else None,
    )


def rejected_payments() -> float:
    return REGISTRY.get_sample_value("card_billing_statement_payments_total", {"outcome": "rejected"}) or 0.0


def test_pay_statement_from_bank_account(db: Session, workspace, bank_account, closed_statement):
    """Test full payment updates statement, installments, balances and monthly totals"""
    statement = StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000, bank_account))
    db.commit()

    assert statement.state == StatementState.PAID
    assert statement.transaction_id is not None

    tx = db.get(LedgerTransaction, statement.transaction_id)
    assert tx.type == TransactionType.EXPENSE
    assert tx.amount_cents == 10000
    assert tx.bank_account_id == bank_account.id
    assert tx.description == "Card payment 01/2024 - 4321"

    for inst in statement.installments:
        assert inst.paid
        assert inst.transaction_id == tx.id
        assert inst.purchase.paid_installments == 1

    assert db.get(BankAccount, bank_account.id).balance_cents == 990000
    assert db.get(Workspace, workspace.id).balance_cents == -10000

    summary = WorkspaceRepository(db).get_monthly_summary(workspace.id, 2024, 2)
    assert summary.expenses_cents == 10000


def test_pay_statement_without_bank_account(db: Session, workspace, closed_statement):
    statement = StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000))
    db.commit()

    assert statement.state == StatementState.PAID
    assert db.get(LedgerTransaction, statement.transaction_id).bank_account_id is None


def test_amount_mismatch_rejected(db: Session, workspace, bank_account, closed_statement):
    """Partial payments are not accepted"""
    with pytest.raises(AmountMismatchError):
        StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 9999, bank_account))
    db.rollback()

    assert db.get(Statement, closed_statement.id).state == StatementState.CLOSED
    assert db.query(LedgerTransaction).count() == 0
    assert db.get(BankAccount, bank_account.id).balance_cents == 1_000_000


def test_already_paid_rejected(db: Session, workspace, bank_account, closed_statement):
    """Paying twice is rejected and leaves balances and totals untouched"""
    StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000, bank_account))
    db.commit()

    with pytest.raises(InvalidStateError):
        StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000, bank_account))
    db.rollback()

    assert db.query(LedgerTransaction).count() == 1
    assert db.get(BankAccount, bank_account.id).balance_cents == 990000
    assert db.get(Workspace, workspace.id).balance_cents == -10000
    assert WorkspaceRepository(db).get_monthly_summary(workspace.id, 2024, 2).expenses_cents == 10000
    assert all(inst.purchase.paid_installments == 1 for inst in db.get(Statement, closed_statement.id).installments)


@pytest.mark.parametrize("state", [StatementState.OPEN, StatementState.PARTIALLY_PAID])
def test_non_closed_states_rejected(db: Session, workspace, closed_statement, state):
    closed_statement.state = state
    db.commit()

    with pytest.raises(InvalidStateError):
        StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000))


def test_insufficient_funds_rejected(db: Session, workspace, bank_account, closed_statement):
    bank_account.balance_cents = 5000
    db.commit()

    with pytest.raises(InsufficientFundsError):
        StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000, bank_account))
    db.rollback()

    assert db.get(Statement, closed_statement.id).state == StatementState.CLOSED


def test_other_workspace_rejected(db: Session, closed_statement):
    other = Workspace(name="Office", balance_cents=0)
    db.add(other)
    db.commit()

    with pytest.raises(ValidationError):
        StatementSettlement(db).pay_statement(closed_statement.id, payment_for(other, 10000))


def test_bank_account_of_other_workspace_rejected(db: Session, workspace, closed_statement):
    other = Workspace(name="Office", balance_cents=0)
    db.add(other)
    db.flush()
    foreign_account = BankAccount(workspace_id=other.id, name="Savings", institution="BBVA", balance_cents=500000)
    db.add(foreign_account)
    db.commit()

    with pytest.raises(ValidationError):
        StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000, foreign_account))


def test_unknown_statement(db: Session, workspace):
    with pytest.raises(NotFoundError):
        StatementSettlement(db).pay_statement(uuid.uuid4(), payment_for(workspace, 10000))


def test_purchase_counter_cannot_exceed_installment_count(db: Session, workspace, closed_statement):
    """A purchase already marked fully paid blocks the payment"""
    purchase = closed_statement.installments[0].purchase
    purchase.paid_installments = purchase.installment_count
    db.commit()

    with pytest.raises(InvalidStateError):
        StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000))
    db.rollback()

    assert db.get(Statement, closed_statement.id).state == StatementState.CLOSED
    assert db.query(LedgerTransaction).count() == 0


def test_installment_cap_counted_as_rejected_payment(db: Session, workspace, closed_statement):
    """Failures raised while settling are counted like validation failures"""
    purchase = closed_statement.installments[0].purchase
    purchase.paid_installments = purchase.installment_count
    db.commit()
    before = rejected_payments()

    with pytest.raises(InvalidStateError):
        StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000))
    db.rollback()

    assert rejected_payments() == before + 1


def test_amount_mismatch_counted_as_rejected_payment(db: Session, workspace, closed_statement):
    before = rejected_payments()

    with pytest.raises(AmountMismatchError):
        StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 1))

    assert rejected_payments() == before + 1


def test_already_paid_installment_skipped(db: Session, workspace, closed_statement):
    """Installments already marked paid are left untouched"""
    inst = closed_statement.installments[0]
    inst.paid = True
    db.commit()

    statement = StatementSettlement(db).pay_statement(closed_statement.id, payment_for(workspace, 10000))
    db.commit()

    assert statement.state == StatementState.PAID
    assert statement.installments[0].purchase.paid_installments == 0
    assert statement.installments[0].transaction_id is None
