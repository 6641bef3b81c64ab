"""Statement settlement: pays a closed statement in full and cascades paid state"""

import logging
import uuid
from typing import Tuple

from sqlalchemy.orm import Session

from card_billing.domain.exceptions import (
    AmountMismatchError,
    DomainException,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from card_billing.domain.models import PaymentDetails, StatementState, TransactionDetails, TransactionType
from card_billing.infrastructure.database.models import CreditPurchase, LedgerTransaction, Statement
from card_billing.infrastructure.database.repositories import StatementRepository
from card_billing.infrastructure.observability.metrics import statement_payments_counter
from card_billing.services.ledger import BankAccountLedger, TransactionLedger

logger = logging.getLogger(__name__)


def _mark_installment_paid(purchase: CreditPurchase) -> None:
    if purchase.paid_installments >= purchase.installment_count:
        raise InvalidStateError(
            f"Credit purchase {purchase.id} already has all {purchase.installment_count} installments paid"
        )
    purchase.paid_installments += 1


class StatementSettlement:
    """
    Records the payment of a statement.

    Settlement is all-or-nothing: the amount must equal the statement total.
    Every check runs before the first write, and all writes share the
    caller's session so a failure leaves nothing behind once rolled back.
    """

    def __init__(self, db: Session):
        self.db = db
        self.statements = StatementRepository(db)
        self.ledger = TransactionLedger(db)

    def _validate(self, statement_id: uuid.UUID, payment: PaymentDetails) -> Statement:
        statement = self.statements.get_statement(statement_id)
        if statement is None:
            raise NotFoundError(f"Statement {statement_id} not found")

        if statement.state == StatementState.PAID:
            raise InvalidStateError(f"Statement {statement_id} is already paid")
        if statement.state == StatementState.OPEN:
            raise InvalidStateError(f"Statement {statement_id} is not closed yet")
        if statement.state != StatementState.CLOSED:
            raise InvalidStateError(f"Statement {statement_id} cannot be paid in state {statement.state.value}")

        if statement.card.workspace_id != payment.workspace_id:
            raise ValidationError("Statement does not belong to the workspace")

        if payment.amount_cents != statement.total_amount_cents:
            raise AmountMismatchError(statement.total_amount_cents, payment.amount_cents)

        if payment.bank_account_id is not None:
            accounts = BankAccountLedger(self.db)
            account = accounts.get_account(payment.bank_account_id)
            if account.workspace_id != payment.workspace_id:
                raise ValidationError("Bank account does not belong to the workspace")
            accounts.ensure_can_debit(account, payment.amount_cents)

        return statement

    def pay_statement(self, statement_id: uuid.UUID, payment: PaymentDetails) -> Statement:
        """
        Pay a CLOSED statement.

        Flow:
        1. Validate state, workspace, exact amount and source account
        2. Record an EXPENSE transaction (bank account, workspace balance, monthly totals)
        3. Mark every attached installment paid and bump its purchase counter
        4. Move the statement to PAID

        Raises:
            NotFoundError: Unknown statement or bank account
            InvalidStateError: Statement not CLOSED, or a purchase would exceed its installment count
            AmountMismatchError: Amount differs from the statement total
            ValidationError: Statement or account belongs to another workspace
            InsufficientFundsError: Bank account cannot cover the payment
        """
        logger.info(
            "Processing statement payment",
            extra={"statement_id": str(statement_id), "amount_cents": payment.amount_cents},
        )

        try:
            statement = self._validate(statement_id, payment)
            transaction, installment_count = self._settle(statement, payment)
        except DomainException:
            statement_payments_counter.labels(outcome="rejected").inc()
            raise

        statement_payments_counter.labels(outcome="paid").inc()
        logger.info(
            "Statement paid",
            extra={
                "statement_id": str(statement.id),
                "transaction_id": str(transaction.id),
                "total_amount_cents": statement.total_amount_cents,
                "installment_count": installment_count,
            },
        )
        return statement

    def _settle(self, statement: Statement, payment: PaymentDetails) -> Tuple[LedgerTransaction, int]:
        card = statement.card
        transaction = self.ledger.create_transaction(
            TransactionDetails(
                workspace_id=payment.workspace_id,
                type=TransactionType.EXPENSE,
                amount_cents=payment.amount_cents,
                transaction_date=payment.payment_date,
                description=f"Card payment {statement.month:02d}/{statement.year} - {card.last_four_digits}",
                recorded_by=payment.recorded_by,
                bank_account_id=payment.bank_account_id,
            )
        )

        installments = list(statement.installments)
        if not installments:
            logger.warning("Statement has no installments attached", extra={"statement_id": str(statement.id)})

        for installment in installments:
            if installment.paid:
                logger.warning(
                    "Installment was already paid",
                    extra={"installment_id": str(installment.id), "statement_id": str(statement.id)},
                )
                continue

            _mark_installment_paid(installment.purchase)
            installment.paid = True
            installment.transaction_id = transaction.id

        statement.transaction_id = transaction.id
        statement.state = StatementState.PAID
        self.db.flush()

        return transaction, len(installments)
