"""Balance ledgers and transaction recording used by statement settlement"""

import logging
import uuid

from sqlalchemy.orm import Session

from card_billing.domain.exceptions import InsufficientFundsError, NotFoundError, ValidationError
from card_billing.domain.models import TransactionDetails, TransactionType
from card_billing.infrastructure.database.models import BankAccount, LedgerTransaction, MonthlySummary, Workspace
from card_billing.infrastructure.database.repositories import WorkspaceRepository

logger = logging.getLogger(__name__)


class WorkspaceLedger:
    """Debits and credits a workspace's aggregate balance"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WorkspaceRepository(db)

    def get_workspace(self, workspace_id: uuid.UUID) -> Workspace:
        workspace = self.repo.get_workspace(workspace_id)
        if workspace is None:
            raise NotFoundError(f"Workspace {workspace_id} not found")
        return workspace

    def credit(self, workspace_id: uuid.UUID, amount_cents: int) -> Workspace:
        workspace = self.get_workspace(workspace_id)
        workspace.balance_cents += amount_cents
        return workspace

    def debit(self, workspace_id: uuid.UUID, amount_cents: int) -> Workspace:
        workspace = self.get_workspace(workspace_id)
        workspace.balance_cents -= amount_cents
        return workspace


class BankAccountLedger:
    """Moves bank account balances; debits never overdraw"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WorkspaceRepository(db)

    def get_account(self, account_id: uuid.UUID) -> BankAccount:
        account = self.repo.get_bank_account(account_id)
        if account is None:
            raise NotFoundError(f"Bank account {account_id} not found")
        return account

    def ensure_can_debit(self, account: BankAccount, amount_cents: int) -> None:
        if account.balance_cents < amount_cents:
            logger.warning(
                "Insufficient balance for debit",
                extra={"bank_account_id": str(account.id), "balance_cents": account.balance_cents, "amount_cents": amount_cents},
            )
            raise InsufficientFundsError(account.id, account.balance_cents, amount_cents)

    def adjust_balance(self, account_id: uuid.UUID, delta_cents: int, direction: TransactionType) -> BankAccount:
        """
        Apply a transaction to an account.

        INCOME adds `delta_cents`, EXPENSE subtracts it.

        Raises:
            NotFoundError: Unknown account
            InsufficientFundsError: Expense larger than the current balance
        """
        account = self.get_account(account_id)
        if direction == TransactionType.EXPENSE:
            self.ensure_can_debit(account, delta_cents)
            account.balance_cents -= delta_cents
        else:
            account.balance_cents += delta_cents

        logger.info(
            "Bank account balance updated",
            extra={"bank_account_id": str(account.id), "balance_cents": account.balance_cents},
        )
        return account


class MonthlySummaryRecorder:
    """Keeps per-month expense and income totals so dashboards avoid full scans"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WorkspaceRepository(db)

    def _get_or_create(self, workspace_id: uuid.UUID, year: int, month: int) -> MonthlySummary:
        summary = self.repo.get_monthly_summary(workspace_id, year, month)
        if summary is None:
            summary = MonthlySummary(
                workspace_id=workspace_id,
                year=year,
                month=month,
                expenses_cents=0,
                income_cents=0,
            )
            self.db.add(summary)
        return summary

    def record_expense(self, workspace_id: uuid.UUID, year: int, month: int, amount_cents: int) -> MonthlySummary:
        summary = self._get_or_create(workspace_id, year, month)
        summary.expenses_cents += amount_cents
        return summary

    def record_income(self, workspace_id: uuid.UUID, year: int, month: int, amount_cents: int) -> MonthlySummary:
        summary = self._get_or_create(workspace_id, year, month)
        summary.income_cents += amount_cents
        return summary


class TransactionLedger:
    """Records a transaction and applies it to every balance it affects"""

    def __init__(self, db: Session):
        self.db = db
        self.workspaces = WorkspaceLedger(db)
        self.accounts = BankAccountLedger(db)
        self.summaries = MonthlySummaryRecorder(db)

    def create_transaction(self, details: TransactionDetails) -> LedgerTransaction:
        """
        Persist a transaction.

        Flow:
        1. Validate workspace (and bank account ownership when given)
        2. Adjust bank account balance
        3. Adjust workspace balance
        4. Add amount to the month's expense/income totals
        """
        if details.amount_cents <= 0:
            raise ValidationError("Transaction amount must be positive")

        workspace = self.workspaces.get_workspace(details.workspace_id)

        if details.bank_account_id is not None:
            account = self.accounts.get_account(details.bank_account_id)
            if account.workspace_id != workspace.id:
                raise ValidationError("Bank account does not belong to the workspace")
            self.accounts.adjust_balance(account.id, details.amount_cents, details.type)

        year, month = details.transaction_date.year, details.transaction_date.month
        if details.type == TransactionType.EXPENSE:
            self.workspaces.debit(workspace.id, details.amount_cents)
            self.summaries.record_expense(workspace.id, year, month, details.amount_cents)
        else:
            self.workspaces.credit(workspace.id, details.amount_cents)
            self.summaries.record_income(workspace.id, year, month, details.amount_cents)

        transaction = LedgerTransaction(
            workspace_id=workspace.id,
            bank_account_id=details.bank_account_id,
            type=details.type,
            amount_cents=details.amount_cents,
            transaction_date=details.transaction_date,
            description=details.description,
            recorded_by=details.recorded_by,
        )
        self.db.add(transaction)
        self.db.flush()

        logger.info(
            "Transaction recorded",
            extra={
                "transaction_id": str(transaction.id),
                "workspace_id": str(workspace.id),
                "type": details.type.value,
                "amount_cents": details.amount_cents,
                "workspace_balance_cents": workspace.balance_cents,
            },
        )
        return transaction
