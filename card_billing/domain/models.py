"""Domain models - pure Python dataclasses and enums representing business concepts"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


class StatementState(str, enum.Enum):
    """Lifecycle of a card statement. The engine only produces CLOSED and PAID."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


PENDING_STATEMENT_STATES = (StatementState.CLOSED, StatementState.PARTIALLY_PAID)


class TransactionType(str, enum.Enum):
    """Direction of a ledger transaction relative to the workspace"""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


@dataclass
class ScheduledInstallment:
    """Single installment of a credit purchase before persistence"""

    number: int
    due_date: date
    amount_cents: int


@dataclass
class TransactionDetails:
    """Input for recording a ledger transaction"""

    workspace_id: uuid.UUID
    type: TransactionType
    amount_cents: int
    transaction_date: date
    description: str
    recorded_by: str
    bank_account_id: Optional[uuid.UUID] = None


@dataclass
class PaymentDetails:
    """Payment of a closed statement"""

    workspace_id: uuid.UUID
    amount_cents: int
    payment_date: date
    recorded_by: str
    bank_account_id: Optional[uuid.UUID] = None


@dataclass
class BillingRunSummary:
    """Outcome of one billing-cycle closing run"""

    closing_date: date
    cards_considered: int = 0
    statements_created: int = 0
    failed_card_ids: List[uuid.UUID] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return len(self.failed_card_ids)
