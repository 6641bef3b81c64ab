"""SQLAlchemy ORM models for workspaces, ledgers, cards, purchases, installments and statements"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    DateTime,
    Date,
    Integer,
    ForeignKey,
    Enum,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from card_billing.domain.models import StatementState, TransactionType

Base = declarative_base()


class Workspace(Base):
    """Shared finance space owning cards, accounts and transactions"""

    __tablename__ = "workspace"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    cards = relationship("Card", back_populates="workspace")
    bank_accounts = relationship("BankAccount", back_populates="workspace")


class BankAccount(Base):
    """Bank account whose balance moves with the transactions paid from it"""

    __tablename__ = "bank_account"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(UUID(as_uuid=True), ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    institution = Column(String(50), nullable=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    workspace = relationship("Workspace", back_populates="bank_accounts")


class MonthlySummary(Base):
    """Pre-aggregated expenses and income per workspace and month"""

    __tablename__ = "monthly_summary"
    __table_args__ = (UniqueConstraint("workspace_id", "year", "month", name="uq_monthly_summary_period"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(UUID(as_uuid=True), ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    expenses_cents = Column(BigInteger, nullable=False, default=0)
    income_cents = Column(BigInteger, nullable=False, default=0)


class LedgerTransaction(Base):
    """Income or expense recorded against a workspace"""

    __tablename__ = "ledger_transaction"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(UUID(as_uuid=True), ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    bank_account_id = Column(UUID(as_uuid=True), ForeignKey("bank_account.id"), nullable=True)
    type = Column(Enum(TransactionType, native_enum=False, length=20), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    transaction_date = Column(Date, nullable=False)
    description = Column(String(100), nullable=True)
    recorded_by = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    bank_account = relationship("BankAccount")


class Card(Base):
    """Credit card with its monthly cut-off and payment-due days"""

    __tablename__ = "card"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(UUID(as_uuid=True), ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    last_four_digits = Column(String(4), nullable=False)
    issuer = Column(String(50), nullable=False)
    network = Column(String(50), nullable=False)
    cutoff_day = Column(Integer, nullable=False, index=True)
    due_day = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    workspace = relationship("Workspace", back_populates="cards")
    purchases = relationship("CreditPurchase", back_populates="card")
    statements = relationship("Statement", back_populates="card")


class CreditPurchase(Base):
    """Purchase paid with a card in one or more monthly installments"""

    __tablename__ = "credit_purchase"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(UUID(as_uuid=True), ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False, index=True)
    card_id = Column(UUID(as_uuid=True), ForeignKey("card.id"), nullable=False, index=True)
    purchase_date = Column(Date, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    installment_count = Column(Integer, nullable=False)
    paid_installments = Column(Integer, nullable=False, default=0)
    reason = Column(String(50), nullable=False)
    merchant = Column(String(100), nullable=True)
    description = Column(String(100), nullable=True)
    recorded_by = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    card = relationship("Card", back_populates="purchases")
    installments = relationship(
        "Installment",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="Installment.number",
    )


class Statement(Base):
    """Closed billing cycle of a card grouping the installments due in it"""

    __tablename__ = "statement"
    __table_args__ = (UniqueConstraint("card_id", "year", "month", name="uq_statement_card_period"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    card_id = Column(UUID(as_uuid=True), ForeignKey("card.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    state = Column(Enum(StatementState, native_enum=False, length=20), nullable=False, default=StatementState.CLOSED)
    total_amount_cents = Column(BigInteger, nullable=False)
    transaction_id = Column(UUID(as_uuid=True), ForeignKey("ledger_transaction.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    card = relationship("Card", back_populates="statements")
    installments = relationship("Installment", back_populates="statement", order_by="Installment.due_date")
    transaction = relationship("LedgerTransaction")


class Installment(Base):
    """Individual installment of a credit purchase"""

    __tablename__ = "installment"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    purchase_id = Column(UUID(as_uuid=True), ForeignKey("credit_purchase.id", ondelete="CASCADE"), nullable=False)
    number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    statement_id = Column(UUID(as_uuid=True), ForeignKey("statement.id"), nullable=True, index=True)
    transaction_id = Column(UUID(as_uuid=True), ForeignKey("ledger_transaction.id"), nullable=True)

    purchase = relationship("CreditPurchase", back_populates="installments")
    statement = relationship("Statement", back_populates="installments")
    transaction = relationship("LedgerTransaction")
