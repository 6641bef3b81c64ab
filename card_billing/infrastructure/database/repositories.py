"""Data access layer for cards, purchases, installments and statements"""

import uuid
from datetime import date
from typing import Iterable, List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from card_billing.infrastructure.database.models import (
    BankAccount,
    Card,
    CreditPurchase,
    Installment,
    MonthlySummary,
    Statement,
    Workspace,
)
from card_billing.domain.models import ScheduledInstallment, StatementState


class WorkspaceRepository:
    """Repository for workspaces and their bank accounts"""

    def __init__(self, db: Session):
        self.db = db

    def get_workspace(self, workspace_id: uuid.UUID) -> Optional[Workspace]:
        return self.db.get(Workspace, workspace_id)

    def get_bank_account(self, account_id: uuid.UUID) -> Optional[BankAccount]:
        return self.db.get(BankAccount, account_id)

    def get_monthly_summary(self, workspace_id: uuid.UUID, year: int, month: int) -> Optional[MonthlySummary]:
        return (
            self.db.query(MonthlySummary)
            .filter(
                MonthlySummary.workspace_id == workspace_id,
                MonthlySummary.year == year,
                MonthlySummary.month == month,
            )
            .first()
        )


class CardRepository:
    """Repository for credit cards"""

    def __init__(self, db: Session):
        self.db = db

    def get_card(self, card_id: uuid.UUID) -> Optional[Card]:
        return self.db.get(Card, card_id)

    def find_duplicate(self, workspace_id: uuid.UUID, last_four_digits: str, issuer: str, network: str) -> Optional[Card]:
        """Card with the same last digits, issuer and network in the workspace"""
        return (
            self.db.query(Card)
            .filter(
                Card.workspace_id == workspace_id,
                Card.last_four_digits == last_four_digits,
                Card.issuer == issuer,
                Card.network == network,
            )
            .first()
        )

    def list_by_workspace(self, workspace_id: uuid.UUID) -> List[Card]:
        return (
            self.db.query(Card)
            .filter(Card.workspace_id == workspace_id)
            .order_by(Card.updated_at.desc())
            .all()
        )

    def list_ids_by_cutoff_days(self, cutoff_days: Iterable[int]) -> List[uuid.UUID]:
        """Ids of the cards whose statement closes on one of the given cut-off days"""
        rows = (
            self.db.query(Card.id)
            .filter(Card.cutoff_day.in_(list(cutoff_days)))
            .order_by(Card.created_at, Card.id)
            .all()
        )
        return [row.id for row in rows]

    def has_purchases(self, card_id: uuid.UUID) -> bool:
        return self.db.query(CreditPurchase.id).filter(CreditPurchase.card_id == card_id).first() is not None


class PurchaseRepository:
    """Repository for credit purchases and their installment schedule"""

    def __init__(self, db: Session):
        self.db = db

    def get_purchase(self, purchase_id: uuid.UUID) -> Optional[CreditPurchase]:
        return self.db.get(CreditPurchase, purchase_id)

    def add_installments(self, purchase: CreditPurchase, installments: List[ScheduledInstallment]) -> List[Installment]:
        """Persist a generated schedule for a purchase"""
        db_installments = []
        for inst in installments:
            db_installment = Installment(
                purchase_id=purchase.id,
                number=inst.number,
                due_date=inst.due_date,
                amount_cents=inst.amount_cents,
                paid=False,
            )
            purchase.installments.append(db_installment)
            db_installments.append(db_installment)

        self.db.flush()
        return db_installments

    def list_by_workspace(self, workspace_id: uuid.UUID, pending_only: bool = False) -> List[CreditPurchase]:
        """Purchases of a workspace, optionally only those with unpaid installments"""
        query = self.db.query(CreditPurchase).filter(CreditPurchase.workspace_id == workspace_id)
        if pending_only:
            query = query.filter(CreditPurchase.paid_installments < CreditPurchase.installment_count)
        return query.order_by(CreditPurchase.purchase_date.desc(), CreditPurchase.created_at.desc()).all()

    def has_settled_or_billed_installments(self, purchase_id: uuid.UUID) -> bool:
        """True once any installment is paid or already grouped into a statement"""
        return (
            self.db.query(Installment.id)
            .filter(
                Installment.purchase_id == purchase_id,
                or_(Installment.paid.is_(True), Installment.statement_id.isnot(None)),
            )
            .first()
            is not None
        )


class InstallmentRepository:
    """Repository for installment queries spanning purchases"""

    def __init__(self, db: Session):
        self.db = db

    def find_unbilled_for_card(self, card_id: uuid.UUID, start: date, end: date) -> List[Installment]:
        """Installments of a card due in [start, end] that no statement has claimed yet"""
        return (
            self.db.query(Installment)
            .join(CreditPurchase, Installment.purchase_id == CreditPurchase.id)
            .filter(
                CreditPurchase.card_id == card_id,
                Installment.statement_id.is_(None),
                Installment.due_date >= start,
                Installment.due_date <= end,
            )
            .order_by(Installment.due_date, CreditPurchase.id, Installment.number)
            .all()
        )

    def find_for_card_between(self, card_id: uuid.UUID, start: date, end: date) -> List[Installment]:
        """All installments of a card due in [start, end]"""
        return (
            self.db.query(Installment)
            .join(CreditPurchase, Installment.purchase_id == CreditPurchase.id)
            .filter(
                CreditPurchase.card_id == card_id,
                Installment.due_date >= start,
                Installment.due_date <= end,
            )
            .order_by(Installment.due_date, CreditPurchase.id, Installment.number)
            .all()
        )


class StatementRepository:
    """Repository for card statements"""

    def __init__(self, db: Session):
        self.db = db

    def get_statement(self, statement_id: uuid.UUID) -> Optional[Statement]:
        return self.db.get(Statement, statement_id)

    def find_for_period(self, card_id: uuid.UUID, year: int, month: int) -> Optional[Statement]:
        return (
            self.db.query(Statement)
            .filter(Statement.card_id == card_id, Statement.year == year, Statement.month == month)
            .first()
        )

    def create_statement(
        self,
        card_id: uuid.UUID,
        year: int,
        month: int,
        due_date: date,
        installments: List[Installment],
    ) -> Statement:
        """Create a CLOSED statement and attach the given installments to it"""
        db_statement = Statement(
            card_id=card_id,
            year=year,
            month=month,
            due_date=due_date,
            state=StatementState.CLOSED,
            total_amount_cents=sum(inst.amount_cents for inst in installments),
        )
        self.db.add(db_statement)
        self.db.flush()  # Get ID without committing

        for inst in installments:
            db_statement.installments.append(inst)

        self.db.flush()
        return db_statement

    def list_by_card(self, card_id: uuid.UUID, states: Optional[Iterable[StatementState]] = None) -> List[Statement]:
        query = self.db.query(Statement).filter(Statement.card_id == card_id)
        if states is not None:
            query = query.filter(Statement.state.in_(list(states)))
        return query.order_by(Statement.year.desc(), Statement.month.desc()).all()

    def list_by_workspace(self, workspace_id: uuid.UUID) -> List[Statement]:
        return (
            self.db.query(Statement)
            .join(Card, Statement.card_id == Card.id)
            .filter(Card.workspace_id == workspace_id)
            .order_by(Statement.year.desc(), Statement.month.desc())
            .all()
        )
