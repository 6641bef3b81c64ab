"""Card registry, credit purchase registration and installment generation"""

import logging
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from card_billing.domain.exceptions import DuplicateEntityError, InvalidStateError, NotFoundError, ValidationError
from card_billing.domain.installments import generate_installment_plan
from card_billing.domain.models import PENDING_STATEMENT_STATES
from card_billing.infrastructure.database.models import Card, CreditPurchase, Installment, Statement
from card_billing.infrastructure.database.repositories import (
    CardRepository,
    InstallmentRepository,
    PurchaseRepository,
    StatementRepository,
    WorkspaceRepository,
)
from card_billing.infrastructure.observability.metrics import installments_generated_counter
from card_billing.utils.date_utils import MAX_CYCLE_DAY, next_closing_date, previous_closing_date

logger = logging.getLogger(__name__)


def _validate_cycle_day(name: str, value: int) -> None:
    if not 1 <= value <= MAX_CYCLE_DAY:
        raise ValidationError(f"{name} must be between 1 and {MAX_CYCLE_DAY}, got {value}")


def _require_card(db: Session, card_id: uuid.UUID) -> Card:
    card = CardRepository(db).get_card(card_id)
    if card is None:
        logger.warning("Card not found", extra={"card_id": str(card_id)})
        raise NotFoundError(f"Card {card_id} not found")
    return card


def _require_workspace(db: Session, workspace_id: uuid.UUID) -> None:
    if WorkspaceRepository(db).get_workspace(workspace_id) is None:
        logger.warning("Workspace not found", extra={"workspace_id": str(workspace_id)})
        raise NotFoundError(f"Workspace {workspace_id} not found")


# Cards


def register_card(
    db: Session,
    workspace_id: uuid.UUID,
    last_four_digits: str,
    issuer: str,
    network: str,
    cutoff_day: int,
    due_day: int,
) -> Card:
    """
    Register a card in a workspace.

    Raises:
        NotFoundError: Unknown workspace
        DuplicateEntityError: Same last digits, issuer and network already registered
    """
    _validate_cycle_day("cutoff_day", cutoff_day)
    _validate_cycle_day("due_day", due_day)
    _require_workspace(db, workspace_id)

    repo = CardRepository(db)
    if repo.find_duplicate(workspace_id, last_four_digits, issuer, network) is not None:
        msg = f"A {network} card ending in {last_four_digits} from {issuer} already exists in this workspace"
        logger.warning(msg, extra={"workspace_id": str(workspace_id)})
        raise DuplicateEntityError(msg)

    card = Card(
        workspace_id=workspace_id,
        last_four_digits=last_four_digits,
        issuer=issuer,
        network=network,
        cutoff_day=cutoff_day,
        due_day=due_day,
    )
    db.add(card)
    db.flush()

    logger.info("Card registered", extra={"card_id": str(card.id), "workspace_id": str(workspace_id)})
    return card


def update_card(db: Session, card_id: uuid.UUID, cutoff_day: Optional[int] = None, due_day: Optional[int] = None) -> Card:
    """Change a card's cycle days. Installments already generated keep their due dates."""
    card = _require_card(db, card_id)
    if cutoff_day is not None:
        _validate_cycle_day("cutoff_day", cutoff_day)
        card.cutoff_day = cutoff_day
    if due_day is not None:
        _validate_cycle_day("due_day", due_day)
        card.due_day = due_day
    db.flush()

    logger.info(
        "Card updated",
        extra={"card_id": str(card.id), "cutoff_day": card.cutoff_day, "due_day": card.due_day},
    )
    return card


def remove_card(db: Session, card_id: uuid.UUID) -> None:
    """
    Delete a card.

    Raises:
        NotFoundError: Unknown card
        InvalidStateError: The card has credit purchases
    """
    card = _require_card(db, card_id)
    if CardRepository(db).has_purchases(card_id):
        msg = f"Card {card_id} cannot be removed because it has credit purchases"
        logger.warning(msg)
        raise InvalidStateError(msg)

    db.delete(card)
    db.flush()
    logger.info("Card removed", extra={"card_id": str(card_id)})


def list_cards(db: Session, workspace_id: uuid.UUID) -> List[Card]:
    return CardRepository(db).list_by_workspace(workspace_id)


# Purchases


def generate_installments(db: Session, purchase: CreditPurchase, card: Card) -> List[Installment]:
    """
    Compute and persist the installment schedule of a purchase.

    A non-positive installment count yields no installments.
    """
    plan = generate_installment_plan(
        amount_cents=purchase.amount_cents,
        installment_count=purchase.installment_count,
        purchase_date=purchase.purchase_date,
        cutoff_day=card.cutoff_day,
        due_day=card.due_day,
    )
    if not plan:
        logger.warning(
            "Purchase has no installments to generate",
            extra={"purchase_id": str(purchase.id), "installment_count": purchase.installment_count},
        )
        return []

    installments = PurchaseRepository(db).add_installments(purchase, plan)
    installments_generated_counter.inc(len(installments))

    logger.info(
        "Installments generated",
        extra={
            "purchase_id": str(purchase.id),
            "card_id": str(card.id),
            "installment_count": len(installments),
            "first_due_date": installments[0].due_date.isoformat(),
        },
    )
    return installments


def register_purchase(
    db: Session,
    workspace_id: uuid.UUID,
    card_id: uuid.UUID,
    amount_cents: int,
    purchase_date: date,
    installment_count: int,
    reason: str,
    recorded_by: str,
    merchant: Optional[str] = None,
    description: Optional[str] = None,
) -> CreditPurchase:
    """
    Register a credit purchase and its installment schedule.

    Raises:
        NotFoundError: Unknown workspace or card
        ValidationError: Card belongs to another workspace
    """
    _require_workspace(db, workspace_id)
    card = _require_card(db, card_id)
    if card.workspace_id != workspace_id:
        raise ValidationError("Card does not belong to the workspace")

    logger.info(
        "Registering credit purchase",
        extra={"workspace_id": str(workspace_id), "amount_cents": amount_cents, "installment_count": installment_count},
    )

    purchase = CreditPurchase(
        workspace_id=workspace_id,
        card_id=card.id,
        purchase_date=purchase_date,
        amount_cents=amount_cents,
        installment_count=installment_count,
        paid_installments=0,
        reason=reason,
        merchant=merchant,
        description=description,
        recorded_by=recorded_by,
    )
    db.add(purchase)
    db.flush()

    generate_installments(db, purchase, card)
    return purchase


def remove_purchase(db: Session, purchase_id: uuid.UUID) -> None:
    """
    Delete a purchase together with its installments.

    Raises:
        NotFoundError: Unknown purchase
        InvalidStateError: Some installment is paid or already on a statement
    """
    repo = PurchaseRepository(db)
    purchase = repo.get_purchase(purchase_id)
    if purchase is None:
        raise NotFoundError(f"Credit purchase {purchase_id} not found")

    if purchase.paid_installments > 0 or repo.has_settled_or_billed_installments(purchase_id):
        msg = f"Credit purchase {purchase_id} cannot be removed because it has billed or paid installments"
        logger.warning(msg)
        raise InvalidStateError(msg)

    db.delete(purchase)  # installments cascade
    db.flush()
    logger.info("Credit purchase removed", extra={"purchase_id": str(purchase_id)})


def list_purchases(db: Session, workspace_id: uuid.UUID, pending_only: bool = False) -> List[CreditPurchase]:
    return PurchaseRepository(db).list_by_workspace(workspace_id, pending_only=pending_only)


# Queries


def list_current_cycle_installments(db: Session, card_id: uuid.UUID, reference_date: date) -> List[Installment]:
    """Installments due between the previous and the next closing date around `reference_date`"""
    card = _require_card(db, card_id)
    start = previous_closing_date(reference_date, card.cutoff_day)
    end = next_closing_date(reference_date, card.cutoff_day)
    return InstallmentRepository(db).find_for_card_between(card.id, start, end)


def list_pending_statements(db: Session, card_id: uuid.UUID) -> List[Statement]:
    """Statements of a card still waiting for payment, newest first"""
    _require_card(db, card_id)
    return StatementRepository(db).list_by_card(card_id, states=PENDING_STATEMENT_STATES)


def list_workspace_statements(db: Session, workspace_id: uuid.UUID) -> List[Statement]:
    return StatementRepository(db).list_by_workspace(workspace_id)
