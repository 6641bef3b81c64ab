"""Billing-cycle closing: seals each card's due installments into a statement"""

import logging
import time
import uuid
from datetime import date, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from card_billing.config import settings
from card_billing.domain.exceptions import NotFoundError
from card_billing.domain.models import BillingRunSummary
from card_billing.infrastructure.clients.notifier import NotificationClient
from card_billing.infrastructure.database.models import Card, Statement
from card_billing.infrastructure.database.repositories import (
    CardRepository,
    InstallmentRepository,
    StatementRepository,
)
from card_billing.infrastructure.database.session import transaction
from card_billing.infrastructure.observability.logging import log_billing_run, log_statement_closed
from card_billing.infrastructure.observability.metrics import record_billing_run
from card_billing.utils.date_utils import cutoff_days_closing_on, due_date_for, year_month_of, yesterday_in

logger = logging.getLogger(__name__)


def close_card(db: Session, card: Card, closing_date: date) -> Optional[Statement]:
    """
    Close the statement of one card for the cycle ending on `closing_date`.

    Steps:
    1. Skip if the card already has a statement for the closing date's month
    2. Window runs from the day after closing to the payment due date
    3. Group installments in the window that no statement has claimed
    4. Create a CLOSED statement with their total and attach them

    Returns:
        The new statement, or None when the period was already closed or had
        no installments
    """
    year, month = year_month_of(closing_date)
    statements = StatementRepository(db)

    if statements.find_for_period(card.id, year, month) is not None:
        logger.warning(
            "Statement already exists for period, skipping",
            extra={"card_id": str(card.id), "period": f"{year:04d}-{month:02d}"},
        )
        return None

    window_start = closing_date + timedelta(days=1)
    window_end = due_date_for(closing_date, card.due_day)

    installments = InstallmentRepository(db).find_unbilled_for_card(card.id, window_start, window_end)
    logger.info(
        "Unbilled installments found",
        extra={
            "card_id": str(card.id),
            "window_start": window_start.isoformat(),
            "window_end": window_end.isoformat(),
            "installment_count": len(installments),
        },
    )

    if not installments:
        return None

    statement = statements.create_statement(
        card_id=card.id,
        year=year,
        month=month,
        due_date=window_end,
        installments=installments,
    )

    log_statement_closed(
        card_id=str(card.id),
        statement_id=str(statement.id),
        year=year,
        month=month,
        total_amount_cents=statement.total_amount_cents,
        installment_count=len(installments),
    )
    return statement


class BillingCycleCloser:
    """
    Closes the statements of every card whose cut-off day matches the closing date.

    Each card is closed in its own transaction. A failing card is logged and
    counted; the remaining cards are still processed. Re-running a date is
    safe because already closed periods are skipped.

    Non-goals:
        - NOT safe to run from several processes at once (no claim or lock
          per card and period beyond the unique constraint).
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        notifier: Optional[NotificationClient] = None,
        timezone_name: Optional[str] = None,
    ):
        self._session_factory = session_factory
        self._notifier = notifier
        self._timezone_name = timezone_name or settings.timezone

    def close_statements(self, closing_date: Optional[date] = None) -> BillingRunSummary:
        """Close every card due on `closing_date` (default: yesterday in the configured time zone)"""
        if closing_date is None:
            closing_date = yesterday_in(self._timezone_name)

        start_time = time.time()
        summary = BillingRunSummary(closing_date=closing_date)
        cutoff_days = cutoff_days_closing_on(closing_date)

        with transaction(self._session_factory) as db:
            card_ids = CardRepository(db).list_ids_by_cutoff_days(cutoff_days)

        summary.cards_considered = len(card_ids)
        logger.info(
            "Closing statements",
            extra={"closing_date": closing_date.isoformat(), "cutoff_days": cutoff_days, "card_count": len(card_ids)},
        )

        for card_id in card_ids:
            try:
                if self._close_one(card_id, closing_date):
                    summary.statements_created += 1
            except Exception:
                logger.exception("Failed to close statement for card", extra={"card_id": str(card_id)})
                summary.failed_card_ids.append(card_id)

        duration = time.time() - start_time
        record_billing_run(summary.statements_created, summary.failures, duration)
        log_billing_run(
            closing_date=closing_date.isoformat(),
            cards_considered=summary.cards_considered,
            statements_created=summary.statements_created,
            failures=summary.failures,
            duration_ms=duration * 1000,
        )
        return summary

    def _close_one(self, card_id: uuid.UUID, closing_date: date) -> bool:
        with transaction(self._session_factory) as db:
            card = CardRepository(db).get_card(card_id)
            if card is None:
                raise NotFoundError(f"Card {card_id} not found")

            statement = close_card(db, card, closing_date)
            if statement is None:
                return False

            event = {
                "workspace_id": str(card.workspace_id),
                "card_id": str(card.id),
                "statement_id": str(statement.id),
                "last_four_digits": card.last_four_digits,
                "network": card.network,
                "due_date": statement.due_date.isoformat(),
                "total_amount_cents": statement.total_amount_cents,
            }

        self._notify(event)
        return True

    def _notify(self, event: dict) -> None:
        """Best-effort notification; the statement is already committed"""
        if self._notifier is None:
            return
        try:
            self._notifier.send_statement_closed(**event)
        except Exception:
            logger.exception("Failed to send statement closed notification", extra={"card_id": event["card_id"]})
