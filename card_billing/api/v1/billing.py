"""POST /v1/billing/close - on-demand billing-cycle closing"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends

from card_billing.api.dependencies import get_billing_closer
from card_billing.api.v1.schemas import BillingRunResponse
from card_billing.services.billing_cycle import BillingCycleCloser

router = APIRouter()


@router.post("/billing/close", response_model=BillingRunResponse)
def close_billing_cycle(
    closing_date: Optional[date] = None,
    closer: BillingCycleCloser = Depends(get_billing_closer),
):
    """
    Close statements for every card whose cut-off falls on `closing_date`.

    Defaults to yesterday in the configured time zone, like the nightly run.
    Safe to repeat: periods already closed are skipped.
    """
    summary = closer.close_statements(closing_date)
    return BillingRunResponse(
        closing_date=summary.closing_date,
        cards_considered=summary.cards_considered,
        statements_created=summary.statements_created,
        failed_card_ids=summary.failed_card_ids,
    )
