"""Card endpoints - register, update, remove and list cards"""

import uuid
import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from card_billing.api.dependencies import get_request_id
from card_billing.api.errors import to_http_exception
from card_billing.api.v1.schemas import CardRequest, CardResponse, CardUpdateRequest, InstallmentSchema
from card_billing.config import settings
from card_billing.domain.exceptions import DomainException
from card_billing.infrastructure.database.session import get_db
from card_billing.services import registry
from card_billing.utils.date_utils import today_in

router = APIRouter()


@router.post("/cards", response_model=CardResponse, status_code=201)
def create_card(request_body: CardRequest, request: Request, db: Session = Depends(get_db)):
    """Register a credit card with its cut-off and due days"""
    request_id = get_request_id(request)
    try:
        card = registry.register_card(
            db,
            workspace_id=request_body.workspace_id,
            last_four_digits=request_body.last_four_digits,
            issuer=request_body.issuer,
            network=request_body.network,
            cutoff_day=request_body.cutoff_day,
            due_day=request_body.due_day,
        )
        response = CardResponse.model_validate(card)
        db.commit()
        return response

    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/cards/{card_id}", response_model=CardResponse)
def update_card(card_id: uuid.UUID, request_body: CardUpdateRequest, request: Request, db: Session = Depends(get_db)):
    """Change cut-off and/or due day. Existing installments keep their dates."""
    request_id = get_request_id(request)
    try:
        card = registry.update_card(db, card_id, cutoff_day=request_body.cutoff_day, due_day=request_body.due_day)
        response = CardResponse.model_validate(card)
        db.commit()
        return response

    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id)


@router.delete("/cards/{card_id}", status_code=204)
def delete_card(card_id: uuid.UUID, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        registry.remove_card(db, card_id)
        db.commit()
        return Response(status_code=204)

    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id)


@router.get("/workspaces/{workspace_id}/cards", response_model=List[CardResponse])
def list_cards(workspace_id: uuid.UUID, db: Session = Depends(get_db)):
    return [CardResponse.model_validate(card) for card in registry.list_cards(db, workspace_id)]


@router.get("/cards/{card_id}/installments", response_model=List[InstallmentSchema])
def list_current_cycle_installments(
    card_id: uuid.UUID,
    request: Request,
    reference_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """
    Installments of the card's current cycle.

    The cycle runs from the previous closing date to the next one around
    `reference_date` (default: today in the configured time zone).
    """
    request_id = get_request_id(request)
    try:
        installments = registry.list_current_cycle_installments(
            db, card_id, reference_date or today_in(settings.timezone)
        )
    except DomainException as e:
        raise to_http_exception(e, request_id)

    return [InstallmentSchema.model_validate(inst) for inst in installments]
