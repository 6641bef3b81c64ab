"""Credit purchase endpoints - registration triggers installment generation"""

import uuid
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from card_billing.api.dependencies import get_request_id
from card_billing.api.errors import to_http_exception
from card_billing.api.v1.schemas import PurchaseRequest, PurchaseResponse
from card_billing.domain.exceptions import DomainException
from card_billing.infrastructure.database.session import get_db
from card_billing.services import registry

router = APIRouter()


@router.post("/purchases", response_model=PurchaseResponse, status_code=201)
def create_purchase(request_body: PurchaseRequest, request: Request, db: Session = Depends(get_db)):
    """
    Register a credit purchase.

    Flow:
    1. Check workspace and card ownership
    2. Persist the purchase
    3. Generate its installments from the card's cut-off and due days
    4. Commit both together
    """
    request_id = get_request_id(request)
    try:
        purchase = registry.register_purchase(
            db,
            workspace_id=request_body.workspace_id,
            card_id=request_body.card_id,
            amount_cents=request_body.amount_cents,
            purchase_date=request_body.purchase_date,
            installment_count=request_body.installment_count,
            reason=request_body.reason,
            recorded_by=request_body.recorded_by,
            merchant=request_body.merchant,
            description=request_body.description,
        )
        response = PurchaseResponse.model_validate(purchase)
        db.commit()
        return response

    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/purchases/{purchase_id}", status_code=204)
def delete_purchase(purchase_id: uuid.UUID, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        registry.remove_purchase(db, purchase_id)
        db.commit()
        return Response(status_code=204)

    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id)


@router.get("/workspaces/{workspace_id}/purchases", response_model=List[PurchaseResponse])
def list_purchases(workspace_id: uuid.UUID, pending_only: bool = False, db: Session = Depends(get_db)):
    """List purchases; `pending_only` keeps those with unpaid installments"""
    purchases = registry.list_purchases(db, workspace_id, pending_only=pending_only)
    return [PurchaseResponse.model_validate(purchase) for purchase in purchases]
