"""Statement endpoints - pending statements and full-amount payment"""

import uuid
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from card_billing.api.dependencies import get_request_id
from card_billing.api.errors import to_http_exception
from card_billing.api.v1.schemas import StatementPaymentRequest, StatementResponse
from card_billing.domain.exceptions import DomainException
from card_billing.domain.models import PaymentDetails
from card_billing.infrastructure.database.session import get_db
from card_billing.services import registry
from card_billing.services.settlement import StatementSettlement

router = APIRouter()


@router.get("/cards/{card_id}/statements", response_model=List[StatementResponse])
def list_pending_statements(card_id: uuid.UUID, request: Request, db: Session = Depends(get_db)):
    """Statements awaiting payment, newest period first"""
    request_id = get_request_id(request)
    try:
        statements = registry.list_pending_statements(db, card_id)
    except DomainException as e:
        raise to_http_exception(e, request_id)

    return [StatementResponse.model_validate(statement) for statement in statements]


@router.get("/workspaces/{workspace_id}/statements", response_model=List[StatementResponse])
def list_workspace_statements(workspace_id: uuid.UUID, db: Session = Depends(get_db)):
    statements = registry.list_workspace_statements(db, workspace_id)
    return [StatementResponse.model_validate(statement) for statement in statements]


@router.post("/statements/{statement_id}/payment", response_model=StatementResponse)
def pay_statement(
    statement_id: uuid.UUID,
    request_body: StatementPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Pay a closed statement in full.

    The payment, installment updates and statement state change commit
    together or not at all.
    """
    request_id = get_request_id(request)
    try:
        statement = StatementSettlement(db).pay_statement(
            statement_id,
            PaymentDetails(
                workspace_id=request_body.workspace_id,
                amount_cents=request_body.amount_cents,
                payment_date=request_body.payment_date,
                recorded_by=request_body.recorded_by,
                bank_account_id=request_body.bank_account_id,
            ),
        )
        response = StatementResponse.model_validate(statement)
        db.commit()
        return response

    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
