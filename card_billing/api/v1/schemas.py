"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from card_billing.domain.models import StatementState


class CardRequest(BaseModel):
    """Request body for POST /v1/cards"""

    workspace_id: uuid.UUID
    last_four_digits: str = Field(..., pattern=r"^\d{4}$", description="Last four digits of the card number")
    issuer: str = Field(..., min_length=1, max_length=50)
    network: str = Field(..., min_length=1, max_length=50)
    cutoff_day: int = Field(..., ge=1, le=29, description="Day of month the statement closes")
    due_day: int = Field(..., ge=1, le=29, description="Day of month the statement is due")


class CardUpdateRequest(BaseModel):
    """Request body for PATCH /v1/cards/{card_id}"""

    cutoff_day: Optional[int] = Field(None, ge=1, le=29)
    due_day: Optional[int] = Field(None, ge=1, le=29)


class CardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    workspace_id: uuid.UUID
    last_four_digits: str
    issuer: str
    network: str
    cutoff_day: int
    due_day: int


class PurchaseRequest(BaseModel):
    """Request body for POST /v1/purchases"""

    workspace_id: uuid.UUID
    card_id: uuid.UUID
    amount_cents: int = Field(..., gt=0, description="Total purchase amount in cents")
    purchase_date: date
    installment_count: int = Field(..., gt=0, description="Number of monthly installments")
    reason: str = Field(..., min_length=1, max_length=50)
    merchant: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=100)
    recorded_by: str = Field(..., min_length=1, max_length=100)


class InstallmentSchema(BaseModel):
    """Single installment of a credit purchase"""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    purchase_id: uuid.UUID
    number: int
    due_date: date
    amount_cents: int
    paid: bool
    statement_id: Optional[uuid.UUID] = None


class PurchaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    workspace_id: uuid.UUID
    card_id: uuid.UUID
    amount_cents: int
    purchase_date: date
    installment_count: int
    paid_installments: int
    reason: str
    merchant: Optional[str] = None
    description: Optional[str] = None
    installments: List[InstallmentSchema]


class StatementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    card_id: uuid.UUID
    year: int
    month: int
    due_date: date
    state: StatementState
    total_amount_cents: int
    transaction_id: Optional[uuid.UUID] = None
    installments: List[InstallmentSchema]


class StatementPaymentRequest(BaseModel):
    """Request body for POST /v1/statements/{statement_id}/payment"""

    workspace_id: uuid.UUID
    amount_cents: int = Field(..., gt=0, description="Must equal the statement total")
    payment_date: date
    bank_account_id: Optional[uuid.UUID] = None
    recorded_by: str = Field(..., min_length=1, max_length=100)


class BillingRunResponse(BaseModel):
    """Response for POST /v1/billing/close"""

    closing_date: date
    cards_considered: int
    statements_created: int
    failed_card_ids: List[uuid.UUID]
