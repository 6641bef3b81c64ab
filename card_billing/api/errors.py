"""Translation of domain exceptions into HTTP errors"""

import logging

from fastapi import HTTPException

from card_billing.domain.exceptions import (
    DomainException,
    DuplicateEntityError,
    InsufficientFundsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)

_STATUS_BY_EXCEPTION = (
    (NotFoundError, 404),
    (InvalidStateError, 409),
    (DuplicateEntityError, 409),
    (ValidationError, 422),
    (InsufficientFundsError, 422),
)


def to_http_exception(exc: DomainException, request_id: str) -> HTTPException:
    """Map a domain error to its HTTP status, logging it with the request ID"""
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            logging.warning(f"{exc_type.__name__}: {exc}", extra={"request_id": request_id})
            return HTTPException(status_code=status_code, detail=str(exc))

    logging.error(f"Unhandled domain error: {exc}", extra={"request_id": request_id})
    return HTTPException(status_code=500, detail="Internal server error")
