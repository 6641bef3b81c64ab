"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from card_billing.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_statement_closed(
    card_id: str,
    statement_id: str,
    year: int,
    month: int,
    total_amount_cents: int,
    installment_count: int,
) -> None:
    """Log structured statement closing outcome for analysis"""
    logging.getLogger("card_billing.billing").info(
        "Statement closed",
        extra={
            "card_id": card_id,
            "statement_id": statement_id,
            "step": "statement_closed",
            "period": f"{year:04d}-{month:02d}",
            "total_amount_cents": total_amount_cents,
            "installment_count": installment_count,
        },
    )


def log_billing_run(
    closing_date: str,
    cards_considered: int,
    statements_created: int,
    failures: int,
    duration_ms: float,
) -> None:
    """Log one billing-cycle run"""
    logging.getLogger("card_billing.billing").info(
        "Billing cycle run completed",
        extra={
            "closing_date": closing_date,
            "step": "billing_run_complete",
            "cards_considered": cards_considered,
            "statements_created": statements_created,
            "failures": failures,
            "duration_ms": duration_ms,
        },
    )
