"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from card_billing.infrastructure.clients.notifier import NotificationClient
from card_billing.infrastructure.database.session import SessionLocal
from card_billing.services.billing_cycle import BillingCycleCloser


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_notification_client() -> NotificationClient:
    """Provide statement notification webhook client instance"""
    return NotificationClient()


def get_billing_closer() -> BillingCycleCloser:
    """Provide the billing-cycle closer bound to the application database"""
    return BillingCycleCloser(SessionLocal, get_notification_client())
