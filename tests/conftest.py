"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from card_billing.api.dependencies import get_billing_closer
from card_billing.api.main import create_app
from card_billing.infrastructure.clients.notifier import NotificationClient
from card_billing.infrastructure.database.models import Base, BankAccount, Card, Workspace
from card_billing.infrastructure.database.session import get_db
from card_billing.services import registry
from card_billing.services.billing_cycle import BillingCycleCloser


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session):
    """Session factory bound to the test database, for code that opens its own sessions"""
    return TestingSessionLocal


@pytest.fixture
def closer(session_factory) -> BillingCycleCloser:
    """Billing-cycle closer without a notification webhook"""
    return BillingCycleCloser(session_factory, NotificationClient(webhook_url=None), timezone_name="UTC")


@pytest.fixture
def client(db: Session, closer: BillingCycleCloser) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_billing_closer] = lambda: closer
    return TestClient(app)


@pytest.fixture
def workspace(db: Session) -> Workspace:
    """Workspace with a zero balance"""
    ws = Workspace(name="Home", balance_cents=0)
    db.add(ws)
    db.commit()
    return ws


@pytest.fixture
def bank_account(db: Session, workspace: Workspace) -> BankAccount:
    """Bank account holding $10,000"""
    account = BankAccount(workspace_id=workspace.id, name="Checking", institution="Banco Nación", balance_cents=1_000_000)
    db.add(account)
    db.commit()
    return account


@pytest.fixture
def card(db: Session, workspace: Workspace) -> Card:
    """Visa card closing on the 10th, due on the 5th of the next month"""
    card = registry.register_card(
        db,
        workspace_id=workspace.id,
        last_four_digits="4321",
        issuer="Galicia",
        network="VISA",
        cutoff_day=10,
        due_day=5,
    )
    db.commit()
    return card


@pytest.fixture
def make_purchase(db: Session, workspace: Workspace, card: Card):
    """Register and commit credit purchases on the default card"""

    def _make(amount_cents: int, purchase_date: date, installment_count: int = 1, on_card: Card = None):
        purchase = registry.register_purchase(
            db,
            workspace_id=workspace.id,
            card_id=(on_card or card).id,
            amount_cents=amount_cents,
            purchase_date=purchase_date,
            installment_count=installment_count,
            reason="Groceries",
            recorded_by="ana@example.com",
        )
        db.commit()
        return purchase

    return _make
