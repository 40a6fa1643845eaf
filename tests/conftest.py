import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["GEOAPIFY_API_KEY"] = ""
os.environ["EMAIL_USER"] = ""
os.environ["EMAIL_PASSWORD"] = ""
os.environ["MERCADO_PAGO_ACCESS_TOKEN_TEST"] = "TEST-token"

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from mall import create_app
from mall.auth.auth import AuthRouter, hash_password
from mall.core.exceptions.checkout import CheckoutFinalizationError
from mall.database.connection import engine
from mall.models.user.user import User
from mall.routes.payment.payment import get_checkout_gateway
from mall.services.payment.types import (
    PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_UNPAID,
    CheckoutLineItem,
    CheckoutSession,
    PaymentNotification,
)

SHIPPING_ADDRESS = {
    "fullName": "Jane Doe",
    "phoneNumber": "555-0100",
    "streetAddress": "1600 Pennsylvania Ave NW",
    "aptNumber": "2B",
    "city": "Washington",
    "stateProvince": "DC",
    "zipCode": "20500",
    "country": "United States",
}


class FakeCheckoutGateway:
    """In-memory stand-in for the hosted checkout provider."""

    def __init__(self):
        self.sessions: Dict[str, CheckoutSession] = {}
        self.expired: List[str] = []
        self.fail_create = False
        self.fail_retrieve = False
        self.payments: Dict[str, PaymentNotification] = {}
        self._counter = 0

    def create_session(self, items, metadata, external_reference, payer_email=None) -> CheckoutSession:
        if self.fail_create:
            raise CheckoutFinalizationError("Failed to start checkout. Please try again.", 502)

        self._counter += 1
        session_id = f"pref_{self._counter}"
        checkout_session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.example.com/{session_id}",
            payment_status=PAYMENT_STATUS_UNPAID,
            metadata=dict(metadata),
            line_items=[
                CheckoutLineItem(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.price,
                    store_id=item.store_id,
                    store_name=item.store_name,
                    product_image=item.product_image,
                )
                for item in items
            ],
        )
        self.sessions[session_id] = checkout_session
        return checkout_session

    def retrieve_session(self, session_id: str) -> Optional[CheckoutSession]:
        if self.fail_retrieve:
            raise ConnectionError("provider unreachable")
        return self.sessions.get(session_id)

    def get_payment_notification(self, payment_id: str) -> Optional[PaymentNotification]:
        return self.payments.get(payment_id)

    def expire_session(self, session_id: str) -> None:
        self.expired.append(session_id)

    def mark_paid(self, session_id: str) -> None:
        self.sessions[session_id].payment_status = PAYMENT_STATUS_PAID

    def notify(self, payment_id: str, status: str, session_id: Optional[str]) -> None:
        self.payments[payment_id] = PaymentNotification(
            payment_id=payment_id, status=status, checkout_session_id=session_id
        )


@pytest.fixture(autouse=True)
def reset_database():
    import mall.models  # noqa: F401

    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


@pytest.fixture
def gateway():
    return FakeCheckoutGateway()


@pytest.fixture
def app(gateway):
    application = create_app()
    application.dependency_overrides[get_checkout_gateway] = lambda: gateway
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def make_user(session: Session, email: str = "jane@example.com", password: str = "s3cret-pass", **kwargs) -> User:
    user = User(email=email, full_name=kwargs.pop("full_name", "Jane Doe"), password_hash=hash_password(password), **kwargs)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user: User) -> Dict[str, str]:
    token = AuthRouter()._generate_jwt(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def other_user(db):
    return make_user(db, email="john@example.com", full_name="John Roe")
