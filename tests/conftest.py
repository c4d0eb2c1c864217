from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine
from sqlmodel.pool import StaticPool

from gamestore.config import Settings, get_settings
from gamestore.database import get_session
from gamestore.dependencies.payments import get_mercadopago_gateway, get_stripe_gateway
from gamestore.exceptions import ProviderError
from gamestore.main import app
from gamestore.models import Order, OrderItem, User
from gamestore.services.gateways import ProviderCheckout, ProviderSession
from gamestore.services.mercadopago_gateway import MercadoPagoGateway
from gamestore.services.stripe_gateway import StripeGateway
from gamestore.utils.token import create_access_token


class FakeStripeGateway(StripeGateway):
    def __init__(self):
        super().__init__("sk_test_fake")
        self.sessions: Dict[str, str] = {}
        self.metadata: Dict[str, dict] = {}
        self.customers: Dict[str, str] = {}
        self.created: List[dict] = []
        self.retrieve_calls: List[str] = []
        self.fail_retrieve = False

    def find_customer_id(self, email: str) -> Optional[str]:
        return self.customers.get(email)

    def create_checkout_session(self, **params) -> ProviderCheckout:
        session_id = f"cs_test_{len(self.created) + 1}"
        self.created.append(params)
        self.sessions[session_id] = "unpaid"
        self.metadata[session_id] = dict(params.get("metadata") or {})
        return ProviderCheckout(id=session_id, url=f"https://checkout.stripe.com/c/pay/{session_id}")

    def retrieve_session(self, session_id: str) -> Optional[ProviderSession]:
        self.retrieve_calls.append(session_id)
        if self.fail_retrieve:
            raise ProviderError("Stripe session lookup failed: connection reset")
        if session_id not in self.sessions:
            return None
        return ProviderSession(
            id=session_id,
            payment_status=self.sessions[session_id],
            metadata=self.metadata.get(session_id, {}),
        )

    def mark_paid(self, session_id: str):
        self.sessions[session_id] = "paid"


class FakeMercadoPagoGateway(MercadoPagoGateway):
    def __init__(self):
        super().__init__("APP_USR-fake")
        self.preferences: List[dict] = []
        self.fail = False

    def create_preference(self, preference: dict) -> ProviderCheckout:
        if self.fail:
            raise ProviderError("MercadoPago API error: 400")
        self.preferences.append(preference)
        pref_id = f"pref-{len(self.preferences)}"
        return ProviderCheckout(
            id=pref_id,
            url=f"https://www.mercadopago.com.ar/checkout/v1/redirect?pref_id={pref_id}",
        )


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings(
        secret_key="test-secret",
        STRIPE_SECRET_KEY="sk_test_fake",
        MERCADOPAGO_ACCESS_TOKEN="APP_USR-fake",
        FRONTEND_URL="http://localhost:3000",
        BREVO_API_KEY=None,
    )


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="stripe_gateway")
def stripe_gateway_fixture():
    return FakeStripeGateway()


@pytest.fixture(name="mercadopago_gateway")
def mercadopago_gateway_fixture():
    return FakeMercadoPagoGateway()


@pytest.fixture(name="client")
def client_fixture(session, settings, stripe_gateway, mercadopago_gateway):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_stripe_gateway] = lambda: stripe_gateway
    app.dependency_overrides[get_mercadopago_gateway] = lambda: mercadopago_gateway

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(name="user")
def user_fixture(session):
    user = User(email="gamer@example.com", first_name="Lucia", last_name="Perez")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(user, settings):
    token = create_access_token({"sub": str(user.id)}, settings)
    return {"Authorization": f"Bearer {token}"}


def make_order(session, order_number="ORD-1001", items=None, payment_id=None, user_id=None,
               email="buyer@example.com"):
    items = items or [("Elden Ring", 10.0, 1), ("Hades", 5.0, 2)]
    total = sum(price * qty for _, price, qty in items)

    order = Order(
        order_number=order_number,
        user_id=user_id,
        subtotal=total,
        total=total,
        payment_id=payment_id,
        billing_info={"email": email, "firstName": "Lucia", "lastName": "Perez"} if email else {},
    )
    session.add(order)
    session.commit()
    session.refresh(order)

    for name, price, qty in items:
        session.add(OrderItem(order_id=order.id, product_name=name, price=price, quantity=qty))
    session.commit()
    session.refresh(order)
    return order
