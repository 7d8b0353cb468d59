import os

# Must be set before the routes module builds its limiter
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from app import create_app
from auth import get_current_active_admin
from database import make_engine, make_session_factory
from errors import GatewayError
from routes.limiter import limiter
from schemas import AdminResponse, GatewayInvoice, OrderCreate
from services import build_container
from stores import InMemoryOrderStore, InMemoryPaymentStore, SqlOrderStore, SqlPaymentStore


class FakeGateway:
    """Stands in for PayDunya: hands out numbered invoices and a settable remote status."""

    def __init__(self):
        self.invoices = []
        self.fail_with = None
        self.remote_status = "pending"
        self.confirm_calls = []

    def initialize(self, order, payment):
        if self.fail_with:
            raise GatewayError(self.fail_with)
        number = len(self.invoices) + 1
        invoice = GatewayInvoice(
            redirect_url=f"https://paydunya.test/checkout/invoice/test_{number}",
            token=f"test_token_{number}",
            transaction_id=f"txn_{number}",
        )
        self.invoices.append((order.id, payment.id, invoice))
        return invoice

    def confirm(self, token):
        self.confirm_calls.append(token)
        return self.remote_status


def delivery_fields(**overrides):
    fields = {
        "customer_name": "Awa Diop",
        "customer_phone": "77 123 45 67",
        "delivery_address": "Rue 10, Medina, Dakar",
        "items": [{"product_name": "Menu Classique", "quantity": 1, "unit_price": 4500}],
        "total": 5500,
        "order_type": "delivery",
    }
    fields.update(overrides)
    return fields


@pytest.fixture(autouse=True)
def _no_rate_limit():
    limiter.enabled = False
    yield


@pytest.fixture()
def order_fields():
    """Builder for store-level order creation payloads."""
    return delivery_fields


@pytest.fixture()
def order_request():
    """Builder for ``OrderCreate`` requests (total left to the server)."""

    def build(**overrides):
        fields = delivery_fields(**overrides)
        fields.pop("total")
        if "total" in overrides:
            fields["total"] = overrides["total"]
        return OrderCreate(**fields)

    return build


@pytest.fixture(params=["memory", "sql"])
def stores(request):
    """(order_store, payment_store) for each backend."""
    if request.param == "memory":
        order_store = InMemoryOrderStore()
        return order_store, InMemoryPaymentStore(order_store)
    session_factory = make_session_factory(make_engine("sqlite://"))
    order_store = SqlOrderStore(session_factory)
    return order_store, SqlPaymentStore(session_factory, order_store)


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def container(gateway):
    return build_container(database_url="", gateway=gateway, delivery_fee=1000)


@pytest.fixture()
def client(container):
    with TestClient(create_app(container)) as test_client:
        yield test_client


@pytest.fixture()
def admin_client(client):
    client.app.dependency_overrides[get_current_active_admin] = lambda: AdminResponse(username="admin")
    yield client
    client.app.dependency_overrides.clear()
