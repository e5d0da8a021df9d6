"""Pytest fixtures for the storefront tests."""

import pytest
from fastapi.testclient import TestClient

from api.deps import build_services
from api.main import create_app
from models.order import OrderItem, Pricing, ShippingAddress
from models.product import Category, ProductCreate
from models.user import Role
from utils.config import Settings
from utils.database import get_engine
from utils.security import create_token

GATEWAY_SECRET = "gw_secret_test"


class FakeGateway:
    """Records create_order calls and answers like the real gateway."""

    def __init__(self):
        self.calls = []

    def create_order(self, amount_minor, currency, receipt):
        self.calls.append({"amount": amount_minor, "currency": currency, "receipt": receipt})
        return {
            "id": f"gw_order_{len(self.calls)}",
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
        }


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-jwt-secret",
        gateway_key_id="gw_key_test",
        gateway_key_secret=GATEWAY_SECRET,
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def services(settings, gateway):
    engine = get_engine("sqlite://")
    yield build_services(settings, engine=engine, gateway=gateway)
    engine.dispose()


@pytest.fixture
def client(services):
    return TestClient(create_app(services))


@pytest.fixture
def alice(services):
    return services.users.create_user("Alice", "alice@ethnicwear.in", "alice-pass").as_actor()


@pytest.fixture
def bob(services):
    return services.users.create_user("Bob", "bob@ethnicwear.in", "bob-pass").as_actor()


@pytest.fixture
def admin(services):
    return services.users.create_user("Admin", "admin@ethnicwear.in", "admin-pass", role=Role.ADMIN).as_actor()


@pytest.fixture
def auth(settings):
    """Returns Authorization headers for an actor."""

    def _headers(actor):
        return {"Authorization": f"Bearer {create_token(actor, settings)}"}

    return _headers


@pytest.fixture
def saree(services):
    return services.products.create(
        ProductCreate(
            name="Banarasi Silk Saree",
            description="Handwoven silk with zari border",
            price=500,
            category=Category.SAREE,
            sizes=["Free"],
            colors=["Red", "Green"],
            images=["https://cdn.ethnicwear.in/saree.jpg"],
            stock=10,
        )
    )


@pytest.fixture
def kurti(services):
    return services.products.create(
        ProductCreate(
            name="Cotton Kurti",
            description="Block printed cotton kurti",
            price=300,
            category=Category.KURTI,
            sizes=["S", "M", "L"],
            colors=["Blue"],
            stock=25,
        )
    )


@pytest.fixture
def address():
    return ShippingAddress(address="12 MG Road", city="Jaipur", postal_code="302001", country="India")


@pytest.fixture
def make_order(services, address):
    """Stores an order for an owner with a single line item of the given total."""
    from models.payment import PaymentMethod

    def _make(owner, total=100.0, payment_method=PaymentMethod.GATEWAY):
        items = [OrderItem(product_id="prod-1", name="Saree", quantity=1, unit_price=total)]
        pricing = Pricing(items_total=total, tax_total=0, shipping_total=0, grand_total=total)
        return services.orders.create(owner.id, items, address, payment_method, pricing)

    return _make
