"""Shared fixtures: SQLite engines, a seeded catalog and a recording telemetry fake."""

import os

# przed importem marketplace (settings czytane przy imporcie)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CART_STOCK_POLICY"] = "strict"
os.environ["TX_RETRY_ATTEMPTS"] = "6"
os.environ["TX_RETRY_WAIT_MIN"] = "0.02"
os.environ["TX_RETRY_WAIT_MAX"] = "0.5"

from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool

from marketplace.data.database import Base, build_engine, build_session_factory
from marketplace.data.models import ProductModel, UserModel
from marketplace.domain.schemas import PlaceOrderIn
from marketplace.services.cart_service import CartService
from marketplace.services.order_service import OrderService
from marketplace.services.stock_policy import DeferredStockPolicy, StrictStockPolicy
from marketplace.services.telemetry import Telemetry

SELLER_ID = 1
BUYER_ID = 42
OTHER_BUYER_ID = 7

LAMP_ID = 1        # stock 10, 25.00
NOTEBOOK_ID = 5    # stock 3, 12.50 -> 10.00
KETTLE_ID = 9      # stock 5, 40.00
INACTIVE_ID = 11
SOLD_ID = 13


class RecordingTelemetry(Telemetry):

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def merge_completed(self, user_id, cart_id, added, updated):
        self.events.append(("merge_completed", user_id, cart_id, added, updated))

    def stock_conflict_detected(self, product_id, requested, available, source):
        self.events.append(("stock_conflict_detected", product_id, requested, available, source))

    def order_placed(self, order):
        self.events.append(("order_placed", order["id"]))

    def named(self, name: str) -> list[tuple]:
        return [e for e in self.events if e[0] == name]


def _catalog() -> list:
    return [
        UserModel(id=SELLER_ID, name="Seller"),
        UserModel(id=BUYER_ID, name="Buyer"),
        UserModel(id=OTHER_BUYER_ID, name="Other buyer"),
        ProductModel(
            id=LAMP_ID, user_id=SELLER_ID, title="Desk lamp",
            stock=10, original_price=Decimal("25.00"),
        ),
        ProductModel(
            id=NOTEBOOK_ID, user_id=SELLER_ID, title="Notebook",
            stock=3, original_price=Decimal("12.50"), discounted_price=Decimal("10.00"),
        ),
        ProductModel(
            id=KETTLE_ID, user_id=SELLER_ID, title="Kettle",
            stock=5, original_price=Decimal("40.00"),
        ),
        ProductModel(
            id=INACTIVE_ID, user_id=SELLER_ID, title="Old radio",
            stock=4, original_price=Decimal("30.00"), is_active=False,
        ),
        ProductModel(
            id=SOLD_ID, user_id=SELLER_ID, title="Bicycle",
            stock=0, original_price=Decimal("150.00"), is_sold=True,
        ),
    ]


def _seed(session_factory) -> None:
    with session_factory() as session:
        session.add_all(_catalog())
        session.commit()


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    factory = build_session_factory(engine)
    _seed(factory)
    yield factory
    engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    """Plik zamiast pamieci: osobne polaczenia dla watkow."""
    engine = build_engine(f"sqlite:///{tmp_path / 'marketplace.db'}")
    Base.metadata.create_all(engine)
    factory = build_session_factory(engine)
    _seed(factory)
    yield factory
    engine.dispose()


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def cart_service(session_factory, telemetry):
    return CartService(session_factory, stock_policy=StrictStockPolicy(), telemetry=telemetry)


@pytest.fixture
def deferred_cart_service(session_factory, telemetry):
    return CartService(session_factory, stock_policy=DeferredStockPolicy(), telemetry=telemetry)


@pytest.fixture
def order_service(session_factory, telemetry):
    return OrderService(session_factory, telemetry=telemetry)


def order_request(product_id: int = KETTLE_ID, quantity: int = 1, **overrides) -> PlaceOrderIn:
    data = {
        "product_id": product_id,
        "quantity": quantity,
        "whatsapp_number": "+233200000000",
        "call_number": "+233200000001",
        "hall": "Commonwealth Hall",
        "message": "Evening delivery please",
    }
    data.update(overrides)
    return PlaceOrderIn(**data)


def stock_of(session_factory, product_id: int) -> int:
    with session_factory() as session:
        return session.get(ProductModel, product_id).stock


def product_of(session_factory, product_id: int) -> ProductModel:
    with session_factory() as session:
        return session.get(ProductModel, product_id)
