import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import BUYER_ID, KETTLE_ID, LAMP_ID, SELLER_ID, order_request
from marketplace.data.models import CartItemModel, CartModel
from marketplace.data.unit_of_work import UnitOfWork, translate_db_error
from marketplace.domain.exceptions import (
    ConflictRetryExhausted,
    InvalidQuantity,
    SerializationConflict,
    TransientStoreError,
)
from marketplace.services.cart_service import CartService
from marketplace.services.order_service import OrderService
from marketplace.utils.retry import tx_retry


class FakePgError(Exception):

    def __init__(self, pgcode, message="pg error"):
        super().__init__(message)
        self.pgcode = pgcode


def _cart_count(session_factory) -> int:
    with session_factory() as session:
        return session.query(CartModel).count()


class TestTranslateDbError:

    def test_sqlite_lock_is_conflict(self):
        exc = OperationalError("UPDATE products", {}, sqlite3.OperationalError("database is locked"))
        assert isinstance(translate_db_error(exc), SerializationConflict)

    @pytest.mark.parametrize("pgcode", ["40001", "40P01"])
    def test_postgres_serialization_failure_is_conflict(self, pgcode):
        exc = OperationalError("UPDATE products", {}, FakePgError(pgcode))
        assert isinstance(translate_db_error(exc), SerializationConflict)

    def test_unique_violation_is_conflict(self):
        exc = IntegrityError("INSERT", {}, sqlite3.IntegrityError("UNIQUE constraint failed: carts.user_id"))
        assert isinstance(translate_db_error(exc), SerializationConflict)
        pg = IntegrityError("INSERT", {}, FakePgError("23505"))
        assert isinstance(translate_db_error(pg), SerializationConflict)

    def test_other_integrity_errors_pass_through(self):
        exc = IntegrityError("INSERT", {}, sqlite3.IntegrityError("NOT NULL constraint failed: carts.user_id"))
        assert translate_db_error(exc) is None

    def test_connectivity_is_transient(self):
        exc = OperationalError("SELECT 1", {}, sqlite3.OperationalError("unable to open database file"))
        assert isinstance(translate_db_error(exc), TransientStoreError)

    def test_non_database_errors_ignored(self):
        assert translate_db_error(ValueError("nope")) is None


class TestUnitOfWork:

    def test_commit_persists(self, session_factory):
        with UnitOfWork(session_factory) as uow:
            uow.session.add(CartModel(user_id=BUYER_ID))
            uow.commit()
        assert _cart_count(session_factory) == 1

    def test_no_commit_rolls_back(self, session_factory):
        with UnitOfWork(session_factory) as uow:
            uow.session.add(CartModel(user_id=BUYER_ID))
            uow.session.flush()
        assert _cart_count(session_factory) == 0

    def test_exception_rolls_back_and_propagates(self, session_factory):
        with pytest.raises(InvalidQuantity):
            with UnitOfWork(session_factory) as uow:
                uow.session.add(CartModel(user_id=BUYER_ID))
                uow.session.flush()
                raise InvalidQuantity(0)
        assert _cart_count(session_factory) == 0

    def test_duplicate_cart_translated_to_conflict(self, session_factory):
        with UnitOfWork(session_factory) as uow:
            uow.session.add(CartModel(user_id=BUYER_ID))
            uow.commit()

        with pytest.raises(SerializationConflict):
            with UnitOfWork(session_factory) as uow:
                uow.session.add(CartModel(user_id=BUYER_ID))
                uow.commit()
        assert _cart_count(session_factory) == 1

    def test_zero_quantity_row_refused_by_schema(self, session_factory):
        with pytest.raises(IntegrityError):
            with UnitOfWork(session_factory) as uow:
                cart = CartModel(user_id=BUYER_ID)
                uow.session.add(cart)
                uow.session.flush()
                uow.session.add(CartItemModel(cart_id=cart.id, product_id=LAMP_ID, quantity=0))
                uow.commit()


class TestTxRetry:

    def test_retries_conflicts_until_success(self):
        calls = []

        @tx_retry(attempts=3)
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise SerializationConflict("lost the race")
            return "ok"

        assert flaky() == "ok"
        assert len(calls) == 3

    def test_exhausted_conflicts(self):
        @tx_retry(attempts=2)
        def always_conflicting():
            raise SerializationConflict("lost the race")

        with pytest.raises(ConflictRetryExhausted) as exc_info:
            always_conflicting()
        assert exc_info.value.details["attempts"] == 2

    def test_exhausted_transient_errors_surface_as_is(self):
        calls = []

        @tx_retry(attempts=2)
        def unreachable():
            calls.append(1)
            raise TransientStoreError("db down")

        with pytest.raises(TransientStoreError):
            unreachable()
        assert len(calls) == 2

    def test_domain_errors_not_retried(self):
        calls = []

        @tx_retry(attempts=3)
        def invalid():
            calls.append(1)
            raise InvalidQuantity(0)

        with pytest.raises(InvalidQuantity):
            invalid()
        assert calls == [1]


def _dropping_first_connection(session_factory, failures: int = 1):
    """Fabryka sesji, ktorej pierwsze sesje gubia polaczenie przy execute."""
    opened = []

    def factory():
        session = session_factory()
        opened.append(session)
        if len(opened) <= failures:
            def dropped(*args, **kwargs):
                raise OperationalError(
                    "SELECT", {}, Exception("server closed the connection unexpectedly"),
                )
            session.execute = dropped
        return session

    return factory, opened


class TestReadsRetryTransientErrors:

    def test_cart_count_survives_dropped_connection(self, session_factory, telemetry):
        CartService(session_factory, telemetry=telemetry).add_to_cart(BUYER_ID, LAMP_ID, 2)
        flaky, opened = _dropping_first_connection(session_factory)

        assert CartService(flaky, telemetry=telemetry).get_cart_item_count(BUYER_ID) == 2
        assert len(opened) == 2

    def test_cart_view_survives_dropped_connection(self, session_factory, telemetry):
        CartService(session_factory, telemetry=telemetry).add_to_cart(BUYER_ID, LAMP_ID, 1)
        flaky, opened = _dropping_first_connection(session_factory)

        view = CartService(flaky, telemetry=telemetry).get_cart(BUYER_ID)
        assert view["total_items"] == 1
        assert len(opened) == 2

    def test_order_queries_survive_dropped_connection(self, session_factory, telemetry):
        order = OrderService(session_factory, telemetry=telemetry).place_order(
            BUYER_ID, order_request(KETTLE_ID, 1),
        )

        flaky, _ = _dropping_first_connection(session_factory)
        assert OrderService(flaky, telemetry=telemetry).get_order(BUYER_ID, order["id"])["id"] == order["id"]

        flaky, _ = _dropping_first_connection(session_factory)
        assert [o["id"] for o in OrderService(flaky, telemetry=telemetry).list_buyer_orders(BUYER_ID)] == [order["id"]]

        flaky, opened = _dropping_first_connection(session_factory)
        assert len(OrderService(flaky, telemetry=telemetry).list_seller_orders(SELLER_ID)) == 1
        assert len(opened) == 2

    def test_persistent_outage_is_bounded(self, session_factory, telemetry):
        flaky, opened = _dropping_first_connection(session_factory, failures=100)

        with pytest.raises(TransientStoreError):
            CartService(flaky, telemetry=telemetry).get_cart_item_count(BUYER_ID)
        # TX_RETRY_ATTEMPTS=6 w conftest
        assert len(opened) == 6
