# marketplace/services/cart_service.py
from typing import Any, Dict, Iterable, List, Tuple

from sqlalchemy.orm import Session, sessionmaker

from marketplace.data.database import SessionLocal
from marketplace.data.models import CartItemModel, CartModel, ProductModel
from marketplace.data.unit_of_work import UnitOfWork
from marketplace.domain.exceptions import (
    CartItemNotFound,
    CartNotFound,
    EmptyMergeRequest,
    InsufficientStock,
    InvalidQuantity,
    ProductNotFound,
    ProductsNotFound,
)
from marketplace.repos.cart_repo import CartRepo
from marketplace.repos.product_repo import ProductRepo
from marketplace.services.formatting import format_cart
from marketplace.services.stock_policy import StockPolicy, get_stock_policy
from marketplace.services.telemetry import Telemetry, LoggingTelemetry
from marketplace.utils.retry import tx_retry
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def _item_pairs(items: Iterable[Any]) -> List[Tuple[int, int]]:
    # przyjmuje dicty {"product_id", "quantity"}, schematy pydantic albo krotki
    pairs = []
    for item in items:
        if isinstance(item, dict):
            pairs.append((item["product_id"], item["quantity"]))
        elif isinstance(item, (tuple, list)):
            pairs.append((item[0], item[1]))
        else:
            pairs.append((item.product_id, item.quantity))
    return pairs


def coalesce_items(items: Iterable[Any]) -> Dict[int, int]:
    """
    Waliduje i skleja pozycje z anonimowego koszyka.
    Ten sam produkt podany dwa razy -> ilosci sie sumuja, kolejnosc pierwszego wystapienia.
    """
    pairs = _item_pairs(items)
    if not pairs:
        raise EmptyMergeRequest()

    merged: Dict[int, int] = {}
    for product_id, quantity in pairs:
        _require_quantity(quantity, minimum=1)
        merged[product_id] = merged.get(product_id, 0) + quantity
    return merged


def _require_quantity(quantity: Any, minimum: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < minimum:
        raise InvalidQuantity(quantity, minimum=minimum)


class CartService:
    """
    Koszyk uzytkownika: merge koszyka anonimowego, dodawanie, zmiana ilosci, usuwanie.

    Kazda komenda to jedna jednostka pracy (UnitOfWork) - walidacja, odczyt katalogu,
    zmiany i commit w jednej transakcji; konflikty wspolbieznosci -> retry calej jednostki.
    query (get_cart, get_cart_item_count) tylko odczyt.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        stock_policy: StockPolicy | None = None,
        telemetry: Telemetry | None = None,
    ):
        self.session_factory = session_factory
        self.stock_policy = stock_policy or get_stock_policy()
        self.telemetry = telemetry or LoggingTelemetry()

    #query - odczyt
    @tx_retry()
    def get_cart(self, user_id: int) -> Dict[str, Any] | None:
        with UnitOfWork(self.session_factory) as uow:
            cart = CartRepo(uow.session).get_cart_by_user(user_id)
            if not cart:
                return None
            return self._cart_view(uow.session, cart.id)

    @tx_retry()
    def get_cart_item_count(self, user_id: int) -> int:
        with UnitOfWork(self.session_factory) as uow:
            return CartRepo(uow.session).count_items(user_id)

    #commands
    @tx_retry()
    def merge_cart(self, user_id: int, items: Iterable[Any]) -> Dict[str, Any]:
        """
        Laczy koszyk anonimowy (z local storage) z koszykiem uzytkownika.

        - produkt juz jest w koszyku -> ilosci sie dodaja (nigdy nie zastepuja)
        - produktu nie ma -> nowa pozycja
        - brakujacy produkt albo odrzucenie przez polityke stanu -> nic nie jest zapisane

        Ponowny merge tego samego zadania podwaja ilosci.
        """
        requested = coalesce_items(items)
        logger.info(f"Start merge koszyka uzytkownika {user_id}, {len(requested)} produktow")

        with UnitOfWork(self.session_factory) as uow:
            carts = CartRepo(uow.session)
            products = ProductRepo(uow.session)

            cart = carts.get_or_create_cart(user_id)

            found = {p.id: p for p in products.get_products(requested)}
            missing = [pid for pid in requested if pid not in found]
            if missing:
                logger.error(f"Produkty nie istnieja: {missing}")
                raise ProductsNotFound(missing)

            added = updated = 0
            for product_id, quantity in requested.items():
                if self._apply_quantity(carts, cart, found[product_id], quantity):
                    added += 1
                else:
                    updated += 1

            carts.touch(cart)
            uow.commit()
            view = self._cart_view(uow.session, cart.id)

        self.telemetry.merge_completed(user_id, cart.id, added, updated)
        return view

    @tx_retry()
    def add_to_cart(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        _require_quantity(quantity, minimum=1)

        with UnitOfWork(self.session_factory) as uow:
            carts = CartRepo(uow.session)
            product = ProductRepo(uow.session).get_product(product_id)
            if not product:
                raise ProductNotFound(product_id)

            cart = carts.get_or_create_cart(user_id)
            self._apply_quantity(carts, cart, product, quantity)

            carts.touch(cart)
            uow.commit()

            logger.info(f"Produkt {product_id} (x{quantity}) dodany do koszyka {cart.id}")
            return self._cart_view(uow.session, cart.id)

    @tx_retry()
    def update_cart_item(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        """quantity 0 usuwa pozycje, wieksze nadpisuje (nie dodaje)."""
        _require_quantity(quantity, minimum=0)

        with UnitOfWork(self.session_factory) as uow:
            carts = CartRepo(uow.session)
            item = carts.get_user_cart_item(user_id, item_id, lock=True)
            if not item:
                raise CartItemNotFound(item_id)

            cart = item.cart
            if quantity == 0:
                logger.info(f"Pozycja {item_id} ustawiona na 0, usuwam z koszyka {cart.id}")
                carts.delete_cart_item(item)
            else:
                self._check_stock(item.product, quantity)
                item.quantity = quantity
                uow.session.flush()

            carts.touch(cart)
            uow.commit()
            return self._cart_view(uow.session, cart.id)

    @tx_retry()
    def remove_cart_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        with UnitOfWork(self.session_factory) as uow:
            carts = CartRepo(uow.session)
            item = carts.get_user_cart_item(user_id, item_id, lock=True)
            if not item:
                raise CartItemNotFound(item_id)

            cart = item.cart
            carts.delete_cart_item(item)
            carts.touch(cart)
            uow.commit()

            logger.info(f"Pozycja {item_id} usunieta z koszyka {cart.id}")
            return self._cart_view(uow.session, cart.id)

    @tx_retry()
    def clear_cart(self, user_id: int) -> Dict[str, Any]:
        """Usuwa wszystkie pozycje, sam koszyk zostaje."""
        with UnitOfWork(self.session_factory) as uow:
            carts = CartRepo(uow.session)
            cart = carts.get_cart_by_user(user_id, lock=True)
            if not cart:
                raise CartNotFound(user_id)

            removed = carts.clear_items(cart.id)
            carts.touch(cart)
            uow.commit()

            logger.info(f"Koszyk {cart.id} wyczyszczony, usunieto {removed} pozycji")
            return self._cart_view(uow.session, cart.id)

    # helpers
    def _apply_quantity(
        self,
        carts: CartRepo,
        cart: CartModel,
        product: ProductModel,
        quantity: int,
    ) -> bool:
        """
        Dodaje `quantity` do pozycji produktu w koszyku.
        Ilosc bazowa czytana w tej samej transakcji (z blokada wiersza), zeby nie gubic aktualizacji.
        Zwraca True gdy powstala nowa pozycja.
        """
        existing = carts.get_cart_item(cart.id, product.id, lock=True)

        if existing:
            new_quantity = existing.quantity + quantity
            self._check_stock(product, new_quantity)
            logger.info(f"Produkt {product.id}: {existing.quantity} -> {new_quantity}")
            existing.quantity = new_quantity
            carts.db.flush()
            return False

        self._check_stock(product, quantity)
        carts.add_cart_item(
            CartItemModel(cart_id=cart.id, product_id=product.id, quantity=quantity)
        )
        logger.info(f"Nowy produkt {product.id} z iloscia {quantity}")
        return True

    def _check_stock(self, product: ProductModel, requested: int) -> None:
        try:
            self.stock_policy.check(product, requested)
        except InsufficientStock as e:
            self.telemetry.stock_conflict_detected(e.product_id, e.requested, e.available, source="cart")
            raise

    def _cart_view(self, session: Session, cart_id: int) -> Dict[str, Any]:
        cart = CartRepo(session).get_cart_with_items(cart_id)
        return format_cart(cart, self.stock_policy)
