# marketplace/services/stock_policy.py
"""
Polityka stanu magazynowego przy zmianach koszyka.

strict   - ilosc w koszyku nie moze przekroczyc stanu, cala operacja jest wycofywana
deferred - koszyk przyjmuje dowolna ilosc, widok oznacza pozycje ponad stan;
           stan jest egzekwowany dopiero przy skladaniu zamowienia
"""
from typing import Any, Dict

from marketplace.data.models import ProductModel
from marketplace.domain.exceptions import InsufficientStock
from marketplace.utils.settings import CART_STOCK_POLICY


class StockPolicy:
    name = "base"
    reports_stock_status = False

    def check(self, product: ProductModel, requested: int) -> None:
        """Raises InsufficientStock if `requested` units of `product` can't sit in a cart."""
        raise NotImplementedError

    def stock_status(self, product: ProductModel, quantity: int) -> Dict[str, Any]:
        return {}


class StrictStockPolicy(StockPolicy):
    name = "strict"

    def check(self, product: ProductModel, requested: int) -> None:
        if requested > product.stock:
            raise InsufficientStock(product.id, requested, product.stock)


class DeferredStockPolicy(StockPolicy):
    name = "deferred"
    reports_stock_status = True

    def check(self, product: ProductModel, requested: int) -> None:
        return None

    def stock_status(self, product: ProductModel, quantity: int) -> Dict[str, Any]:
        return {
            "exceeds_stock": quantity > product.stock,
            "available_stock": product.stock,
        }


STOCK_POLICIES = {
    StrictStockPolicy.name: StrictStockPolicy,
    DeferredStockPolicy.name: DeferredStockPolicy,
}


def get_stock_policy(name: str = CART_STOCK_POLICY) -> StockPolicy:
    try:
        return STOCK_POLICIES[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown cart stock policy {name!r}, expected one of {sorted(STOCK_POLICIES)}"
        ) from None
