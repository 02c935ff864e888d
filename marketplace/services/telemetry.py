# marketplace/services/telemetry.py
from typing import Any, Dict

from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class Telemetry:
    """
    Obserwator wstrzykiwany do CartService i OrderService.
    Bazowa klasa nic nie robi, nadpisuje sie tylko potrzebne punkty.
    """

    def merge_completed(self, user_id: int, cart_id: int, added: int, updated: int) -> None:
        pass

    def stock_conflict_detected(self, product_id: int, requested: int, available: int, source: str) -> None:
        pass

    def order_placed(self, order: Dict[str, Any]) -> None:
        pass


class LoggingTelemetry(Telemetry):
    def merge_completed(self, user_id, cart_id, added, updated):
        logger.info(
            f"Merge koszyka {cart_id} uzytkownika {user_id} zakonczony: "
            f"{added} dodanych, {updated} zaktualizowanych"
        )

    def stock_conflict_detected(self, product_id, requested, available, source):
        logger.warning(
            f"[{source}] Brak stanu dla produktu {product_id}: "
            f"zadano {requested}, dostepne {available}"
        )

    def order_placed(self, order):
        logger.info(
            f"Zamowienie {order['id']} zlozone przez {order['buyer_id']} "
            f"u sprzedawcy {order['seller_id']}, total {order['total_amount']} {order['currency']}"
        )
