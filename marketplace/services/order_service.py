# marketplace/services/order_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import sessionmaker

from marketplace.data.database import SessionLocal
from marketplace.data.models import OrderItemModel, OrderModel
from marketplace.data.models.order import ORDER_STATUS_PENDING
from marketplace.data.unit_of_work import UnitOfWork
from marketplace.domain.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    OrderAccessDenied,
    OrderNotFound,
    ProductNotFound,
    ProductSoldOut,
    SelfPurchaseForbidden,
)
from marketplace.domain.schemas import PlaceOrderIn
from marketplace.repos.order_repo import OrderRepo
from marketplace.repos.product_repo import ProductRepo
from marketplace.services.formatting import effective_price, format_order
from marketplace.services.telemetry import LoggingTelemetry, Telemetry
from marketplace.utils.retry import tx_retry
from marketplace.utils.settings import ORDER_CURRENCY
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Separacja od CartService - zamowienie powstaje z bezposredniego zakupu produktu.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        telemetry: Telemetry | None = None,
        currency: str = ORDER_CURRENCY,
    ):
        self.session_factory = session_factory
        self.telemetry = telemetry or LoggingTelemetry()
        self.currency = currency

    @tx_retry()
    def place_order(self, buyer_id: int, request: PlaceOrderIn) -> Dict[str, Any]:
        """
        Use Case: zlozenie zamowienia.

        1. Weryfikuje produkt (istnieje, aktywny, nie wlasny, nie wyprzedany, wystarczy stanu)
        2. Snapshot ceny i nazwy produktu
        3. W jednej transakcji: warunkowe zdjecie ze stanu + zamowienie z pozycja
        4. Powiadomienie (telemetria) po commicie
        """
        quantity = request.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidQuantity(quantity)

        with UnitOfWork(self.session_factory) as uow:
            products = ProductRepo(uow.session)
            orders = OrderRepo(uow.session)

            product = products.get_product(request.product_id)

            if not product or not product.is_active:
                raise ProductNotFound(request.product_id)

            if product.user_id == buyer_id:
                raise SelfPurchaseForbidden(product.id)

            if product.is_sold or product.stock <= 0:
                raise ProductSoldOut(product.id)

            if quantity > product.stock:
                self.telemetry.stock_conflict_detected(product.id, quantity, product.stock, source="order")
                raise InsufficientStock(product.id, quantity, product.stock)

            read_stock = product.stock
            unit_price = effective_price(product)
            total_amount = unit_price * quantity

            # stan sprawdzany jeszcze raz przez baze w samym UPDATE
            if not products.decrement_stock(product.id, quantity):
                current = products.get_product(product.id, refresh=True)
                available = current.stock if current else 0
                logger.warning(
                    f"Wyscig o produkt {product.id}: odczytano {read_stock}, aktualnie {available}"
                )
                self.telemetry.stock_conflict_detected(product.id, quantity, available, source="order")
                raise InsufficientStock(product.id, quantity, available)

            order = OrderModel(
                buyer_id=buyer_id,
                seller_id=product.user_id,
                status=ORDER_STATUS_PENDING,
                currency=self.currency,
                total_amount=total_amount,
                whatsapp_number=request.whatsapp_number,
                call_number=request.call_number,
                hall=request.hall,
                buyer_message=request.message,
                items=[
                    OrderItemModel(
                        product_id=product.id,
                        quantity=quantity,
                        unit_price=unit_price,
                        product_name=product.title,
                    )
                ],
            )
            created = orders.create_order(order)
            uow.commit()

            view = format_order(orders.get_order(created.id))

        logger.info(f"Order {view['id']} created, product {request.product_id} stock -{quantity}")
        self.telemetry.order_placed(view)
        return view

    @tx_retry()
    def get_order(self, user_id: int, order_id: int) -> Dict[str, Any]:
        """
        Use Case: pobranie zamowienia (Query), tylko kupujacy albo sprzedawca.
        """
        with UnitOfWork(self.session_factory) as uow:
            order = OrderRepo(uow.session).get_order(order_id)

            if not order:
                raise OrderNotFound(order_id)

            if user_id not in (order.buyer_id, order.seller_id):
                raise OrderAccessDenied(order_id)

            return format_order(order)

    @tx_retry()
    def list_buyer_orders(self, user_id: int) -> List[Dict[str, Any]]:
        with UnitOfWork(self.session_factory) as uow:
            return [format_order(o) for o in OrderRepo(uow.session).list_by_buyer(user_id)]

    @tx_retry()
    def list_seller_orders(self, user_id: int) -> List[Dict[str, Any]]:
        with UnitOfWork(self.session_factory) as uow:
            return [format_order(o) for o in OrderRepo(uow.session).list_by_seller(user_id)]
