# marketplace/api/dependencies.py
from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from marketplace.data.database import get_session_factory
from marketplace.services.cart_service import CartService
from marketplace.services.notification_service import NotificationService
from marketplace.services.order_service import OrderService
from marketplace.services.stock_policy import StockPolicy, get_stock_policy
from marketplace.utils.settings import CART_STOCK_POLICY
from marketplace.services.telemetry import LoggingTelemetry, Telemetry


def get_cart_stock_policy() -> StockPolicy:
    return get_stock_policy(CART_STOCK_POLICY)


def get_cart_telemetry() -> Telemetry:
    return LoggingTelemetry()


def get_order_telemetry() -> Telemetry:
    return NotificationService()


def get_cart_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    stock_policy: StockPolicy = Depends(get_cart_stock_policy),
    telemetry: Telemetry = Depends(get_cart_telemetry),
) -> CartService:
    return CartService(session_factory, stock_policy=stock_policy, telemetry=telemetry)


def get_order_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    telemetry: Telemetry = Depends(get_order_telemetry),
) -> OrderService:
    return OrderService(session_factory, telemetry=telemetry)
