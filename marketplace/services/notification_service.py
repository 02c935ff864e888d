# marketplace/services/notification_service.py
from typing import Any, Dict

from kombu.exceptions import OperationalError as KombuOperationalError

from marketplace.celery_worker import celery_app
from marketplace.services.telemetry import LoggingTelemetry
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService(LoggingTelemetry):
    """
    Telemetria zamowien, ktora dodatkowo powiadamia sprzedawce i kupujacego.
    Uzywa Celery do asynchronicznego przetwarzania.
    """

    def order_placed(self, order: Dict[str, Any]) -> None:
        super().order_placed(order)
        # zamowienie juz zacommitowane, blad brokera tylko logujemy
        try:
            send_order_notification_task.delay(order["buyer_id"], order["seller_id"], order["id"])
        except (KombuOperationalError, OSError):
            logger.exception(f"Order {order['id']}: notification dispatch failed")


@celery_app.task(name="marketplace.services.notification_service.send_order_notification_task")
def send_order_notification_task(buyer_id: int, seller_id: int, order_id: int):
    """
    Celery task - w prawdziwym systemie wyslalby email/SMS/WhatsApp.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] Seller {seller_id}: new order {order_id} from buyer {buyer_id}")
    logger.info(f"[NOTIFICATION] Buyer {buyer_id}: order {order_id} is pending")

    return {"buyer_id": buyer_id, "seller_id": seller_id, "order_id": order_id, "status": "sent"}
