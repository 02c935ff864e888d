from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Text
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from marketplace.data.database import Base

ORDER_STATUS_PENDING = "PENDING"


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String, nullable=False, default=ORDER_STATUS_PENDING)  # PENDING, CONFIRMED, COMPLETED, CANCELLED
    currency = Column(String(3), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)

    # kontakt do dostawy
    whatsapp_number = Column(String, nullable=False)
    call_number = Column(String, nullable=False)
    hall = Column(String, nullable=True)
    buyer_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    # snapshot z chwili zamowienia, nie liczony ponownie z produktu
    unit_price = Column(Numeric(10, 2), nullable=False)
    product_name = Column(String, nullable=False)

    order = relationship("OrderModel", back_populates="items")
