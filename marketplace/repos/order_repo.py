# marketplace/repos/order_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from marketplace.data.models import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(selectinload(OrderModel.items))
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_by_buyer(self, buyer_id: int) -> List[OrderModel]:
        return self._list(OrderModel.buyer_id == buyer_id)

    def list_by_seller(self, seller_id: int) -> List[OrderModel]:
        return self._list(OrderModel.seller_id == seller_id)

    def _list(self, criterion) -> List[OrderModel]:
        stmt = (
            select(OrderModel)
            .where(criterion)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())
