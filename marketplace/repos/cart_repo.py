# marketplace/repos/cart_repo.py
from datetime import datetime, timezone
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from marketplace.data.models import CartItemModel, CartModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int, lock: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(CartModel.user_id == user_id)
        if lock:
            # SELECT ... FOR UPDATE, serializuje merge/add tego samego usera
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.get_cart_by_user(user_id, lock=True)
        if cart:
            return cart
        # rownolegly insert drugiego koszyka skonczy sie na unique(user_id)
        return self.create_cart(CartModel(user_id=user_id))

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def get_cart_with_items(self, cart_id: int) -> CartModel | None:
        stmt = (
            select(CartModel)
            .where(CartModel.id == cart_id)
            .options(selectinload(CartModel.items).selectinload(CartItemModel.product))
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cart_items(self, cart_id: int, lock: bool = False) -> List[CartItemModel]:
        stmt = select(CartItemModel).where(CartItemModel.cart_id == cart_id)
        if lock:
            stmt = stmt.with_for_update()
        return list(self.db.execute(stmt).scalars().all())

    def get_cart_item(self, cart_id: int, product_id: int, lock: bool = False) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.cart_id == cart_id,
            CartItemModel.product_id == product_id,
        )
        if lock:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_user_cart_item(self, user_id: int, item_id: int, lock: bool = False) -> CartItemModel | None:
        """Pozycja tylko jesli nalezy do koszyka danego usera."""
        stmt = (
            select(CartItemModel)
            .join(CartModel, CartItemModel.cart_id == CartModel.id)
            .where(CartItemModel.id == item_id, CartModel.user_id == user_id)
            .options(selectinload(CartItemModel.product))
        )
        if lock:
            stmt = stmt.with_for_update(of=CartItemModel)
        return self.db.execute(stmt).scalar_one_or_none()

    def count_items(self, user_id: int) -> int:
        total = self.db.execute(
            select(func.coalesce(func.sum(CartItemModel.quantity), 0))
            .join(CartModel, CartItemModel.cart_id == CartModel.id)
            .where(CartModel.user_id == user_id)
        ).scalar_one()
        return int(total)

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def clear_items(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def touch(self, cart: CartModel) -> None:
        # updated_at koszyka przy kazdej zmianie pozycji
        cart.updated_at = datetime.now(timezone.utc)
        self.db.flush()
