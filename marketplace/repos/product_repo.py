# marketplace/repos/product_repo.py
from typing import Iterable, List

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from marketplace.data.models import ProductModel


class ProductRepo:
    """
    Katalog produktow widziany z koszyka i zamowien:
    odczyt po id / po liscie id oraz warunkowe zdjecie ze stanu.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int, refresh: bool = False) -> ProductModel | None:
        stmt = select(ProductModel).where(ProductModel.id == product_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_products(self, product_ids: Iterable[int]) -> List[ProductModel]:
        # brakujace id po prostu nie wystepuja w wyniku
        ids = list(set(product_ids))
        if not ids:
            return []
        return list(
            self.db.execute(
                select(ProductModel).where(ProductModel.id.in_(ids))
            ).scalars().all()
        )

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """
        UPDATE products SET stock = stock - q, is_sold = (stock - q <= 0)
        WHERE id = ? AND stock >= q AND NOT is_sold

        Warunek liczony przez baze na aktualnej wartosci wiersza,
        0 rows affected -> ktos inny zdazyl zabrac towar.
        """
        remaining = ProductModel.stock - quantity
        stmt = (
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.stock >= quantity,
                ProductModel.is_sold.is_(False),
            )
            .values(
                stock=remaining,
                is_sold=case((remaining <= 0, True), else_=False),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1
