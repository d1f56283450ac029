# storefront/repos/inventory_repo.py
from sqlalchemy import update, select
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import ProductNotFound, InsufficientStock, InvalidQuantity


def _check_amount(amount: int):
    if amount is None or amount <= 0:
        raise InvalidQuantity(f"Stock amount must be greater than 0, got {amount}")


class InventoryRepo:
    """
    Stock counts per product. Writes are flushed immediately,
    the calling service owns commit/rollback.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_stock(self, product_id: int) -> int | None:
        return self.db.execute(
            select(ProductModel.stock).where(ProductModel.id == product_id)
        ).scalar_one_or_none()

    def has_stock(self, product_id: int, quantity: int) -> bool:
        stock = self.get_stock(product_id)
        return stock is not None and quantity <= stock

    def decrement(self, product_id: int, amount: int) -> int:
        _check_amount(amount)

        # UPDATE products SET stock = stock - 3 WHERE id = 1 AND stock >= 3
        # the guard makes check + decrement a single statement
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= amount)
            .values(stock=ProductModel.stock - amount)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            stock = self.get_stock(product_id)
            if stock is None:
                raise ProductNotFound(f"Product {product_id} not found")
            raise InsufficientStock(
                f"Insufficient stock for product {product_id}: requested {amount}, available {stock}"
            )

        self._expire_stock(product_id)
        return self.get_stock(product_id)

    def increment(self, product_id: int, amount: int) -> int:
        _check_amount(amount)

        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=ProductModel.stock + amount)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            raise ProductNotFound(f"Product {product_id} not found")

        self._expire_stock(product_id)
        return self.get_stock(product_id)

    def _expire_stock(self, product_id: int):
        # rows loaded earlier in this session still hold the old count
        product = self.db.get(ProductModel, product_id)
        if product is not None:
            self.db.expire(product, ["stock"])
