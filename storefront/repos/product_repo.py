# storefront/repos/product_repo.py
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel

_SORTS = {
    "newest": (ProductModel.created_at.desc(), ProductModel.id.desc()),
    "oldest": (ProductModel.created_at.asc(), ProductModel.id.asc()),
    "price_asc": (ProductModel.price.asc(), ProductModel.id.asc()),
    "price_desc": (ProductModel.price.desc(), ProductModel.id.asc()),
    "title_asc": (ProductModel.title.asc(), ProductModel.id.asc()),
    "title_desc": (ProductModel.title.desc(), ProductModel.id.asc()),
}


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_by_code(self, code: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(ProductModel.code == code.strip().upper())
        ).scalar_one_or_none()

    def list_products(
        self,
        category: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        in_stock_only: bool = False,
        sort: str = "newest",
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[ProductModel], int]:
        stmt = select(ProductModel)
        if category:
            stmt = stmt.where(ProductModel.category == category)
        if min_price is not None:
            stmt = stmt.where(ProductModel.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(ProductModel.price <= max_price)
        if in_stock_only:
            stmt = stmt.where(ProductModel.stock > 0)

        total = self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()

        stmt = stmt.order_by(*_SORTS.get(sort, _SORTS["newest"])).offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        return list(self.db.execute(stmt).scalars().all()), total

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update_product(self, product: ProductModel, fields: dict) -> ProductModel:
        for name, value in fields.items():
            setattr(product, name, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product: ProductModel):
        self.db.delete(product)
        self.db.commit()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
