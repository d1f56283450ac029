# storefront/services/product_service.py
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import ProductNotFound, DuplicateProductCode
from storefront.domain.mappers import product_to_dict
from storefront.domain.schemas import ProductCreate, ProductUpdate
from storefront.repos.inventory_repo import InventoryRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """Catalog management. Stock is only changed through the inventory."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)
        self.inventory = InventoryRepo(db)

    def get_product(self, product_id: int) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(f"Product {product_id} not found")
        return product_to_dict(product)

    def list_products(self, **filters) -> Dict[str, Any]:
        products, total = self.repo.list_products(**filters)
        return {
            "products": [product_to_dict(p) for p in products],
            "total": total,
            "limit": filters.get("limit"),
            "offset": filters.get("offset", 0),
        }

    def create_product(self, payload: ProductCreate) -> Dict[str, Any]:
        code = payload.code.strip().upper()
        if self.repo.get_by_code(code):
            raise DuplicateProductCode(f"Product code {code} already exists")

        try:
            created = self.repo.create_product(ProductModel(**payload.model_dump(exclude={"code"}), code=code))
        except IntegrityError as e:
            self.repo.rollback()
            raise DuplicateProductCode(f"Product code {code} already exists") from e

        logger.info(f"Product {created.id} ({code}) created with stock {created.stock}")
        return product_to_dict(created)

    def update_product(self, product_id: int, payload: ProductUpdate) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(f"Product {product_id} not found")

        fields = payload.model_dump(exclude_unset=True)
        updated = self.repo.update_product(product, fields)

        logger.info(f"Product {product_id} updated: {sorted(fields)}")
        return product_to_dict(updated)

    def delete_product(self, product_id: int):
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(f"Product {product_id} not found")

        self.repo.delete_product(product)
        logger.info(f"Product {product_id} deleted")

    def restock(self, product_id: int, quantity: int) -> Dict[str, Any]:
        try:
            stock = self.inventory.increment(product_id, quantity)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} restocked by {quantity}, stock {stock}")
        return self.get_product(product_id)
