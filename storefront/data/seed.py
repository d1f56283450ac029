# storefront/data/seed.py
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CATALOG = [
    {"title": "Keyboard", "description": "Mechanical keyboard, 87 keys", "code": "KB-087",
     "price": Decimal("199.99"), "stock": 25, "category": "peripherals"},
    {"title": "Mouse", "description": "Wireless optical mouse", "code": "MS-100",
     "price": Decimal("49.50"), "stock": 60, "category": "peripherals"},
    {"title": "Monitor", "description": "27 inch IPS monitor", "code": "MN-270",
     "price": Decimal("899.00"), "stock": 10, "category": "displays"},
]


def seed(db: Session) -> int:
    # only seed an empty catalog
    if db.execute(select(ProductModel.id).limit(1)).first():
        return 0

    for data in CATALOG:
        db.add(ProductModel(**data))
    db.commit()

    logger.info(f"Seeded {len(CATALOG)} products")
    return len(CATALOG)
