#storefront/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Index, text
from sqlalchemy.orm import relationship

from storefront.data.database import Base

CART_ACTIVE = "active"
CART_COMPLETED = "completed"
CART_CANCELLED = "cancelled"
CART_STATUSES = (CART_ACTIVE, CART_COMPLETED, CART_CANCELLED)


def _now():
    return datetime.now(timezone.utc)


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=CART_ACTIVE)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )

    # one active cart per user
    __table_args__ = (
        Index(
            "uq_carts_user_active",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )
