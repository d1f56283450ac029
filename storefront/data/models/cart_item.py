from sqlalchemy import Column, Integer, ForeignKey, Numeric, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    # unit price snapshot taken when the line was added
    price = Column(Numeric(10, 2), nullable=False)

    cart = relationship("CartModel", back_populates="items")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="u_cart_product"),
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )
