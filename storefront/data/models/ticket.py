from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from datetime import datetime, timezone

from storefront.data.database import Base

class TicketModel(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True)
    code = Column(String(64), nullable=False, unique=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)

    purchaser = Column(String(255), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    purchase_datetime = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
