# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, EmailStr, field_validator
from typing import List, Literal
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Add a product to the active cart."""

    product_id: int = Field(..., gt=0, description="Product ID (> 0)")
    quantity: int = Field(1, gt=0, description="Quantity to add (> 0)")


class QuantityIn(BaseModel):
    """Overwrite the quantity of a cart line."""

    quantity: int = Field(..., gt=0, description="New quantity (> 0)")


class CartItemOut(BaseModel):
    product_id: int
    quantity: int
    price: Decimal


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    status: str
    items: List[CartItemOut]
    total: Decimal
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CartSummaryOut(BaseModel):
    cart_id: int
    item_count: int
    total: Decimal
    status: str


class ProductCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    code: str = Field(..., min_length=1, max_length=50)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    category: str = Field(..., min_length=1, max_length=50)
    thumbnail: str | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class ProductUpdate(BaseModel):
    """Catalog fields only, stock changes go through restock or the cart."""

    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1, max_length=500)
    price: Decimal | None = Field(None, ge=0)
    category: str | None = Field(None, min_length=1, max_length=50)
    thumbnail: str | None = None


class RestockIn(BaseModel):
    quantity: int = Field(..., gt=0)


class ProductOut(BaseModel):
    id: int
    title: str
    description: str
    code: str
    price: Decimal
    stock: int
    category: str
    thumbnail: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    products: List[ProductOut]
    total: int
    limit: int | None = None
    offset: int = 0


class UserCreate(BaseModel):
    """Public signup, always creates a shopper."""

    name: str = Field(..., min_length=1, max_length=100, description="User name")
    email: EmailStr


class UserRegister(UserCreate):
    """Admin registration with a chosen role."""

    role: Literal["user", "admin"] = "user"


class UserUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    role: Literal["user", "admin"] | None = None


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class TicketOut(BaseModel):
    id: int
    code: str
    cart_id: int
    purchaser: str
    amount: Decimal
    purchase_datetime: datetime

    model_config = ConfigDict(from_attributes=True)


class ProcessedLineOut(BaseModel):
    product_id: int
    title: str
    quantity: int
    price: Decimal
    subtotal: Decimal


class NotProcessedLineOut(BaseModel):
    product_id: int
    title: str | None = None
    requested_quantity: int
    available_stock: int


class PurchaseOut(BaseModel):
    ticket: TicketOut
    partial: bool
    cart_status: str
    total_amount: Decimal
    products_processed: List[ProcessedLineOut]
    products_not_processed: List[NotProcessedLineOut]
