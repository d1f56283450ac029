#storefront/api/routers/carts.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import require_role
from storefront.api.errors import http_error
from storefront.data.database import get_db
from storefront.domain.errors import CartNotFound
from storefront.domain.identity import CurrentUser
from storefront.domain.schemas import (
    ItemIn,
    QuantityIn,
    CartOut,
    CartSummaryOut,
    PurchaseOut,
)
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/carts", tags=["carts"])

shopper = require_role("user")


def get_service(db: Session):
    return CartService(db)


def _active_cart_id(svc: CartService, user: CurrentUser) -> int:
    cart = svc.get_active_cart(user.id)
    if not cart:
        raise http_error(CartNotFound("You have no active cart"))
    return cart["cart_id"]


@router.get("/", response_model=CartOut)
def get_active_cart(user: CurrentUser = Depends(shopper), db: Session = Depends(get_db)):
    svc = get_service(db)
    cart = svc.get_active_cart(user.id)
    if not cart:
        raise http_error(CartNotFound("You have no active cart"))
    return cart


@router.get("/history", response_model=List[CartSummaryOut])
def get_cart_history(
    status: str | None = Query(None, pattern="^(active|completed|cancelled)$"),
    user: CurrentUser = Depends(shopper),
    db: Session = Depends(get_db),
):
    return get_service(db).get_cart_history(user.id, status)


@router.post("/items", response_model=CartOut)
def add_item(payload: ItemIn, user: CurrentUser = Depends(shopper), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.add_product(
            user_id=user.id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except (ValueError, LookupError, PermissionError) as e:
        raise http_error(e)


@router.put("/items/{product_id}", response_model=CartOut)
def update_item(
    product_id: int,
    payload: QuantityIn,
    user: CurrentUser = Depends(shopper),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart_id = _active_cart_id(svc, user)
    try:
        return svc.update_quantity(cart_id, product_id, payload.quantity)
    except (ValueError, LookupError) as e:
        raise http_error(e)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(product_id: int, user: CurrentUser = Depends(shopper), db: Session = Depends(get_db)):
    svc = get_service(db)
    cart_id = _active_cart_id(svc, user)
    try:
        return svc.remove_product(cart_id, product_id)
    except (ValueError, LookupError) as e:
        raise http_error(e)


@router.delete("/", response_model=CartOut)
def clear_cart(user: CurrentUser = Depends(shopper), db: Session = Depends(get_db)):
    svc = get_service(db)
    cart_id = _active_cart_id(svc, user)
    try:
        return svc.clear_cart(cart_id)
    except (ValueError, LookupError) as e:
        raise http_error(e)


@router.post("/{cart_id}/cancel", response_model=CartOut)
def cancel_cart(cart_id: int, user: CurrentUser = Depends(shopper), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        if svc.get_cart(cart_id, user.id) is None:
            raise CartNotFound(f"Cart {cart_id} not found")
        return svc.cancel_cart(cart_id)
    except (ValueError, LookupError, PermissionError) as e:
        raise http_error(e)


@router.post("/{cart_id}/purchase", response_model=PurchaseOut, status_code=201)
def purchase_cart(cart_id: int, user: CurrentUser = Depends(shopper), db: Session = Depends(get_db)):
    """
    Purchases what the live stock allows and issues a ticket.
    Lines that could not be fulfilled are listed in products_not_processed.
    """
    svc = CheckoutService(db)
    try:
        result = svc.checkout(cart_id, user)
    except (ValueError, LookupError, PermissionError, RuntimeError) as e:
        raise http_error(e)

    if result["partial"]:
        logger.info(f"Cart {cart_id} purchased partially, ticket {result['ticket']['code']}")
    return result
