# storefront/domain/mappers.py
"""Pure mapping functions from ORM rows to response dicts."""
from dataclasses import asdict
from typing import Any, Dict, Iterable

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel
from storefront.data.models.ticket import TicketModel
from storefront.domain.purchase import PurchaseResult


def product_to_dict(product: ProductModel) -> Dict[str, Any]:
    return {
        "id": product.id,
        "title": product.title,
        "description": product.description,
        "code": product.code,
        "price": product.price,
        "stock": product.stock,
        "category": product.category,
        "thumbnail": product.thumbnail,
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    }


def cart_to_dict(cart: CartModel, items: Iterable[CartItemModel]) -> Dict[str, Any]:
    return {
        "cart_id": cart.id,
        "user_id": cart.user_id,
        "status": cart.status,
        "items": [
            {
                "product_id": i.product_id,
                "quantity": i.quantity,
                "price": i.price,
            }
            for i in items
        ],
        "total": cart.total_price,
        "created_at": cart.created_at,
        "updated_at": cart.updated_at,
    }


def cart_summary(cart: CartModel, items: Iterable[CartItemModel]) -> Dict[str, Any]:
    return {
        "cart_id": cart.id,
        "item_count": sum(i.quantity for i in items),
        "total": cart.total_price,
        "status": cart.status,
    }


def ticket_to_dict(ticket: TicketModel) -> Dict[str, Any]:
    return {
        "id": ticket.id,
        "code": ticket.code,
        "cart_id": ticket.cart_id,
        "purchaser": ticket.purchaser,
        "amount": ticket.amount,
        "purchase_datetime": ticket.purchase_datetime,
    }


def purchase_to_dict(result: PurchaseResult) -> Dict[str, Any]:
    return {
        "cart_id": result.cart_id,
        "products_processed": [asdict(p) for p in result.processed],
        "products_not_processed": [asdict(p) for p in result.not_processed],
        "total_amount": result.total_amount,
    }
