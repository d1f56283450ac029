from typing import Dict, Any, List
from sqlalchemy.orm import Session
from storefront.data.models.cart import CartModel, CART_ACTIVE, CART_CANCELLED
from storefront.domain.errors import (
    CartNotFound,
    CartNotActive,
    InsufficientStock,
    InvalidQuantity,
    LineNotFound,
    ProductNotFound,
)
from storefront.domain.mappers import cart_to_dict, cart_summary
from storefront.repos.cart_repo import CartRepo
from storefront.repos.inventory_repo import InventoryRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

class CartService:
    """
    Cart use cases under the reservation model:
    stock is taken from the inventory when a line is added or grown,
    and given back when a line shrinks, is removed or the cart is emptied.
    Every command is one unit of work, a failure rolls back stock and cart together.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.inventory = InventoryRepo(db)
        self.products = ProductRepo(db)

    #query - odczyt
    def get_cart(self, cart_id: int, user_id: int | None = None) -> Dict[str, Any] | None:
        cart = self.repo.get_cart(cart_id)

        if not cart:
            return None

        if user_id is not None and cart.user_id != user_id:
            raise PermissionError("No access to this cart")

        return cart_to_dict(cart, self.repo.get_cart_items(cart_id))

    def get_active_cart(self, user_id: int) -> Dict[str, Any] | None:
        cart = self.repo.get_active_cart(user_id)
        if not cart:
            return None
        return cart_to_dict(cart, self.repo.get_cart_items(cart.id))

    def get_cart_history(self, user_id: int, status: str | None = None) -> List[Dict[str, Any]]:
        return [
            cart_summary(cart, self.repo.get_cart_items(cart.id))
            for cart in self.repo.get_carts_by_user(user_id, status)
        ]

    #commands - zapis
    def add_product(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity is None or quantity <= 0:
            raise InvalidQuantity()

        product = self.products.get_product(product_id)
        if not product:
            raise ProductNotFound(f"Product {product_id} not found")

        try:
            cart = self.repo.get_active_cart(user_id)
            existing_item = self.repo.get_cart_item(cart.id, product_id) if cart else None

            # stock check uses existing + requested, only the requested part is taken
            combined = quantity + (existing_item.quantity if existing_item else 0)
            if not self.inventory.has_stock(product_id, combined):
                raise InsufficientStock(
                    f"Insufficient stock for product {product_id}: "
                    f"requested {combined} in total, available {product.stock}"
                )

            self.inventory.decrement(product_id, quantity)

            if not cart:
                cart = self.repo.create_cart(user_id)
                logger.info(f"Created cart {cart.id} for user {user_id}")

            if existing_item:
                logger.info(
                    f"Product {product_id} already in cart {cart.id}, quantity "
                    f"{existing_item.quantity} -> {existing_item.quantity + quantity}"
                )
            else:
                logger.info(f"Adding product {product_id} to cart {cart.id}")

            self.repo.upsert_line(cart.id, product_id, quantity, product.price)
            self.repo.commit()

        except Exception as e:
            logger.error(f"Failed to add product {product_id} for user {user_id}: {e}")
            self.repo.rollback()
            raise

        return self.get_cart(cart.id)

    def update_quantity(self, cart_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity is None or quantity <= 0:
            raise InvalidQuantity()

        try:
            cart = self._active_cart(cart_id)
            item = self.repo.get_cart_item(cart_id, product_id)
            if not item:
                raise LineNotFound(f"Product {product_id} not found in cart {cart_id}")

            delta = quantity - item.quantity
            if delta > 0:
                self.inventory.decrement(product_id, delta)
            elif delta < 0:
                self.inventory.increment(product_id, -delta)

            self.repo.set_line_quantity(cart.id, product_id, quantity)
            self.repo.commit()

        except Exception as e:
            logger.error(f"Failed to update product {product_id} in cart {cart_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} in cart {cart_id} set to {quantity} (delta {delta})")
        return self.get_cart(cart_id)

    def remove_product(self, cart_id: int, product_id: int) -> Dict[str, Any]:
        try:
            cart = self._active_cart(cart_id)
            item = self.repo.get_cart_item(cart_id, product_id)
            if not item:
                raise LineNotFound(f"Product {product_id} not found in cart {cart_id}")

            self._release(product_id, item.quantity)
            self.repo.remove_line(cart.id, product_id)
            self.repo.commit()

        except Exception as e:
            logger.error(f"Failed to remove product {product_id} from cart {cart_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} removed from cart {cart_id}")
        return self.get_cart(cart_id)

    def clear_cart(self, cart_id: int) -> Dict[str, Any]:
        return self._empty(cart_id, status=None)

    def cancel_cart(self, cart_id: int) -> Dict[str, Any]:
        return self._empty(cart_id, status=CART_CANCELLED)

    def _empty(self, cart_id: int, status: str | None) -> Dict[str, Any]:
        try:
            cart = self._active_cart(cart_id)
            for item in self.repo.get_cart_items(cart.id):
                self._release(item.product_id, item.quantity)

            self.repo.clear(cart.id)
            if status:
                self.repo.set_status(cart.id, status)
            self.repo.commit()

        except Exception as e:
            logger.error(f"Failed to empty cart {cart_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Cart {cart_id} emptied, status {cart.status}")
        return self.get_cart(cart_id)

    def _active_cart(self, cart_id: int) -> CartModel:
        cart = self.repo.get_cart(cart_id)
        if not cart:
            raise CartNotFound(f"Cart {cart_id} not found")
        if cart.status != CART_ACTIVE:
            raise CartNotActive(f"Cart {cart_id} is {cart.status}")
        return cart

    def _release(self, product_id: int, quantity: int):
        try:
            self.inventory.increment(product_id, quantity)
        except ProductNotFound:
            # product deleted from the catalog, nothing to give back to
            logger.warning(f"Product {product_id} no longer exists, {quantity} units not returned")
