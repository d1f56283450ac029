# storefront/services/checkout_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.models.cart import CART_ACTIVE, CART_COMPLETED
from storefront.domain.errors import CartNotFound, CartNotActive, CartEmpty, NothingPurchasable
from storefront.domain.mappers import purchase_to_dict, ticket_to_dict
from storefront.domain.identity import CurrentUser
from storefront.domain.purchase import ProcessedLine, NotProcessedLine, PurchaseResult
from storefront.repos.cart_repo import CartRepo
from storefront.repos.inventory_repo import InventoryRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.notification_service import NotificationService
from storefront.services.ticket_service import TicketService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Turns an active cart into a purchase.

    Stock was reserved when lines were added, so checkout does not take
    anything from the inventory. It only decides, line by line, which
    reservations are kept and which are given back because the live stock
    no longer covers them.
    """

    def __init__(self, db: Session, ticket_service: TicketService | None = None):
        self.carts = CartRepo(db)
        self.inventory = InventoryRepo(db)
        self.products = ProductRepo(db)
        self.tickets = ticket_service or TicketService(db)
        self.notification_service = NotificationService()

    def _purchasable_cart(self, cart_id: int):
        cart = self.carts.get_cart(cart_id)
        if not cart:
            raise CartNotFound(f"Cart {cart_id} not found")

        if cart.status != CART_ACTIVE:
            raise CartNotActive(f"Cart {cart_id} is {cart.status}")

        if not self.carts.get_cart_items(cart_id):
            raise CartEmpty(f"Cart {cart_id} is empty")

        return cart

    def _reconcile(self, cart_id: int) -> PurchaseResult:
        """
        Splits lines into processed / not processed against live stock.
        Gives back the reservation of not processed lines and drops them,
        completes the cart only if every line was processed. Flushes, never commits.
        """
        processed = []
        not_processed = []

        for item in self.carts.get_cart_items(cart_id):
            product_id, quantity, price = item.product_id, item.quantity, item.price

            # live stock, other carts may have taken units since the line was added
            product = self.products.get_product(product_id)
            available = self.inventory.get_stock(product_id) or 0

            if product is not None and available >= quantity:
                processed.append(
                    ProcessedLine(
                        product_id=product_id,
                        title=product.title,
                        quantity=quantity,
                        price=price,
                        subtotal=price * quantity,
                    )
                )
                continue

            not_processed.append(
                NotProcessedLine(
                    product_id=product_id,
                    title=product.title if product else None,
                    requested_quantity=quantity,
                    available_stock=available,
                )
            )

            if product is not None:
                self.inventory.increment(product_id, quantity)
            self.carts.remove_line(cart_id, product_id)

            logger.info(
                f"Cart {cart_id}: product {product_id} not processed, "
                f"requested {quantity}, available {available}"
            )

        if not not_processed:
            self.carts.set_status(cart_id, CART_COMPLETED)

        return PurchaseResult(
            cart_id=cart_id,
            processed=tuple(processed),
            not_processed=tuple(not_processed),
            total_amount=sum((p.subtotal for p in processed), Decimal("0.00")),
        )

    def purchase(self, cart_id: int) -> PurchaseResult:
        """
        Reconcile the cart against live stock and commit the outcome.

        1. Validates the cart (exists, active, not empty)
        2. Splits lines into processed / not processed
        3. Returns reserved stock of not processed lines and drops them
        4. Completes the cart only if every line was processed
        """
        self._purchasable_cart(cart_id)

        try:
            result = self._reconcile(cart_id)
            self.carts.commit()
        except Exception as e:
            logger.error(f"Purchase of cart {cart_id} failed: {e}")
            self.carts.rollback()
            raise

        logger.info(
            f"Cart {cart_id} purchased: {len(result.processed)} processed, "
            f"{len(result.not_processed)} not processed, total {result.total_amount}"
        )
        return result

    def checkout(self, cart_id: int, purchaser: CurrentUser) -> Dict[str, Any]:
        """
        Purchase + ticket in one transaction. A partial purchase is a success
        with a non-empty not processed list, nothing processed is an error.
        """
        cart = self.carts.get_cart(cart_id)
        if not cart:
            raise CartNotFound(f"Cart {cart_id} not found")

        if cart.user_id != purchaser.id:
            raise PermissionError("No permission to purchase this cart")

        self._purchasable_cart(cart_id)

        ticket = None
        try:
            result = self._reconcile(cart_id)
            if result.processed:
                ticket = self.tickets.add_ticket(
                    amount=result.total_amount,
                    purchaser_email=purchaser.email,
                    cart_id=cart_id,
                )
            # with nothing processed the released reservations are still committed
            self.carts.commit()
        except Exception as e:
            logger.error(f"Checkout of cart {cart_id} failed: {e}")
            self.carts.rollback()
            raise

        if ticket is None:
            raise NothingPurchasable(not_processed=result.not_processed)

        logger.info(f"Cart {cart_id} checked out, ticket {ticket.code}, total {result.total_amount}")

        self.notification_service.send_purchase_notification(
            ticket.purchaser, ticket.code, str(ticket.amount), result.partial
        )

        body = purchase_to_dict(result)
        body.update(
            ticket=ticket_to_dict(ticket),
            partial=result.partial,
            cart_status=self.carts.get_cart(cart_id).status,
        )
        return body
