# storefront/domain/errors.py
"""
Error kinds raised by repos and services.

Every error carries a stable ``code`` used by the routers in the
response body. The builtin base classes decide the HTTP status family:
LookupError -> 404, ValueError -> 400 (409 for the duplicates),
RuntimeError -> 503. Ownership violations use the builtin PermissionError.
"""


class StoreError(Exception):
    code = "STORE_ERROR"
    default_message = "Store error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class NotFoundError(StoreError, LookupError):
    code = "NOT_FOUND"
    default_message = "Not found"


class ProductNotFound(NotFoundError):
    code = "PRODUCT_NOT_FOUND"
    default_message = "Product not found"


class CartNotFound(NotFoundError):
    code = "CART_NOT_FOUND"
    default_message = "Cart not found"


class LineNotFound(NotFoundError):
    code = "PRODUCT_NOT_IN_CART"
    default_message = "Product not found in the cart"


class TicketNotFound(NotFoundError):
    code = "TICKET_NOT_FOUND"
    default_message = "Ticket not found"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class InvalidQuantity(StoreError, ValueError):
    code = "INVALID_QUANTITY"
    default_message = "Quantity must be greater than 0"


class InsufficientStock(StoreError, ValueError):
    code = "INSUFFICIENT_STOCK"
    default_message = "Insufficient stock"


class NothingPurchasable(InsufficientStock):
    """No cart line could be fulfilled, no ticket was created."""

    code = "NOTHING_PURCHASABLE"
    default_message = "Not enough stock for any product in the cart"

    def __init__(self, not_processed=(), message: str | None = None):
        super().__init__(message)
        self.not_processed = list(not_processed)


class CartEmpty(StoreError, ValueError):
    code = "EMPTY_CART"
    default_message = "Cart is empty"


class CartNotActive(StoreError, ValueError):
    code = "CART_NOT_ACTIVE"
    default_message = "Cart is not active"


class DuplicateActiveCart(StoreError, ValueError):
    code = "DUPLICATE_ACTIVE_CART"
    default_message = "User already has an active cart"


class DuplicateProductCode(StoreError, ValueError):
    code = "DUPLICATE_PRODUCT_CODE"
    default_message = "Product code already exists"


class TicketCodeCollision(StoreError):
    """Candidate ticket code already taken; retried internally."""

    code = "TICKET_CODE_COLLISION"
    default_message = "Ticket code already exists"


class TicketCodeGenerationExhausted(StoreError, RuntimeError):
    code = "TICKET_CODE_EXHAUSTED"
    default_message = "Could not generate a unique ticket code"


class DuplicateEmail(StoreError, ValueError):
    code = "EMAIL_ALREADY_EXISTS"
    default_message = "A user with this email already exists"


class UserHasPurchases(StoreError, ValueError):
    """Tickets keep their cart, so a user with purchases cannot be removed."""

    code = "USER_HAS_PURCHASES"
    default_message = "User has purchases and cannot be deleted"
