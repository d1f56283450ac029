# storefront/repos/cart_repo.py
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel, CART_ACTIVE, CART_STATUSES
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import CartNotFound, LineNotFound, DuplicateActiveCart


def lines_total(items) -> Decimal:
    return sum((i.price * i.quantity for i in items), Decimal("0.00"))


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    #queries
    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_active_cart(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(
                CartModel.user_id == user_id,
                CartModel.status == CART_ACTIVE,
            )
        ).scalar_one_or_none()

    def get_carts_by_user(self, user_id: int, status: str | None = None) -> list[CartModel]:
        stmt = select(CartModel).where(CartModel.user_id == user_id)
        if status:
            stmt = stmt.where(CartModel.status == status)
        return list(self.db.execute(stmt.order_by(CartModel.id.desc())).scalars().all())

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars().all()
        )

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    #commands
    def create_cart(self, user_id: int) -> CartModel:
        if self.get_active_cart(user_id):
            raise DuplicateActiveCart(f"User {user_id} already has an active cart")

        cart = CartModel(user_id=user_id, status=CART_ACTIVE, total_price=Decimal("0.00"))
        self.db.add(cart)
        try:
            self.db.flush()
        except IntegrityError as e:
            # partial unique index on (user_id) where status = 'active'
            raise DuplicateActiveCart(f"User {user_id} already has an active cart") from e
        return cart

    def upsert_line(self, cart_id: int, product_id: int, quantity: int, unit_price: Decimal) -> CartModel:
        cart = self._require_cart(cart_id)
        item = self.get_cart_item(cart_id, product_id)

        if item:
            # zostaw pierwotna cene (snapshot)
            item.quantity += quantity
        else:
            self.db.add(
                CartItemModel(
                    cart_id=cart_id,
                    product_id=product_id,
                    quantity=quantity,
                    price=unit_price,
                )
            )

        self.db.flush()
        return self._recalculate(cart)

    def set_line_quantity(self, cart_id: int, product_id: int, quantity: int) -> CartModel:
        cart = self._require_cart(cart_id)
        item = self.get_cart_item(cart_id, product_id)
        if not item:
            raise LineNotFound(f"Product {product_id} not found in cart {cart_id}")

        item.quantity = quantity
        self.db.flush()
        return self._recalculate(cart)

    def remove_line(self, cart_id: int, product_id: int) -> CartModel:
        cart = self._require_cart(cart_id)
        item = self.get_cart_item(cart_id, product_id)
        if item:
            self.db.delete(item)
            self.db.flush()
        return self._recalculate(cart)

    def clear(self, cart_id: int) -> CartModel:
        cart = self._require_cart(cart_id)
        for item in self.get_cart_items(cart_id):
            self.db.delete(item)
        self.db.flush()
        return self._recalculate(cart)

    def set_status(self, cart_id: int, status: str) -> CartModel:
        if status not in CART_STATUSES:
            raise ValueError(f"Unknown cart status: {status}")

        cart = self._require_cart(cart_id)
        cart.status = status
        self.db.flush()
        return cart

    def delete_cart(self, cart_id: int):
        # lines go with the cart, delete-orphan cascade
        self.db.delete(self._require_cart(cart_id))
        self.db.flush()

    def recalculate_total(self, cart_id: int) -> Decimal:
        return self._recalculate(self._require_cart(cart_id)).total_price

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def _require_cart(self, cart_id: int) -> CartModel:
        cart = self.get_cart(cart_id)
        if not cart:
            raise CartNotFound(f"Cart {cart_id} not found")
        return cart

    def _recalculate(self, cart: CartModel) -> CartModel:
        cart.total_price = lines_total(self.get_cart_items(cart.id))
        self.db.flush()
        return cart
