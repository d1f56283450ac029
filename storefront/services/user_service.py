from typing import List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from storefront.data.models.cart import CART_ACTIVE
from storefront.data.models.user import UserModel
from storefront.domain.errors import DuplicateEmail, ProductNotFound, UserHasPurchases, UserNotFound
from storefront.domain.identity import CurrentUser
from storefront.repos.cart_repo import CartRepo
from storefront.repos.inventory_repo import InventoryRepo
from storefront.repos.ticket_repo import TicketRepo
from storefront.repos.user_repo import UserRepo
from storefront.domain.schemas import UserCreate, UserRegister, UserUpdate, UserRead
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """
    Users are identity only: an email for tickets and a role for access.
    Public signup always gives the "user" role, other roles go through an admin.
    """

    def __init__(self, db: Session):
        self.repo = UserRepo(db)
        self.carts = CartRepo(db)
        self.inventory = InventoryRepo(db)
        self.tickets = TicketRepo(db)

    #query - odczyt
    def get_user(self, user_id: int, actor: CurrentUser | None = None) -> UserRead:
        return UserRead.model_validate(self._require_user(user_id, actor))

    def list_users(self, role: str | None = None) -> List[UserRead]:
        return [UserRead.model_validate(u) for u in self.repo.list_users(role)]

    def resolve_identity(self, user_id: int) -> CurrentUser:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound(f"User {user_id} not found")
        return CurrentUser(id=user.id, email=user.email, role=user.role)

    #commands - zapis
    def create_user(self, payload: UserCreate) -> UserRead:
        role = payload.role if isinstance(payload, UserRegister) else "user"
        email = payload.email.strip().lower()
        if self.repo.get_by_email(email):
            raise DuplicateEmail(f"User with email {email} already exists")

        try:
            created = self.repo.create_user(UserModel(name=payload.name, email=email, role=role))
        except IntegrityError as e:
            self.repo.rollback()
            raise DuplicateEmail(f"User with email {email} already exists") from e

        logger.info(f"User {created.id} created with role {role}")
        return UserRead.model_validate(created)

    def update_user(self, user_id: int, payload: UserUpdate, actor: CurrentUser) -> UserRead:
        user = self._require_user(user_id, actor)
        fields = payload.model_dump(exclude_unset=True, exclude_none=True)

        if "role" in fields and actor.role != "admin":
            raise PermissionError("Only an admin can change roles")

        if "email" in fields:
            fields["email"] = fields["email"].strip().lower()
            other = self.repo.get_by_email(fields["email"])
            if other and other.id != user.id:
                raise DuplicateEmail(f"User with email {fields['email']} already exists")

        try:
            updated = self.repo.update_user(user, fields)
        except IntegrityError as e:
            self.repo.rollback()
            raise DuplicateEmail("User with this email already exists") from e

        logger.info(f"User {user_id} updated: {sorted(fields)}")
        return UserRead.model_validate(updated)

    def delete_user(self, user_id: int, actor: CurrentUser):
        """
        Removes the user with its carts. The active cart gives its
        reservations back first. Users with tickets are kept.
        """
        user = self._require_user(user_id, actor)
        carts = self.carts.get_carts_by_user(user_id)

        if self.tickets.exists_for_carts([c.id for c in carts]):
            raise UserHasPurchases(f"User {user_id} has purchases and cannot be deleted")

        try:
            for cart in carts:
                if cart.status == CART_ACTIVE:
                    for item in self.carts.get_cart_items(cart.id):
                        self._release(item.product_id, item.quantity)
                self.carts.delete_cart(cart.id)

            self.repo.delete_user(user)
            self.repo.commit()

        except Exception as e:
            logger.error(f"Failed to delete user {user_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"User {user_id} deleted with {len(carts)} carts")

    def _require_user(self, user_id: int, actor: CurrentUser | None) -> UserModel:
        if actor is not None and actor.role != "admin" and actor.id != user_id:
            raise PermissionError("No access to this user")

        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound(f"User {user_id} not found")
        return user

    def _release(self, product_id: int, quantity: int):
        try:
            self.inventory.increment(product_id, quantity)
        except ProductNotFound:
            logger.warning(f"Product {product_id} no longer exists, {quantity} units not returned")
