from sqlalchemy import select
from sqlalchemy.orm import Session
from storefront.data.models.user import UserModel

class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_email(self, email: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.email == email)
        ).scalar_one_or_none()

    def list_users(self, role: str | None = None) -> list[UserModel]:
        stmt = select(UserModel)
        if role:
            stmt = stmt.where(UserModel.role == role)
        return list(self.db.execute(stmt.order_by(UserModel.id)).scalars().all())

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_user(self, user: UserModel, fields: dict) -> UserModel:
        for name, value in fields.items():
            setattr(user, name, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete_user(self, user: UserModel):
        # flush only, deleting a user also removes carts in the same transaction
        self.db.delete(user)
        self.db.flush()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
