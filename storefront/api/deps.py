# storefront/api/deps.py
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import UserNotFound
from storefront.domain.identity import CurrentUser
from storefront.services.user_service import UserService


def get_current_user(
    x_user_id: int | None = Header(None),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Identity comes from the authentication layer in front of this service,
    which forwards the authenticated user id in the X-User-Id header.
    """
    if x_user_id is None:
        raise HTTPException(status_code=401, detail={"message": "Missing user identity", "code": "UNAUTHENTICATED"})

    try:
        return UserService(db).resolve_identity(x_user_id)
    except UserNotFound:
        raise HTTPException(status_code=401, detail={"message": "Unknown user", "code": "UNAUTHENTICATED"})


def require_role(*roles: str):
    def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail={"message": "Insufficient role", "code": "FORBIDDEN"})
        return user

    return checker
