# storefront/api/routers/users.py
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, require_role
from storefront.api.errors import http_error
from storefront.data.database import get_db
from storefront.domain.identity import CurrentUser
from storefront.domain.schemas import UserCreate, UserRegister, UserUpdate, UserRead
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

admin = require_role("admin")


def get_service(db: Session):
    return UserService(db)


@router.post("/", response_model=UserRead, status_code=201)
def signup(payload: UserCreate, db: Session = Depends(get_db)):
    """
    Public signup, the account always gets the "user" role.
    """
    try:
        return get_service(db).create_user(payload)
    except ValueError as e:
        raise http_error(e)


@router.post("/register", response_model=UserRead, status_code=201, dependencies=[Depends(admin)])
def register(payload: UserRegister, db: Session = Depends(get_db)):
    try:
        return get_service(db).create_user(payload)
    except ValueError as e:
        raise http_error(e)


@router.get("/", response_model=List[UserRead], dependencies=[Depends(admin)])
def list_users(
    role: str | None = Query(None, pattern="^(user|admin)$"),
    db: Session = Depends(get_db),
):
    return get_service(db).list_users(role)


#own account or admin
@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, actor: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return get_service(db).get_user(user_id, actor)
    except (LookupError, PermissionError) as e:
        raise http_error(e)


@router.patch("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    actor: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return get_service(db).update_user(user_id, payload, actor)
    except (ValueError, LookupError, PermissionError) as e:
        raise http_error(e)


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: int, actor: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        get_service(db).delete_user(user_id, actor)
    except (ValueError, LookupError, PermissionError) as e:
        raise http_error(e)
    return Response(status_code=204)
