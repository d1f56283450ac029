# storefront/api/routers/products.py
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.api.deps import require_role
from storefront.api.errors import http_error
from storefront.data.database import get_db
from storefront.domain.schemas import ProductCreate, ProductUpdate, ProductOut, ProductPage, RestockIn
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])

admin = require_role("admin")


def get_service(db: Session):
    return ProductService(db)


@router.get("/", response_model=ProductPage)
def list_products(
    category: str | None = None,
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    in_stock: bool = False,
    sort: str = Query("newest", pattern="^(newest|oldest|price_asc|price_desc|title_asc|title_desc)$"),
    limit: int | None = Query(None, gt=0, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return get_service(db).list_products(
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock_only=in_stock,
        sort=sort,
        limit=limit,
        offset=offset,
    )


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        return get_service(db).get_product(product_id)
    except LookupError as e:
        raise http_error(e)


@router.post("/", response_model=ProductOut, status_code=201, dependencies=[Depends(admin)])
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    try:
        return get_service(db).create_product(payload)
    except ValueError as e:
        raise http_error(e)


@router.patch("/{product_id}", response_model=ProductOut, dependencies=[Depends(admin)])
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    try:
        return get_service(db).update_product(product_id, payload)
    except LookupError as e:
        raise http_error(e)


@router.post("/{product_id}/restock", response_model=ProductOut, dependencies=[Depends(admin)])
def restock_product(product_id: int, payload: RestockIn, db: Session = Depends(get_db)):
    try:
        return get_service(db).restock(product_id, payload.quantity)
    except (ValueError, LookupError) as e:
        raise http_error(e)


@router.delete("/{product_id}", status_code=204, dependencies=[Depends(admin)])
def delete_product(product_id: int, db: Session = Depends(get_db)):
    try:
        get_service(db).delete_product(product_id)
    except LookupError as e:
        raise http_error(e)
    return Response(status_code=204)
