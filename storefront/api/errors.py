# storefront/api/errors.py
from fastapi import HTTPException

from storefront.domain.errors import (
    StoreError,
    NotFoundError,
    DuplicateActiveCart,
    DuplicateEmail,
    DuplicateProductCode,
    UserHasPurchases,
    NothingPurchasable,
    TicketCodeGenerationExhausted,
)


def http_error(e: Exception) -> HTTPException:
    """Translate a service error into the HTTP response the client sees."""
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail={"message": str(e), "code": "FORBIDDEN"})

    if not isinstance(e, StoreError):
        return HTTPException(status_code=400, detail={"message": str(e), "code": "BAD_REQUEST"})

    detail = {"message": str(e), "code": e.code}

    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(e, (DuplicateActiveCart, DuplicateProductCode, DuplicateEmail, UserHasPurchases)):
        return HTTPException(status_code=409, detail=detail)
    if isinstance(e, TicketCodeGenerationExhausted):
        return HTTPException(status_code=503, detail=detail)
    if isinstance(e, NothingPurchasable):
        detail["products_not_processed"] = [
            {
                "product_id": line.product_id,
                "title": line.title,
                "requested_quantity": line.requested_quantity,
                "available_stock": line.available_stock,
            }
            for line in e.not_processed
        ]
    return HTTPException(status_code=400, detail=detail)
