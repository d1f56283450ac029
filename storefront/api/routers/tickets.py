# storefront/api/routers/tickets.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import require_role
from storefront.api.errors import http_error
from storefront.data.database import get_db
from storefront.domain.identity import CurrentUser
from storefront.domain.schemas import TicketOut
from storefront.services.ticket_service import TicketService

router = APIRouter(prefix="/tickets", tags=["tickets"])


def get_service(db: Session):
    return TicketService(db)


@router.get("/", response_model=List[TicketOut])
def list_tickets(user: CurrentUser = Depends(require_role("user")), db: Session = Depends(get_db)):
    """
    Tickets of the current user, most recent first.
    """
    return get_service(db).get_by_purchaser(user.email)


@router.get("/{ticket_id}", response_model=TicketOut)
def get_ticket(ticket_id: int, user: CurrentUser = Depends(require_role("user")), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.get_by_id(ticket_id, purchaser_email=user.email)
    except (LookupError, PermissionError) as e:
        raise http_error(e)
