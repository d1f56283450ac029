# storefront/services/ticket_service.py
import secrets
import string
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Any, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.ticket import TicketModel
from storefront.domain.errors import (
    TicketCodeCollision,
    TicketCodeGenerationExhausted,
    TicketNotFound,
)
from storefront.domain.mappers import ticket_to_dict
from storefront.repos.ticket_repo import TicketRepo
from storefront.utils.retry import unique_code_retry
from storefront.utils.settings import TICKET_CODE_MAX_ATTEMPTS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_BASE36 = string.digits + string.ascii_uppercase
SUFFIX_LENGTH = 6


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 value must not be negative")
    if value == 0:
        return "0"

    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_ticket_code(now_ms: int | None = None) -> str:
    """TICKET-<base36 epoch millis>-<6 random base36 chars>"""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_BASE36) for _ in range(SUFFIX_LENGTH))
    return f"TICKET-{to_base36(now_ms)}-{suffix}"


class TicketService:
    """
    Append-only ledger of purchases.
    Codes are generated and checked against existing tickets, a collision
    means a new candidate. The number of candidates is bounded.
    """

    def __init__(
        self,
        db: Session,
        code_factory: Callable[[], str] = generate_ticket_code,
        max_attempts: int = TICKET_CODE_MAX_ATTEMPTS,
    ):
        self.db = db
        self.repo = TicketRepo(db)
        self.code_factory = code_factory
        self.max_attempts = max_attempts

    def _insert_candidate(self, fields: Dict[str, Any]) -> TicketModel:
        code = self.code_factory()
        if self.repo.code_exists(code):
            logger.warning(f"Ticket code {code} already taken, generating another")
            raise TicketCodeCollision(code)

        ticket = TicketModel(code=code, **fields)
        try:
            # savepoint, a failed insert must not undo the caller's pending work
            with self.db.begin_nested():
                self.repo.add_ticket(ticket)
        except IntegrityError:
            if not self.repo.code_exists(code):
                raise
            logger.warning(f"Ticket code {code} inserted concurrently, generating another")
            raise TicketCodeCollision(code)
        return ticket

    def _insert_unique(self, fields: Dict[str, Any]) -> TicketModel:
        try:
            return unique_code_retry(self.max_attempts)(self._insert_candidate)(fields)
        except TicketCodeCollision as e:
            logger.error(f"Ticket code generation gave up after {self.max_attempts} attempts")
            raise TicketCodeGenerationExhausted(
                f"Could not generate a unique ticket code in {self.max_attempts} attempts"
            ) from e

    def add_ticket(self, amount: Decimal, purchaser_email: str, cart_id: int) -> TicketModel:
        """Flushes the ticket into the current transaction without committing."""
        amount = Decimal(str(amount))
        if amount < 0:
            raise ValueError("Ticket amount must not be negative")

        ticket = self._insert_unique(
            {
                "cart_id": cart_id,
                "purchaser": purchaser_email.strip().lower(),
                "amount": amount,
                "purchase_datetime": datetime.now(timezone.utc),
            }
        )
        logger.info(f"Ticket {ticket.code} added for cart {cart_id}, amount {amount}")
        return ticket

    def create_with_unique_code(self, amount: Decimal, purchaser_email: str, cart_id: int) -> Dict[str, Any]:
        try:
            ticket = self.add_ticket(amount, purchaser_email, cart_id)
            self.repo.commit()
        except Exception as e:
            logger.error(f"Failed to create ticket for cart {cart_id}: {e}")
            self.repo.rollback()
            raise

        return ticket_to_dict(ticket)

    def get_by_id(self, ticket_id: int, purchaser_email: str | None = None) -> Dict[str, Any]:
        ticket = self.repo.get_ticket(ticket_id)

        if not ticket:
            raise TicketNotFound(f"Ticket {ticket_id} not found")

        if purchaser_email is not None and ticket.purchaser != purchaser_email.strip().lower():
            raise PermissionError("No access to this ticket")

        return ticket_to_dict(ticket)

    def get_by_code(self, code: str) -> Dict[str, Any]:
        ticket = self.repo.get_by_code(code.strip().upper())
        if not ticket:
            raise TicketNotFound(f"Ticket {code} not found")
        return ticket_to_dict(ticket)

    def get_by_purchaser(self, email: str) -> List[Dict[str, Any]]:
        return [ticket_to_dict(t) for t in self.repo.get_by_purchaser(email.strip().lower())]

    def get_by_date_range(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        if start > end:
            raise ValueError("Start of the range must not be after its end")
        return [ticket_to_dict(t) for t in self.repo.get_by_date_range(start, end)]
