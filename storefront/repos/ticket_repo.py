# storefront/repos/ticket_repo.py
from datetime import datetime

from sqlalchemy import select, exists
from sqlalchemy.orm import Session

from storefront.data.models.ticket import TicketModel


class TicketRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_ticket(self, ticket: TicketModel) -> TicketModel:
        # flush only, the calling service commits
        self.db.add(ticket)
        self.db.flush()
        return ticket

    def get_ticket(self, ticket_id: int) -> TicketModel | None:
        return self.db.get(TicketModel, ticket_id)

    def get_by_code(self, code: str) -> TicketModel | None:
        return self.db.execute(
            select(TicketModel).where(TicketModel.code == code)
        ).scalar_one_or_none()

    def code_exists(self, code: str) -> bool:
        return self.db.execute(
            select(exists().where(TicketModel.code == code))
        ).scalar()

    def exists_for_carts(self, cart_ids: list[int]) -> bool:
        if not cart_ids:
            return False
        return self.db.execute(
            select(exists().where(TicketModel.cart_id.in_(cart_ids)))
        ).scalar()

    def get_by_purchaser(self, email: str) -> list[TicketModel]:
        return list(
            self.db.execute(
                select(TicketModel)
                .where(TicketModel.purchaser == email)
                .order_by(TicketModel.purchase_datetime.desc(), TicketModel.id.desc())
            ).scalars().all()
        )

    def get_by_date_range(self, start: datetime, end: datetime) -> list[TicketModel]:
        return list(
            self.db.execute(
                select(TicketModel)
                .where(TicketModel.purchase_datetime >= start, TicketModel.purchase_datetime <= end)
                .order_by(TicketModel.purchase_datetime.desc(), TicketModel.id.desc())
            ).scalars().all()
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
