"""Tests for ticket codes and the ticket ledger."""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import stock_of
from storefront.data.models import TicketModel
from storefront.domain.errors import TicketCodeGenerationExhausted, TicketNotFound
from storefront.repos.cart_repo import CartRepo
from storefront.repos.inventory_repo import InventoryRepo
from storefront.services.ticket_service import TicketService, generate_ticket_code, to_base36

CODE_RE = re.compile(r"^TICKET-[0-9A-Z]+-[0-9A-Z]{6}$")


@pytest.fixture
def cart_id(db, user):
    repo = CartRepo(db)
    cart = repo.create_cart(user.id)
    repo.commit()
    return cart.id


class TestCodes:
    def test_format(self):
        assert CODE_RE.match(generate_ticket_code())

    def test_timestamp_part_is_base36(self):
        code = generate_ticket_code(now_ms=1_700_000_000_000)

        assert code.split("-")[1] == to_base36(1_700_000_000_000)
        assert int(code.split("-")[1], 36) == 1_700_000_000_000

    @pytest.mark.parametrize("value, expected", [(0, "0"), (35, "Z"), (36, "10"), (1295, "ZZ")])
    def test_base36(self, value, expected):
        assert to_base36(value) == expected

    def test_base36_rejects_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)


class TestCreate:
    def test_creates_ticket(self, db, cart_id):
        ticket = TicketService(db).create_with_unique_code(Decimal("12.50"), " Ana@Example.com ", cart_id)

        assert CODE_RE.match(ticket["code"])
        assert ticket["amount"] == Decimal("12.50")
        assert ticket["purchaser"] == "ana@example.com"
        assert ticket["cart_id"] == cart_id

    def test_many_tickets_have_unique_codes(self, db, cart_id):
        svc = TicketService(db)

        codes = {svc.create_with_unique_code(Decimal("1"), "a@example.com", cart_id)["code"] for _ in range(50)}

        assert len(codes) == 50

    def test_collision_is_retried(self, db, cart_id):
        taken = TicketService(db, code_factory=lambda: "TICKET-TAKEN-AAAAAA").create_with_unique_code(
            Decimal("1"), "a@example.com", cart_id
        )
        candidates = iter([taken["code"], taken["code"], "TICKET-FRESH-BBBBBB"])
        svc = TicketService(db, code_factory=lambda: next(candidates))

        ticket = svc.create_with_unique_code(Decimal("2"), "a@example.com", cart_id)

        assert ticket["code"] == "TICKET-FRESH-BBBBBB"

    def test_retries_are_bounded(self, db, cart_id):
        TicketService(db, code_factory=lambda: "TICKET-SAME-CCCCCC").create_with_unique_code(
            Decimal("1"), "a@example.com", cart_id
        )
        calls = []

        def factory():
            calls.append(1)
            return "TICKET-SAME-CCCCCC"

        svc = TicketService(db, code_factory=factory, max_attempts=4)

        with pytest.raises(TicketCodeGenerationExhausted):
            svc.create_with_unique_code(Decimal("1"), "a@example.com", cart_id)

        assert len(calls) == 4
        assert db.query(TicketModel).count() == 1

    def test_insert_conflict_is_treated_as_collision(self, db, cart_id):
        db.add(TicketModel(code="TICKET-RACE-AAAAAA", cart_id=cart_id, purchaser="b@example.com", amount=Decimal("1")))
        db.commit()
        codes = iter(["TICKET-RACE-AAAAAA", "TICKET-RACE-BBBBBB"])
        svc = TicketService(db, code_factory=lambda: next(codes))
        real_exists = svc.repo.code_exists
        checks = []

        def code_exists(code):
            checks.append(code)
            # the first lookup runs before the competing row is visible
            return len(checks) > 1 and real_exists(code)

        svc.repo.code_exists = code_exists

        ticket = svc.create_with_unique_code(Decimal("3"), "a@example.com", cart_id)

        assert ticket["code"] == "TICKET-RACE-BBBBBB"
        assert db.query(TicketModel).count() == 2

    def test_add_ticket_joins_the_callers_transaction(self, db, cart_id, make_product):
        product = make_product(stock=5)
        InventoryRepo(db).decrement(product.id, 2)

        TicketService(db, code_factory=lambda: "TICKET-P-CCCCCC").add_ticket(Decimal("1"), "a@example.com", cart_id)
        db.rollback()

        assert db.query(TicketModel).count() == 0
        assert stock_of(db, product.id) == 5

    def test_negative_amount_rejected(self, db, cart_id):
        with pytest.raises(ValueError):
            TicketService(db).create_with_unique_code(Decimal("-1"), "a@example.com", cart_id)


class TestQueries:
    def test_by_purchaser_most_recent_first(self, db, cart_id):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, code in enumerate(["TICKET-A-000001", "TICKET-B-000002", "TICKET-C-000003"]):
            db.add(TicketModel(code=code, cart_id=cart_id, purchaser="a@example.com",
                               amount=Decimal(i), purchase_datetime=base + timedelta(days=i)))
        db.add(TicketModel(code="TICKET-D-000004", cart_id=cart_id, purchaser="b@example.com",
                           amount=Decimal("1"), purchase_datetime=base))
        db.commit()

        tickets = TicketService(db).get_by_purchaser("A@example.com")

        assert [t["code"] for t in tickets] == ["TICKET-C-000003", "TICKET-B-000002", "TICKET-A-000001"]

    def test_by_id_and_code(self, db, cart_id):
        svc = TicketService(db, code_factory=lambda: "TICKET-X-ABCDEF")
        created = svc.create_with_unique_code(Decimal("5"), "a@example.com", cart_id)

        assert svc.get_by_id(created["id"])["code"] == "TICKET-X-ABCDEF"
        assert svc.get_by_code("ticket-x-abcdef")["id"] == created["id"]

    def test_by_id_checks_purchaser(self, db, cart_id):
        svc = TicketService(db)
        created = svc.create_with_unique_code(Decimal("5"), "a@example.com", cart_id)

        assert svc.get_by_id(created["id"], purchaser_email="a@example.com")["id"] == created["id"]
        with pytest.raises(PermissionError):
            svc.get_by_id(created["id"], purchaser_email="b@example.com")

    def test_missing_ticket(self, db):
        with pytest.raises(TicketNotFound):
            TicketService(db).get_by_id(404)

    def test_by_date_range(self, db, cart_id):
        base = datetime(2024, 3, 1, tzinfo=timezone.utc)
        for day in range(5):
            db.add(TicketModel(code=f"TICKET-R-{day:06d}", cart_id=cart_id, purchaser="a@example.com",
                               amount=Decimal("1"), purchase_datetime=base + timedelta(days=day)))
        db.commit()

        svc = TicketService(db)
        found = svc.get_by_date_range(base + timedelta(days=1), base + timedelta(days=3))

        assert [t["code"] for t in found] == ["TICKET-R-000003", "TICKET-R-000002", "TICKET-R-000001"]
        with pytest.raises(ValueError):
            svc.get_by_date_range(base + timedelta(days=3), base)
