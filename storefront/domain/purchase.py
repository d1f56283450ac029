# storefront/domain/purchase.py
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class ProcessedLine:
    product_id: int
    title: str
    quantity: int
    price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class NotProcessedLine:
    product_id: int
    title: str | None
    requested_quantity: int
    available_stock: int


@dataclass(frozen=True)
class PurchaseResult:
    """Outcome of reconciling a cart against live stock."""

    cart_id: int
    processed: tuple[ProcessedLine, ...] = field(default_factory=tuple)
    not_processed: tuple[NotProcessedLine, ...] = field(default_factory=tuple)
    total_amount: Decimal = Decimal("0.00")

    @property
    def fully_processed(self) -> bool:
        return not self.not_processed

    @property
    def partial(self) -> bool:
        return bool(self.processed) and bool(self.not_processed)

