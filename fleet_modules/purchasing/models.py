"""
Purchasing Domain Models.

The nouns of purchasing: purchase orders, their lines, and receipts.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from fleet_kernel.db.types import ZERO, round_currency, round_quantity


class POStatus(str, Enum):
    """Purchase order lifecycle states."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class PurchaseOrderLine:
    """A line item on a purchase order."""
    id: UUID
    purchase_order_id: UUID
    line_number: int
    product_id: UUID
    quantity_ordered: Decimal
    quantity_received: Decimal = Decimal("0")
    unit_price: Decimal | None = None
    line_total: Decimal | None = None
    product_name: str | None = None
    product_code: str | None = None

    @property
    def quantity_pending(self) -> Decimal:
        return round_quantity(self.quantity_ordered - self.quantity_received)


@dataclass(frozen=True)
class PurchaseOrder:
    """A purchase order with its lines."""
    id: UUID
    number: str
    supplier_id: UUID
    company_id: UUID
    branch_id: UUID
    status: POStatus
    lines: tuple[PurchaseOrderLine, ...] = ()
    expected_delivery_date: date | None = None
    notes: str | None = None
    supplier_name: str | None = None
    created_by_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 1

    @property
    def total_amount(self) -> Decimal:
        return round_currency(
            sum((ln.line_total for ln in self.lines if ln.line_total is not None), ZERO)
        )


@dataclass(frozen=True)
class ReceiptLineInput:
    """Quantity received against one purchase order line."""
    line_id: UUID
    quantity_received: Decimal | int | float | str
