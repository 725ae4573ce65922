"""
Sales Domain Models.

The nouns of sales: sales orders and their lines.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from fleet_kernel.db.types import ZERO, round_currency, round_quantity


class SOStatus(str, Enum):
    """Sales order lifecycle states."""
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    PARTIALLY_DELIVERED = "PARTIALLY_DELIVERED"  # reserved, never produced
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class SalesOrderLine:
    """A line item on a sales order."""
    id: UUID
    sales_order_id: UUID
    line_number: int
    product_id: UUID
    quantity_ordered: Decimal
    quantity_invoiced: Decimal = Decimal("0")
    unit_price: Decimal | None = None
    line_total: Decimal | None = None
    product_name: str | None = None
    product_code: str | None = None

    @property
    def quantity_pending(self) -> Decimal:
        return round_quantity(self.quantity_ordered - self.quantity_invoiced)


@dataclass(frozen=True)
class SalesOrder:
    """A sales order with its lines."""
    id: UUID
    number: str
    customer_id: UUID
    company_id: UUID
    branch_id: UUID
    status: SOStatus
    lines: tuple[SalesOrderLine, ...] = ()
    order_date: date | None = None
    notes: str | None = None
    customer_name: str | None = None
    created_by_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 1

    @property
    def total_amount(self) -> Decimal:
        return round_currency(
            sum((ln.line_total for ln in self.lines if ln.line_total is not None), ZERO)
        )
