"""
Inventory Domain Models.

The nouns of the stock ledger: warehouses and balances.  Posted movements
use the kernel ``StockMovement`` DTO so that order modules can read them
without importing this package.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class Warehouse:
    """A storage location."""
    id: UUID
    company_id: UUID
    code: str
    name: str
    is_default: bool = False
    branch_id: UUID | None = None


@dataclass(frozen=True)
class StockBalance:
    """On-hand position of one product in one warehouse."""
    product_id: UUID
    warehouse_id: UUID
    quantity: Decimal = Decimal("0")
    average_cost: Decimal = Decimal("0")
