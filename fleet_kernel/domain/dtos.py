"""
Data Transfer Objects shared across order modules and their collaborators.

Responsibility:
    Immutable value objects that cross module boundaries: caller input for
    order lines, the page envelope returned by list operations, the origin
    reference that stock movements and financial documents carry, and the
    posted stock movement record.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.  Inventory, AP and AR
    depend on these types rather than on the order modules.

Invariants enforced:
    - OrderPage.total_pages == ceil(total / limit).
    - StockMovement.quantity is always positive; direction lives in
      ``movement_type``.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID

T = TypeVar("T")


class _Unset:
    """Marker for 'argument not supplied' where None is a meaningful value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class MovementType(str, Enum):
    """Direction of a stock ledger movement."""

    ENTRY = "ENTRY"
    EXIT = "EXIT"


class OriginType(str, Enum):
    """Document kinds that may originate stock movements and financial documents."""

    PURCHASE_ORDER = "PURCHASE_ORDER"
    SALES_ORDER = "SALES_ORDER"
    MANUAL = "MANUAL"


@dataclass(frozen=True)
class OrderLineInput:
    """
    A line as submitted by the caller on create/update.

    Raw numeric values are accepted (Decimal, int, str, float); the order
    service normalizes them before validation.
    """

    product_id: UUID
    quantity: Decimal | int | float | str
    unit_price: Decimal | int | float | str | None = None


@dataclass(frozen=True)
class OriginDocument:
    """
    The business document a movement or financial document comes from.

    Collaborators store these fields verbatim; they never resolve
    ``origin_id`` back into an order.
    """

    origin_type: OriginType
    origin_id: UUID
    document_number: str
    company_id: UUID
    branch_id: UUID
    notes: str | None = None


@dataclass(frozen=True)
class StockMovement:
    """A posted stock ledger movement."""

    id: UUID
    movement_type: MovementType
    product_id: UUID
    warehouse_id: UUID
    quantity: Decimal
    unit_cost: Decimal | None
    balance_after: Decimal
    origin_type: OriginType
    origin_id: UUID
    document_number: str
    notes: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class OrderPage(Generic[T]):
    """One page of a filtered order listing."""

    items: tuple[T, ...]
    total: int
    page: int
    limit: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "total_pages", math.ceil(self.total / self.limit) if self.limit else 0
        )
