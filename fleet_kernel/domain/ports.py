"""
Collaborator ports for the order fulfillment core.

Responsibility:
    The narrow interfaces the purchasing and sales services call to move
    stock and to issue payables and receivables.  Order services depend on
    these protocols only; the inventory, AP and AR modules satisfy them
    structurally and never import the order modules.

Architecture position:
    Kernel > Domain -- protocol definitions, zero I/O.

Invariants enforced:
    - Every port call happens inside the caller's unit of work.  Adapters
      flush but never commit, so an order rollback discards their writes.
"""

from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from fleet_kernel.domain.dtos import (
    MovementType,
    OriginDocument,
    OriginType,
    StockMovement,
)


@runtime_checkable
class StockLedger(Protocol):
    """Per-product, per-warehouse quantity ledger."""

    def post_movement(
        self,
        movement_type: MovementType,
        product_id: UUID,
        quantity: Decimal,
        unit_cost: Decimal | None,
        origin: OriginDocument,
        *,
        actor_id: UUID,
    ) -> StockMovement:
        """
        Record one movement in the company's default warehouse.

        Raises:
            WarehouseNotFoundError: The company has no default warehouse.
            InsufficientStockError: An EXIT would drive the balance negative.
        """
        ...

    def get_available_quantity(self, product_id: UUID, warehouse_id: UUID) -> Decimal:
        """Current on-hand quantity; zero when no balance row exists."""
        ...

    def get_default_warehouse(self, company_id: UUID) -> UUID:
        """
        Raises:
            WarehouseNotFoundError: The company has no default warehouse.
        """
        ...


@runtime_checkable
class PayableIssuer(Protocol):
    """Issues accounts-payable documents."""

    def issue_payable(
        self,
        description: str,
        amount: Decimal,
        due_date: date,
        origin_type: OriginType,
        origin_id: UUID,
        supplier_id: UUID,
        branch_id: UUID,
        *,
        company_id: UUID,
        document_number: str,
        notes: str | None,
        actor_id: UUID,
    ) -> UUID:
        """Create an OPEN payable and return its id."""
        ...


@runtime_checkable
class ReceivableIssuer(Protocol):
    """Issues accounts-receivable documents."""

    def issue_receivable(
        self,
        description: str,
        amount: Decimal,
        due_date: date,
        origin_type: OriginType,
        origin_id: UUID,
        customer_id: UUID,
        branch_id: UUID,
        *,
        company_id: UUID,
        document_number: str,
        notes: str | None,
        actor_id: UUID,
    ) -> UUID:
        """Create an OPEN receivable and return its id."""
        ...
