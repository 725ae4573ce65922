"""
Module: fleet_modules.inventory.orm
Responsibility: SQLAlchemy ORM persistence models for the stock ledger:
    warehouses, per-product/warehouse balances, and the movement journal.

Architecture position: Modules > Inventory > ORM.  Inherits from TrackedBase
    (fleet_kernel.db.base).  Movements reference their originating document
    by origin_type/origin_id/document_number with NO foreign key, so the
    ledger never depends on the order tables.

Invariants enforced:
    - Quantities use Numeric(18, 4), costs Numeric(18, 2) -- NEVER float.
    - One balance row per (product_id, warehouse_id).
    - Balance quantity is never negative (CHECK constraint plus the service
      check before every EXIT).
    - Movements are append-only; the service never updates or deletes them.

Failure modes:
    - IntegrityError on a second balance row for the same product/warehouse.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase, UUIDString
from fleet_kernel.db.types import LongText, Money, Quantity, ShortCode


class WarehouseModel(TrackedBase):
    """
    A storage location.  Exactly one warehouse per company is flagged as
    default; order fulfillment posts every movement there.
    """

    __tablename__ = "inventory_warehouses"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_warehouse_company_code"),
        Index("idx_warehouse_company_default", "company_id", "is_default"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    branch_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    code: Mapped[str] = mapped_column(ShortCode, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<WarehouseModel {self.code}{' (default)' if self.is_default else ''}>"


class StockBalanceModel(TrackedBase):
    """On-hand quantity and moving-average unit cost of one product in one warehouse."""

    __tablename__ = "inventory_stock_balances"

    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_stock_balance_product_warehouse"),
        CheckConstraint("quantity >= 0", name="ck_stock_balance_non_negative"),
    )

    product_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    warehouse_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False, default=Decimal("0"))
    average_cost: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))

    def __repr__(self) -> str:
        return f"<StockBalanceModel {self.product_id}@{self.warehouse_id}: {self.quantity}>"


class StockMovementModel(TrackedBase):
    """One ENTRY or EXIT in the movement journal."""

    __tablename__ = "inventory_stock_movements"

    __table_args__ = (
        Index("idx_stock_movement_product", "product_id", "warehouse_id"),
        Index("idx_stock_movement_origin", "origin_type", "origin_id"),
        CheckConstraint("quantity > 0", name="ck_stock_movement_positive"),
    )

    movement_type: Mapped[str] = mapped_column(String(10), nullable=False)
    product_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    warehouse_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    branch_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    unit_cost: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    total_cost: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    balance_after: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    origin_type: Mapped[str] = mapped_column(String(30), nullable=False)
    origin_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    document_number: Mapped[str] = mapped_column(ShortCode, nullable=False)
    # 1-based position among the movements of the same origin document
    origin_seq: Mapped[int] = mapped_column(nullable=False, default=1)
    notes: Mapped[str | None] = mapped_column(LongText, nullable=True)

    def to_dto(self):
        from fleet_kernel.domain.dtos import MovementType, OriginType, StockMovement

        return StockMovement(
            id=self.id,
            movement_type=MovementType(self.movement_type),
            product_id=self.product_id,
            warehouse_id=self.warehouse_id,
            quantity=self.quantity,
            unit_cost=self.unit_cost,
            balance_after=self.balance_after,
            origin_type=OriginType(self.origin_type),
            origin_id=self.origin_id,
            document_number=self.document_number,
            notes=self.notes,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<StockMovementModel {self.movement_type} {self.quantity} of {self.product_id}>"
