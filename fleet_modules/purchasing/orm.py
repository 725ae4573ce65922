"""
SQLAlchemy ORM persistence models for the Purchasing module.

Responsibility
--------------
Persist purchase order headers and their lines.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``PurchaseOrderService``.
Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* ``(branch_id, number)`` is unique; soft-deleted orders keep their number.
* ``0 <= quantity_received <= quantity_ordered`` and
  ``quantity_ordered > 0`` on every line (CHECK constraints).
* Quantities Numeric(18, 4), prices and totals Numeric(18, 2) -- NEVER float.
* ``version`` is the optimistic lock column.  It is NOT generated: the
  service sets it on INSERT and increments it on every mutation, and every
  UPDATE is qualified by the previous value.
* Lines are owned by their order (``cascade="all, delete-orphan"``).
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleet_kernel.db.base import TrackedBase, UUIDString
from fleet_kernel.db.types import LongText, Money, Quantity, ShortCode

# ---------------------------------------------------------------------------
# PurchaseOrderModel
# ---------------------------------------------------------------------------


class PurchaseOrderModel(TrackedBase):
    """
    A purchase order header.

    Maps to the ``PurchaseOrder`` DTO in ``fleet_modules.purchasing.models``.
    """

    __tablename__ = "purchase_orders"

    __table_args__ = (
        UniqueConstraint("branch_id", "number", name="uq_purchase_order_branch_number"),
        Index("idx_purchase_order_status", "status"),
        Index("idx_purchase_order_supplier", "supplier_id"),
        Index("idx_purchase_order_created", "created_at"),
    )

    number: Mapped[str] = mapped_column(ShortCode, nullable=False)
    supplier_id: Mapped[UUID] = mapped_column(ForeignKey("parties.id"), nullable=False)
    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    branch_id: Mapped[UUID] = mapped_column(ForeignKey("branches.id"), nullable=False)
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="DRAFT")
    notes: Mapped[str | None] = mapped_column(LongText, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    lines: Mapped[list["PurchaseOrderLineModel"]] = relationship(
        "PurchaseOrderLineModel",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderLineModel.line_number",
        lazy="selectin",
    )

    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": False,
    }

    def to_dto(
        self,
        supplier_name: str | None = None,
        product_labels: dict[UUID, tuple[str, str]] | None = None,
    ):
        from fleet_modules.purchasing.models import POStatus, PurchaseOrder

        labels = product_labels or {}
        return PurchaseOrder(
            id=self.id,
            number=self.number,
            supplier_id=self.supplier_id,
            company_id=self.company_id,
            branch_id=self.branch_id,
            status=POStatus(self.status),
            lines=tuple(line.to_dto(*labels.get(line.product_id, (None, None))) for line in self.lines),
            expected_delivery_date=self.expected_delivery_date,
            notes=self.notes,
            supplier_name=supplier_name,
            created_by_id=self.created_by_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<PurchaseOrderModel {self.number} [{self.status}] v{self.version}>"


# ---------------------------------------------------------------------------
# PurchaseOrderLineModel
# ---------------------------------------------------------------------------


class PurchaseOrderLineModel(TrackedBase):
    """A line on a purchase order."""

    __tablename__ = "purchase_order_lines"

    __table_args__ = (
        Index("idx_po_line_order", "purchase_order_id"),
        CheckConstraint("quantity_ordered > 0", name="ck_po_line_ordered_positive"),
        CheckConstraint(
            "quantity_received >= 0 AND quantity_received <= quantity_ordered",
            name="ck_po_line_received_range",
        ),
        CheckConstraint("unit_price IS NULL OR unit_price >= 0", name="ck_po_line_price"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity_ordered: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    quantity_received: Mapped[Decimal] = mapped_column(Quantity, nullable=False, default=Decimal("0"))
    unit_price: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    line_total: Mapped[Decimal | None] = mapped_column(Money, nullable=True)

    purchase_order: Mapped["PurchaseOrderModel"] = relationship(
        "PurchaseOrderModel",
        back_populates="lines",
    )

    def to_dto(self, product_name: str | None = None, product_code: str | None = None):
        from fleet_modules.purchasing.models import PurchaseOrderLine

        return PurchaseOrderLine(
            id=self.id,
            purchase_order_id=self.purchase_order_id,
            line_number=self.line_number,
            product_id=self.product_id,
            quantity_ordered=self.quantity_ordered,
            quantity_received=self.quantity_received,
            unit_price=self.unit_price,
            line_total=self.line_total,
            product_name=product_name,
            product_code=product_code,
        )

    def __repr__(self) -> str:
        return f"<PurchaseOrderLineModel #{self.line_number} {self.quantity_received}/{self.quantity_ordered}>"
