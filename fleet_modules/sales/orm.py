"""
SQLAlchemy ORM persistence models for the Sales module.

Responsibility
--------------
Persist sales order headers and their lines.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``SalesOrderService``.
Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* ``(branch_id, number)`` is unique; soft-deleted orders keep their number.
* ``0 <= quantity_invoiced <= quantity_ordered`` and
  ``quantity_ordered > 0`` on every line (CHECK constraints).
* ``version`` is the optimistic lock column, set and incremented by the
  service (``version_id_generator=False``).
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleet_kernel.db.base import TrackedBase, UUIDString
from fleet_kernel.db.types import LongText, Money, Quantity, ShortCode

# ---------------------------------------------------------------------------
# SalesOrderModel
# ---------------------------------------------------------------------------


class SalesOrderModel(TrackedBase):
    """
    A sales order header.

    Maps to the ``SalesOrder`` DTO in ``fleet_modules.sales.models``.
    """

    __tablename__ = "sales_orders"

    __table_args__ = (
        UniqueConstraint("branch_id", "number", name="uq_sales_order_branch_number"),
        Index("idx_sales_order_status", "status"),
        Index("idx_sales_order_customer", "customer_id"),
        Index("idx_sales_order_created", "created_at"),
    )

    number: Mapped[str] = mapped_column(ShortCode, nullable=False)
    customer_id: Mapped[UUID] = mapped_column(ForeignKey("parties.id"), nullable=False)
    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    branch_id: Mapped[UUID] = mapped_column(ForeignKey("branches.id"), nullable=False)
    order_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="DRAFT")
    notes: Mapped[str | None] = mapped_column(LongText, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    lines: Mapped[list["SalesOrderLineModel"]] = relationship(
        "SalesOrderLineModel",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderLineModel.line_number",
        lazy="selectin",
    )

    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": False,
    }

    def to_dto(
        self,
        customer_name: str | None = None,
        product_labels: dict[UUID, tuple[str, str]] | None = None,
    ):
        from fleet_modules.sales.models import SalesOrder, SOStatus

        labels = product_labels or {}
        return SalesOrder(
            id=self.id,
            number=self.number,
            customer_id=self.customer_id,
            company_id=self.company_id,
            branch_id=self.branch_id,
            status=SOStatus(self.status),
            lines=tuple(line.to_dto(*labels.get(line.product_id, (None, None))) for line in self.lines),
            order_date=self.order_date,
            notes=self.notes,
            customer_name=customer_name,
            created_by_id=self.created_by_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<SalesOrderModel {self.number} [{self.status}] v{self.version}>"


# ---------------------------------------------------------------------------
# SalesOrderLineModel
# ---------------------------------------------------------------------------


class SalesOrderLineModel(TrackedBase):
    """A line on a sales order."""

    __tablename__ = "sales_order_lines"

    __table_args__ = (
        Index("idx_so_line_order", "sales_order_id"),
        CheckConstraint("quantity_ordered > 0", name="ck_so_line_ordered_positive"),
        CheckConstraint(
            "quantity_invoiced >= 0 AND quantity_invoiced <= quantity_ordered",
            name="ck_so_line_invoiced_range",
        ),
        CheckConstraint("unit_price IS NULL OR unit_price >= 0", name="ck_so_line_price"),
    )

    sales_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity_ordered: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    quantity_invoiced: Mapped[Decimal] = mapped_column(Quantity, nullable=False, default=Decimal("0"))
    unit_price: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    line_total: Mapped[Decimal | None] = mapped_column(Money, nullable=True)

    sales_order: Mapped["SalesOrderModel"] = relationship(
        "SalesOrderModel",
        back_populates="lines",
    )

    def to_dto(self, product_name: str | None = None, product_code: str | None = None):
        from fleet_modules.sales.models import SalesOrderLine

        return SalesOrderLine(
            id=self.id,
            sales_order_id=self.sales_order_id,
            line_number=self.line_number,
            product_id=self.product_id,
            quantity_ordered=self.quantity_ordered,
            quantity_invoiced=self.quantity_invoiced,
            unit_price=self.unit_price,
            line_total=self.line_total,
            product_name=product_name,
            product_code=product_code,
        )

    def __repr__(self) -> str:
        return f"<SalesOrderLineModel #{self.line_number} {self.quantity_invoiced}/{self.quantity_ordered}>"
