"""
Module: fleet_modules.ar.orm
Responsibility: SQLAlchemy ORM persistence for accounts receivable issued by
    sales-order invoicing.

Architecture position: Modules > AR > ORM.  Mirror of ``fleet_modules.ap.orm``
    with a customer instead of a supplier.

Invariants enforced:
    - ``amount`` is Numeric(18, 2) and strictly positive.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase, UUIDString
from fleet_kernel.db.types import LongText, Money, ShortCode


class AccountReceivableModel(TrackedBase):
    """An amount owed by a customer."""

    __tablename__ = "ar_receivables"

    __table_args__ = (
        Index("idx_ar_receivable_origin", "origin_type", "origin_id"),
        Index("idx_ar_receivable_customer", "customer_id"),
        Index("idx_ar_receivable_due", "due_date"),
        CheckConstraint("amount > 0", name="ck_ar_receivable_positive"),
    )

    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="OPEN")
    origin_type: Mapped[str] = mapped_column(String(30), nullable=False)
    origin_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    document_number: Mapped[str] = mapped_column(ShortCode, nullable=False)
    notes: Mapped[str | None] = mapped_column(LongText, nullable=True)
    customer_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    branch_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    def to_dto(self):
        from fleet_kernel.domain.dtos import OriginType
        from fleet_modules.ar.models import AccountReceivable, ReceivableStatus

        return AccountReceivable(
            id=self.id,
            description=self.description,
            amount=self.amount,
            due_date=self.due_date,
            status=ReceivableStatus(self.status),
            origin_type=OriginType(self.origin_type),
            origin_id=self.origin_id,
            document_number=self.document_number,
            notes=self.notes,
            customer_id=self.customer_id,
            company_id=self.company_id,
            branch_id=self.branch_id,
        )

    def __repr__(self) -> str:
        return f"<AccountReceivableModel {self.document_number} {self.amount} [{self.status}]>"
