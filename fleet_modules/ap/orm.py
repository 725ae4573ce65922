"""
Module: fleet_modules.ap.orm
Responsibility: SQLAlchemy ORM persistence for accounts payable issued by
    purchase-order receiving.

Architecture position: Modules > AP > ORM.  Inherits from TrackedBase.
    The originating document is referenced by origin_type/origin_id with
    NO foreign key.

Invariants enforced:
    - ``amount`` is Numeric(18, 2) and strictly positive.
    - Status stored as String(20); documents are created OPEN.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase, UUIDString
from fleet_kernel.db.types import LongText, Money, ShortCode


class AccountPayableModel(TrackedBase):
    """An amount owed to a supplier."""

    __tablename__ = "ap_payables"

    __table_args__ = (
        Index("idx_ap_payable_origin", "origin_type", "origin_id"),
        Index("idx_ap_payable_supplier", "supplier_id"),
        Index("idx_ap_payable_due", "due_date"),
        CheckConstraint("amount > 0", name="ck_ap_payable_positive"),
    )

    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="OPEN")
    origin_type: Mapped[str] = mapped_column(String(30), nullable=False)
    origin_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    document_number: Mapped[str] = mapped_column(ShortCode, nullable=False)
    notes: Mapped[str | None] = mapped_column(LongText, nullable=True)
    supplier_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    branch_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    def to_dto(self):
        from fleet_kernel.domain.dtos import OriginType
        from fleet_modules.ap.models import AccountPayable, PayableStatus

        return AccountPayable(
            id=self.id,
            description=self.description,
            amount=self.amount,
            due_date=self.due_date,
            status=PayableStatus(self.status),
            origin_type=OriginType(self.origin_type),
            origin_id=self.origin_id,
            document_number=self.document_number,
            notes=self.notes,
            supplier_id=self.supplier_id,
            company_id=self.company_id,
            branch_id=self.branch_id,
        )

    def __repr__(self) -> str:
        return f"<AccountPayableModel {self.document_number} {self.amount} [{self.status}]>"
