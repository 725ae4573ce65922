"""
Module: fleet_kernel.models.product
Responsibility: ORM persistence for stocked products (parts, fuel,
    lubricants, tyres) referenced by order lines and stock movements.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Products are scoped to a company and a branch; order lines may only
      reference active, non-deleted products of the order's branch.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase, UUIDString


class Product(TrackedBase):
    """A stocked item."""

    __tablename__ = "products"

    __table_args__ = (
        UniqueConstraint("branch_id", "code", name="uq_product_branch_code"),
        Index("idx_product_company_branch", "company_id", "branch_id"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    branch_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Unit of measure code (UN, L, KG)
    unit: Mapped[str] = mapped_column(String(10), nullable=False, default="UN")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Product {self.code}: {self.name}>"
