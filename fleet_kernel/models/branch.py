"""
Module: fleet_kernel.models.branch
Responsibility: ORM persistence for company branches.  Every order,
    counterparty, product, and stock movement belongs to exactly one branch.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - A branch with ``deleted_at`` set cannot receive new orders.

Failure modes:
    - IntegrityError on duplicate (company_id, code).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase, UUIDString


class Branch(TrackedBase):
    """A physical or administrative branch of the company."""

    __tablename__ = "branches"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_branch_company_code"),
        Index("idx_branch_company", "company_id"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Branch {self.code}: {self.name}>"
