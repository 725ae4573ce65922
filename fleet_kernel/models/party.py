"""
Module: fleet_kernel.models.party
Responsibility: ORM persistence for the external entities orders are placed
    with: suppliers (purchase orders) and customers (sales orders).
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, domain/, or outer layers.

Invariants enforced:
    Existence checks (not ORM-level, but this model is the data source):
        - An order may only reference a party of the matching type that is
          active, not soft-deleted, and registered in the order's branch.

Failure modes:
    - IntegrityError on duplicate (branch_id, party_type, code).
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase, UUIDString


class PartyType(str, Enum):
    """Classification of party types.

    Contract: Every Party has exactly one PartyType.
    """

    SUPPLIER = "SUPPLIER"
    CUSTOMER = "CUSTOMER"


class Party(TrackedBase):
    """
    Supplier or customer within one branch.

    Guarantees:
        - party_type is set at creation and classifies the party permanently.
        - ``is_usable`` is the single admissibility predicate order services
          rely on.
    """

    __tablename__ = "parties"

    __table_args__ = (
        UniqueConstraint("branch_id", "party_type", "code", name="uq_party_branch_type_code"),
        Index("idx_party_branch_type", "branch_id", "party_type"),
    )

    branch_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    party_type: Mapped[PartyType] = mapped_column(
        String(20),
        nullable=False,
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    tax_id: Mapped[str | None] = mapped_column(String(20), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def is_usable(self) -> bool:
        return self.is_active and self.deleted_at is None

    def __repr__(self) -> str:
        return f"<Party {self.code}: {self.name} ({self.party_type})>"
