"""
AP Domain Models.

The nouns of accounts payable as seen by the fulfillment core.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from fleet_kernel.domain.dtos import OriginType


class PayableStatus(Enum):
    """Payable lifecycle states."""
    OPEN = "OPEN"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class AccountPayable:
    """An amount owed to a supplier."""
    id: UUID
    description: str
    amount: Decimal
    due_date: date
    origin_type: OriginType
    origin_id: UUID
    document_number: str
    supplier_id: UUID
    company_id: UUID
    branch_id: UUID
    status: PayableStatus = PayableStatus.OPEN
    notes: str | None = None
