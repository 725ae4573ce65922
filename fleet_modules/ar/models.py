"""
AR Domain Models.

The nouns of accounts receivable as seen by the fulfillment core.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from fleet_kernel.domain.dtos import OriginType


class ReceivableStatus(Enum):
    """Receivable lifecycle states."""
    OPEN = "OPEN"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class AccountReceivable:
    """An amount owed by a customer."""
    id: UUID
    description: str
    amount: Decimal
    due_date: date
    origin_type: OriginType
    origin_id: UUID
    document_number: str
    customer_id: UUID
    company_id: UUID
    branch_id: UUID
    status: ReceivableStatus = ReceivableStatus.OPEN
    notes: str | None = None
