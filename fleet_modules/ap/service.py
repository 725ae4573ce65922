"""
AP Module Service (``fleet_modules.ap.service``).

Responsibility
--------------
Issues OPEN payables for received purchase orders and answers lookups by
id and by originating document.  Implements the kernel ``PayableIssuer``
port.

Architecture position
---------------------
**Modules layer** -- collaborator service, flush-only.  The purchasing
service calls ``issue_payable`` inside its receive unit of work.

Invariants enforced
-------------------
* Amounts pass through ``round_currency`` and must be strictly positive.
* Flush-only: the caller owns commit/rollback.

Failure modes
-------------
* ``InvalidAmountError`` -- amount <= 0 after normalization.
* ``FinancialDocumentNotFoundError`` -- ``get`` on an unknown id.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fleet_kernel.db.types import ZERO, round_currency
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.domain.dtos import OriginType
from fleet_kernel.exceptions import FinancialDocumentNotFoundError, InvalidAmountError
from fleet_kernel.logging_config import get_logger
from fleet_kernel.services.base import BaseService
from fleet_modules.ap.models import AccountPayable, PayableStatus
from fleet_modules.ap.orm import AccountPayableModel

logger = get_logger("modules.ap.service")


class PayablesService(BaseService):
    """Accounts payable issuer."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def issue_payable(
        self,
        description: str,
        amount: Decimal,
        due_date: date,
        origin_type: OriginType,
        origin_id: UUID,
        supplier_id: UUID,
        branch_id: UUID,
        *,
        company_id: UUID,
        document_number: str,
        notes: str | None,
        actor_id: UUID,
    ) -> UUID:
        value = round_currency(amount)
        if value <= ZERO:
            raise InvalidAmountError("payable amount", value, "must be positive")

        model = AccountPayableModel(
            description=description,
            amount=value,
            due_date=due_date,
            status=PayableStatus.OPEN.value,
            origin_type=OriginType(origin_type).value,
            origin_id=origin_id,
            document_number=document_number,
            notes=notes,
            supplier_id=supplier_id,
            company_id=company_id,
            branch_id=branch_id,
            created_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "payable_issued",
            extra={
                "payable_id": str(model.id),
                "amount": str(value),
                "due_date": due_date.isoformat(),
                "origin_type": model.origin_type,
                "origin_id": str(origin_id),
                "document_number": document_number,
                "supplier_id": str(supplier_id),
            },
        )
        return model.id

    def get(self, payable_id: UUID) -> AccountPayable:
        model = self.session.get(AccountPayableModel, payable_id)
        if model is None:
            raise FinancialDocumentNotFoundError("Account payable", str(payable_id))
        return model.to_dto()

    def list_for_origin(self, origin_type: OriginType, origin_id: UUID) -> list[AccountPayable]:
        rows = self.session.scalars(
            select(AccountPayableModel)
            .where(
                AccountPayableModel.origin_type == OriginType(origin_type).value,
                AccountPayableModel.origin_id == origin_id,
            )
            .order_by(AccountPayableModel.created_at)
        )
        return [r.to_dto() for r in rows]
