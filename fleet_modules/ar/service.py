"""
AR Module Service (``fleet_modules.ar.service``).

Responsibility
--------------
Issues OPEN receivables for invoiced sales orders and answers lookups by id
and by originating document.  Implements the kernel ``ReceivableIssuer``
port.

Architecture position
---------------------
**Modules layer** -- collaborator service, flush-only.

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
from fleet_modules.ar.models import AccountReceivable, ReceivableStatus
from fleet_modules.ar.orm import AccountReceivableModel

logger = get_logger("modules.ar.service")


class ReceivablesService(BaseService):
    """Accounts receivable issuer."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def issue_receivable(
        self,
        description: str,
        amount: Decimal,
        due_date: date,
        origin_type: OriginType,
        origin_id: UUID,
        customer_id: UUID,
        branch_id: UUID,
        *,
        company_id: UUID,
        document_number: str,
        notes: str | None,
        actor_id: UUID,
    ) -> UUID:
        value = round_currency(amount)
        if value <= ZERO:
            raise InvalidAmountError("receivable amount", value, "must be positive")

        model = AccountReceivableModel(
            description=description,
            amount=value,
            due_date=due_date,
            status=ReceivableStatus.OPEN.value,
            origin_type=OriginType(origin_type).value,
            origin_id=origin_id,
            document_number=document_number,
            notes=notes,
            customer_id=customer_id,
            company_id=company_id,
            branch_id=branch_id,
            created_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "receivable_issued",
            extra={
                "receivable_id": str(model.id),
                "amount": str(value),
                "due_date": due_date.isoformat(),
                "origin_type": model.origin_type,
                "origin_id": str(origin_id),
                "document_number": document_number,
                "customer_id": str(customer_id),
            },
        )
        return model.id

    def get(self, receivable_id: UUID) -> AccountReceivable:
        model = self.session.get(AccountReceivableModel, receivable_id)
        if model is None:
            raise FinancialDocumentNotFoundError("Account receivable", str(receivable_id))
        return model.to_dto()

    def list_for_origin(self, origin_type: OriginType, origin_id: UUID) -> list[AccountReceivable]:
        rows = self.session.scalars(
            select(AccountReceivableModel)
            .where(
                AccountReceivableModel.origin_type == OriginType(origin_type).value,
                AccountReceivableModel.origin_id == origin_id,
            )
            .order_by(AccountReceivableModel.created_at)
        )
        return [r.to_dto() for r in rows]
