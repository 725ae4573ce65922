"""
Inventory Module Service (``fleet_modules.inventory.service``).

Responsibility
--------------
The stock ledger behind the ``StockLedger`` port: resolves the company's
default warehouse, answers availability queries, and posts ENTRY/EXIT
movements that update per-product balances and a moving-average unit cost.

Architecture position
---------------------
**Modules layer** -- collaborator service.  Called by the purchasing
(receive) and sales (invoice) services inside their unit of work.  Never
imports the order modules; the origin of a movement is carried as an
``OriginDocument`` value.

Invariants enforced
-------------------
* Flush-only: the caller owns commit/rollback.
* The balance row is locked (``SELECT ... FOR UPDATE``) while a movement is
  posted, so concurrent postings for one product serialize.
* An EXIT never drives a balance below zero.
* Every movement quantity is normalized and strictly positive.

Failure modes
-------------
* ``WarehouseNotFoundError`` -- the company has no default warehouse.
* ``InsufficientStockError`` -- EXIT larger than the on-hand quantity.
* ``InvalidQuantityError`` -- quantity normalizes to zero or less.
* ``InvalidAmountError`` -- negative unit cost.

Usage::

    ledger = StockLedgerService(session, clock=clock)
    movement = ledger.post_movement(
        MovementType.ENTRY, product_id, Decimal("4"), Decimal("25.50"),
        origin, actor_id=actor_id,
    )
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fleet_kernel.db.types import ZERO, round_currency, round_quantity
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.domain.dtos import MovementType, OriginDocument, OriginType, StockMovement
from fleet_kernel.exceptions import (
    InsufficientStockError,
    InvalidAmountError,
    InvalidQuantityError,
    WarehouseNotFoundError,
)
from fleet_kernel.logging_config import get_logger
from fleet_kernel.services.base import BaseService
from fleet_modules.inventory.models import StockBalance, Warehouse
from fleet_modules.inventory.orm import (
    StockBalanceModel,
    StockMovementModel,
    WarehouseModel,
)

logger = get_logger("modules.inventory.service")


class StockLedgerService(BaseService):
    """
    Per-product, per-warehouse quantity ledger.

    Guarantees
    ----------
    * ``post_movement`` either records the movement and updates the balance,
      or raises before either write.
    * Average cost only changes on priced ENTRY movements.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    # =========================================================================
    # Warehouses
    # =========================================================================

    def create_warehouse(
        self,
        company_id: UUID,
        code: str,
        name: str,
        *,
        actor_id: UUID,
        branch_id: UUID | None = None,
        is_default: bool = False,
    ) -> Warehouse:
        """
        Register a warehouse.  Flagging it default clears the flag on the
        company's previous default.
        """
        if is_default:
            previous = self.session.scalars(
                select(WarehouseModel).where(
                    WarehouseModel.company_id == company_id,
                    WarehouseModel.is_default.is_(True),
                )
            ).all()
            for wh in previous:
                wh.is_default = False
                wh.updated_by_id = actor_id

        model = WarehouseModel(
            company_id=company_id,
            branch_id=branch_id,
            code=code,
            name=name,
            is_default=is_default,
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "warehouse_created",
            extra={
                "warehouse_id": str(model.id),
                "company_id": str(company_id),
                "code": code,
                "is_default": is_default,
            },
        )
        return Warehouse(
            id=model.id,
            company_id=model.company_id,
            code=model.code,
            name=model.name,
            is_default=model.is_default,
            branch_id=model.branch_id,
        )

    def get_default_warehouse(self, company_id: UUID) -> UUID:
        warehouse_id = self.session.scalars(
            select(WarehouseModel.id)
            .where(
                WarehouseModel.company_id == company_id,
                WarehouseModel.is_default.is_(True),
                WarehouseModel.deleted_at.is_(None),
            )
            .order_by(WarehouseModel.created_at)
            .limit(1)
        ).first()
        if warehouse_id is None:
            raise WarehouseNotFoundError(str(company_id))
        return warehouse_id

    # =========================================================================
    # Balances
    # =========================================================================

    def get_available_quantity(self, product_id: UUID, warehouse_id: UUID) -> Decimal:
        quantity = self.session.scalars(
            select(StockBalanceModel.quantity).where(
                StockBalanceModel.product_id == product_id,
                StockBalanceModel.warehouse_id == warehouse_id,
            )
        ).first()
        return round_quantity(quantity) if quantity is not None else round_quantity(ZERO)

    def get_balance(self, product_id: UUID, warehouse_id: UUID) -> StockBalance:
        row = self.session.scalars(
            select(StockBalanceModel).where(
                StockBalanceModel.product_id == product_id,
                StockBalanceModel.warehouse_id == warehouse_id,
            )
        ).first()
        if row is None:
            return StockBalance(product_id=product_id, warehouse_id=warehouse_id)
        return StockBalance(
            product_id=row.product_id,
            warehouse_id=row.warehouse_id,
            quantity=round_quantity(row.quantity),
            average_cost=round_currency(row.average_cost),
        )

    def _lock_balance(self, product_id: UUID, warehouse_id: UUID) -> StockBalanceModel | None:
        return self.session.scalars(
            select(StockBalanceModel)
            .where(
                StockBalanceModel.product_id == product_id,
                StockBalanceModel.warehouse_id == warehouse_id,
            )
            .with_for_update()
        ).first()

    # =========================================================================
    # Movements
    # =========================================================================

    def post_movement(
        self,
        movement_type: MovementType,
        product_id: UUID,
        quantity: Decimal,
        unit_cost: Decimal | None,
        origin: OriginDocument,
        *,
        actor_id: UUID,
    ) -> StockMovement:
        movement_type = MovementType(movement_type)
        qty = round_quantity(quantity)
        if qty <= ZERO:
            raise InvalidQuantityError(str(product_id), qty)
        cost = round_currency(unit_cost) if unit_cost is not None else None
        if cost is not None and cost < ZERO:
            raise InvalidAmountError("unit_cost", cost, "must not be negative")

        warehouse_id = self.get_default_warehouse(origin.company_id)
        balance = self._lock_balance(product_id, warehouse_id)
        on_hand = round_quantity(balance.quantity) if balance is not None else round_quantity(ZERO)

        if movement_type is MovementType.EXIT:
            if qty > on_hand:
                logger.warning(
                    "stock_exit_rejected",
                    extra={
                        "product_id": str(product_id),
                        "warehouse_id": str(warehouse_id),
                        "available": str(on_hand),
                        "required": str(qty),
                        "document_number": origin.document_number,
                    },
                )
                raise InsufficientStockError(str(product_id), None, on_hand, qty)
            new_quantity = round_quantity(on_hand - qty)
            if cost is None and balance is not None:
                cost = round_currency(balance.average_cost)
        else:
            new_quantity = round_quantity(on_hand + qty)

        if balance is None:
            balance = StockBalanceModel(
                product_id=product_id,
                warehouse_id=warehouse_id,
                quantity=ZERO,
                average_cost=ZERO,
                created_by_id=actor_id,
            )
            self.session.add(balance)

        if movement_type is MovementType.ENTRY and cost is not None:
            previous_value = on_hand * round_currency(balance.average_cost)
            balance.average_cost = round_currency(
                (previous_value + qty * cost) / new_quantity
            )

        balance.quantity = new_quantity
        balance.updated_by_id = actor_id

        origin_seq = self.session.scalar(
            select(func.count(StockMovementModel.id)).where(
                StockMovementModel.origin_type == OriginType(origin.origin_type).value,
                StockMovementModel.origin_id == origin.origin_id,
            )
        ) + 1

        movement = StockMovementModel(
            movement_type=movement_type.value,
            product_id=product_id,
            warehouse_id=warehouse_id,
            company_id=origin.company_id,
            branch_id=origin.branch_id,
            quantity=qty,
            unit_cost=cost,
            total_cost=round_currency(qty * cost) if cost is not None else None,
            balance_after=new_quantity,
            origin_type=OriginType(origin.origin_type).value,
            origin_id=origin.origin_id,
            document_number=origin.document_number,
            origin_seq=origin_seq,
            notes=origin.notes,
            created_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(movement)
        self.session.flush()

        logger.info(
            "stock_movement_posted",
            extra={
                "movement_id": str(movement.id),
                "movement_type": movement_type.value,
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "quantity": str(qty),
                "unit_cost": str(cost) if cost is not None else None,
                "balance_after": str(new_quantity),
                "origin_type": movement.origin_type,
                "origin_id": str(origin.origin_id),
                "document_number": origin.document_number,
            },
        )
        return movement.to_dto()

    def list_movements(
        self,
        *,
        origin_type: OriginType | None = None,
        origin_id: UUID | None = None,
        product_id: UUID | None = None,
    ) -> list[StockMovement]:
        """Movements in posting order, optionally filtered."""
        stmt = select(StockMovementModel)
        if origin_type is not None:
            stmt = stmt.where(StockMovementModel.origin_type == OriginType(origin_type).value)
        if origin_id is not None:
            stmt = stmt.where(StockMovementModel.origin_id == origin_id)
        if product_id is not None:
            stmt = stmt.where(StockMovementModel.product_id == product_id)
        stmt = stmt.order_by(StockMovementModel.created_at, StockMovementModel.origin_seq)
        return [m.to_dto() for m in self.session.scalars(stmt)]
