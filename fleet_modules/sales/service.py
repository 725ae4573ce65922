"""
Sales Module Service (``fleet_modules.sales.service``).

Responsibility
--------------
Sales order lifecycle: creation with sequenced numbers, filtered listing,
editing while in DRAFT, soft deletion, cancellation, and invoicing.
Invoicing issues one receivable for the order total and, when asked,
deducts stock through EXIT movements.

Architecture position
---------------------
**Modules layer** -- ``SalesOrderService`` is the sole public entry point
for sales order operations.  It depends on the kernel ``StockLedger`` and
``ReceivableIssuer`` ports only.

Invariants enforced
-------------------
* Invoicing is all-or-nothing: the stock gate checks every product before
  the first movement is posted, and the whole operation shares one
  transaction.
* An invoiced order is DELIVERED and never invoiced again.
* Header and lines change only while the order is DRAFT.

Failure modes
-------------
* Stock shortfall on any product -> ``InsufficientStockError`` with
  nothing written.
* Zero-value order -> ``NothingToInvoiceError``.
* Concurrent modification detected at flush -> ``OptimisticLockError``.

Usage::

    service = SalesOrderService(session, stock_ledger, receivables, settings, clock)
    so = service.create(actor, customer_id, branch_id,
                        [OrderLineInput(product_id, "2", "99.90")])
    so = service.invoice(actor, so.id, create_receivable=True, deduct_stock=True)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from fleet_config.schema import FulfillmentSettings
from fleet_kernel.db.types import ZERO, round_quantity
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.domain.context import ActorContext
from fleet_kernel.domain.dtos import (
    UNSET,
    MovementType,
    OrderLineInput,
    OrderPage,
    OriginDocument,
    OriginType,
)
from fleet_kernel.domain.ports import ReceivableIssuer, StockLedger
from fleet_kernel.domain.workflow import require_transition
from fleet_kernel.exceptions import (
    InsufficientStockError,
    NothingToInvoiceError,
    OptimisticLockError,
    OrderAlreadyFulfilledError,
    OrderCancelledError,
    OrderLockedError,
    OrderNotFoundError,
    OrderNumberConflictError,
)
from fleet_kernel.logging_config import LogContext, get_logger
from fleet_kernel.models import PartyType
from fleet_kernel.services.sequence_service import OrderNumberSequencer
from fleet_modules._order_helpers import (
    creation_date_bounds,
    normalize_lines,
    order_total,
    parse_status,
    party_names,
    product_labels,
    resolve_branch,
    resolve_counterparty,
    resolve_products,
    validate_paging,
)
from fleet_modules.sales.models import SalesOrder, SOStatus
from fleet_modules.sales.orm import SalesOrderLineModel, SalesOrderModel
from fleet_modules.sales.workflows import SALES_ORDER_WORKFLOW
from fleet_services.access_guard import assert_branch_access, scope_branch_filter

logger = get_logger("modules.sales.service")

_ORDER_KIND = "sales_order"


class SalesOrderService:
    """
    Orchestrates sales order operations.

    Contract
    --------
    * Every mutating method returns the order as a frozen ``SalesOrder``
      DTO reflecting the committed state.
    * Read methods (``get``, ``list_orders``) never write.
    """

    def __init__(
        self,
        session: Session,
        stock_ledger: StockLedger,
        receivables: ReceivableIssuer,
        settings: FulfillmentSettings | None = None,
        clock: Clock | None = None,
        sequencer: OrderNumberSequencer | None = None,
    ):
        self._session = session
        self._ledger = stock_ledger
        self._receivables = receivables
        self._settings = settings or FulfillmentSettings()
        self._clock = clock or SystemClock()
        self._sequencer = sequencer or OrderNumberSequencer(session, SalesOrderModel)

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        actor: ActorContext,
        customer_id: UUID,
        branch_id: UUID,
        lines: Sequence[OrderLineInput],
        order_date: date | None = None,
        notes: str | None = None,
    ) -> SalesOrder:
        """Create a DRAFT sales order with a sequenced number."""
        assert_branch_access(actor, branch_id, self._settings.unrestricted_roles)

        attempts = 0
        while True:
            attempts += 1
            number: str | None = None
            try:
                company_id = self._settings.default_company_id
                resolve_branch(self._session, branch_id, company_id)
                customer = resolve_counterparty(
                    self._session, PartyType.CUSTOMER, customer_id, branch_id,
                )
                normalized = normalize_lines(lines, _ORDER_KIND)
                products = resolve_products(
                    self._session, (ln.product_id for ln in normalized), company_id, branch_id,
                )

                number = self._sequencer.next_number(
                    branch_id,
                    self._settings.sales_order_prefix,
                    self._settings.order_number_min_digits,
                )
                order = SalesOrderModel(
                    number=number,
                    customer_id=customer.id,
                    company_id=company_id,
                    branch_id=branch_id,
                    order_date=order_date or self._clock.today(),
                    status=SOStatus.DRAFT.value,
                    notes=notes,
                    version=1,
                    created_at=self._clock.now(),
                    created_by_id=actor.user_id,
                )
                self._session.add(order)
                self._session.flush()

                for idx, line in enumerate(normalized, start=1):
                    order.lines.append(
                        SalesOrderLineModel(
                            line_number=idx,
                            product_id=line.product_id,
                            quantity_ordered=line.quantity,
                            quantity_invoiced=round_quantity(ZERO),
                            unit_price=line.unit_price,
                            line_total=line.line_total,
                            created_by_id=actor.user_id,
                        )
                    )
                self._session.flush()
                self._session.commit()

            except IntegrityError:
                self._session.rollback()
                if number is None or not self._number_taken(branch_id, number):
                    raise
                logger.warning(
                    "sales_order_number_conflict",
                    extra={
                        "branch_id": str(branch_id),
                        "number": number,
                        "attempt": attempts,
                    },
                )
                if attempts > self._settings.order_number_retries:
                    raise OrderNumberConflictError(str(branch_id), number, attempts)
                continue
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "sales_order_created",
                extra={
                    "order_id": str(order.id),
                    "number": order.number,
                    "branch_id": str(branch_id),
                    "customer_id": str(customer_id),
                    "line_count": len(normalized),
                    "total": str(order_total(ln.line_total for ln in normalized)),
                    "actor_id": str(actor.user_id),
                },
            )
            return order.to_dto(
                customer_name=customer.name,
                product_labels={pid: (p.name, p.code) for pid, p in products.items()},
            )

    def _number_taken(self, branch_id: UUID, number: str) -> bool:
        count = self._session.scalar(
            select(func.count(SalesOrderModel.id)).where(
                SalesOrderModel.branch_id == branch_id,
                SalesOrderModel.number == number,
            )
        )
        return bool(count)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, actor: ActorContext, order_id: UUID) -> SalesOrder:
        order = self._load(order_id)
        assert_branch_access(actor, order.branch_id, self._settings.unrestricted_roles)
        return self._to_dto(order)

    def list_orders(
        self,
        actor: ActorContext,
        *,
        branch_id: UUID | None = None,
        status: SOStatus | str | None = None,
        customer_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> OrderPage[SalesOrder]:
        """Filtered, paginated listing, newest first."""
        page, limit = validate_paging(
            page, limit, self._settings.default_page_size, self._settings.max_page_size,
        )
        effective_branch = scope_branch_filter(
            actor, branch_id, self._settings.unrestricted_roles,
        )

        conditions: list[Any] = [
            SalesOrderModel.company_id == self._settings.default_company_id,
            SalesOrderModel.deleted_at.is_(None),
        ]
        if effective_branch is not None:
            conditions.append(SalesOrderModel.branch_id == effective_branch)
        if status is not None:
            conditions.append(SalesOrderModel.status == parse_status(SOStatus, status).value)
        if customer_id is not None:
            conditions.append(SalesOrderModel.customer_id == customer_id)
        lower, upper = creation_date_bounds(start_date, end_date)
        if lower is not None:
            conditions.append(SalesOrderModel.created_at >= lower)
        if upper is not None:
            conditions.append(SalesOrderModel.created_at < upper)

        total = self._session.scalar(
            select(func.count(SalesOrderModel.id)).where(*conditions)
        ) or 0
        rows = self._session.scalars(
            select(SalesOrderModel)
            .where(*conditions)
            .order_by(SalesOrderModel.created_at.desc(), SalesOrderModel.number.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()

        names = party_names(self._session, (r.customer_id for r in rows))
        labels = product_labels(
            self._session, (ln.product_id for r in rows for ln in r.lines),
        )
        items = tuple(r.to_dto(names.get(r.customer_id), labels) for r in rows)
        return OrderPage(items=items, total=total, page=page, limit=limit)

    # =========================================================================
    # Update / remove / cancel
    # =========================================================================

    def update(
        self,
        actor: ActorContext,
        order_id: UUID,
        *,
        customer_id: UUID | None = UNSET,
        order_date: date | None = UNSET,
        notes: str | None = UNSET,
        lines: Sequence[OrderLineInput] | None = UNSET,
        status: SOStatus | str = UNSET,
    ) -> SalesOrder:
        """
        Edit a DRAFT order.

        ``status`` may only name a manual workflow action (``CONFIRMED`` or
        ``CANCELLED``).
        """
        try:
            order = self._load(order_id, for_update=True)
            assert_branch_access(actor, order.branch_id, self._settings.unrestricted_roles)
            self._require_draft(order, "edit")

            changed: list[str] = []
            if customer_id is not UNSET and customer_id is not None:
                customer = resolve_counterparty(
                    self._session, PartyType.CUSTOMER, customer_id, order.branch_id,
                )
                order.customer_id = customer.id
                changed.append("customer_id")
            if order_date is not UNSET and order_date is not None:
                order.order_date = order_date
                changed.append("order_date")
            if notes is not UNSET:
                order.notes = notes
                changed.append("notes")
            if lines is not UNSET:
                normalized = normalize_lines(lines, _ORDER_KIND)
                resolve_products(
                    self._session,
                    (ln.product_id for ln in normalized),
                    order.company_id,
                    order.branch_id,
                )
                order.lines.clear()
                for idx, line in enumerate(normalized, start=1):
                    order.lines.append(
                        SalesOrderLineModel(
                            line_number=idx,
                            product_id=line.product_id,
                            quantity_ordered=line.quantity,
                            quantity_invoiced=round_quantity(ZERO),
                            unit_price=line.unit_price,
                            line_total=line.line_total,
                            created_by_id=actor.user_id,
                        )
                    )
                changed.append("lines")
            if status is not UNSET:
                target = parse_status(SOStatus, status).value
                if target != order.status:
                    require_transition(SALES_ORDER_WORKFLOW, order.status, target, manual=True)
                    order.status = target
                    changed.append("status")

            self._touch(order, actor)
            self._session.flush()
            self._session.commit()

            logger.info(
                "sales_order_updated",
                extra={
                    "order_id": str(order.id),
                    "number": order.number,
                    "changed": changed,
                    "status": order.status,
                    "version": order.version,
                },
            )
            return self._to_dto(order)

        except StaleDataError as exc:
            self._session.rollback()
            raise OptimisticLockError("sales_order", str(order_id)) from exc
        except Exception:
            self._session.rollback()
            raise

    def cancel(self, actor: ActorContext, order_id: UUID) -> SalesOrder:
        """Cancel a DRAFT order."""
        return self.update(actor, order_id, status=SOStatus.CANCELLED)

    def remove(self, actor: ActorContext, order_id: UUID) -> None:
        """Soft-delete a DRAFT order.  Its number stays reserved."""
        try:
            order = self._load(order_id, for_update=True)
            assert_branch_access(actor, order.branch_id, self._settings.unrestricted_roles)
            self._require_draft(order, "delete")

            order.deleted_at = self._clock.now()
            self._touch(order, actor)
            self._session.flush()
            self._session.commit()

            logger.info(
                "sales_order_removed",
                extra={"order_id": str(order.id), "number": order.number},
            )

        except StaleDataError as exc:
            self._session.rollback()
            raise OptimisticLockError("sales_order", str(order_id)) from exc
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Invoice
    # =========================================================================

    def invoice(
        self,
        actor: ActorContext,
        order_id: UUID,
        create_receivable: bool = True,
        deduct_stock: bool = False,
    ) -> SalesOrder:
        """
        Invoice the whole order and mark it DELIVERED.

        With ``deduct_stock`` every product's pending quantity is checked
        against the default warehouse balance first; any shortfall aborts
        with nothing written.  One EXIT movement is then posted per line and
        the line's ``quantity_invoiced`` catches up with the ordered
        quantity.  With ``create_receivable`` one receivable is issued for
        the order total.
        """
        try:
            order = self._load(order_id, for_update=True)
            assert_branch_access(actor, order.branch_id, self._settings.unrestricted_roles)

            with LogContext.bind(order_id=str(order.id), actor_id=str(actor.user_id)):
                if order.status == SOStatus.CANCELLED.value:
                    raise OrderCancelledError(order.number)
                if order.status == SOStatus.DELIVERED.value:
                    raise OrderAlreadyFulfilledError(order.number, order.status)

                total = order_total(ln.line_total for ln in order.lines)
                if total <= ZERO:
                    raise NothingToInvoiceError(order.number, total)

                require_transition(SALES_ORDER_WORKFLOW, order.status, SOStatus.DELIVERED.value)

                if deduct_stock:
                    self._check_stock(order)

                customer_name = party_names(self._session, [order.customer_id]).get(
                    order.customer_id, str(order.customer_id),
                )
                origin = OriginDocument(
                    origin_type=OriginType.SALES_ORDER,
                    origin_id=order.id,
                    document_number=order.number,
                    company_id=order.company_id,
                    branch_id=order.branch_id,
                    notes=f"Invoicing of sales order {order.number}",
                )

                receivable_id: UUID | None = None
                if create_receivable:
                    receivable_id = self._receivables.issue_receivable(
                        f"Sales order {order.number} - {customer_name}",
                        total,
                        self._clock.today() + timedelta(days=self._settings.receivable_due_days),
                        OriginType.SALES_ORDER,
                        order.id,
                        order.customer_id,
                        order.branch_id,
                        company_id=order.company_id,
                        document_number=order.number,
                        notes=origin.notes,
                        actor_id=actor.user_id,
                    )

                movements = self._post_exits(order, origin, actor) if deduct_stock else 0

                previous_status = order.status
                order.status = SOStatus.DELIVERED.value
                self._touch(order, actor)

                self._session.flush()
                self._session.commit()

                logger.info(
                    "sales_order_invoiced",
                    extra={
                        "number": order.number,
                        "total": str(total),
                        "from_status": previous_status,
                        "to_status": order.status,
                        "receivable_id": str(receivable_id) if receivable_id else None,
                        "stock_movements": movements,
                        "version": order.version,
                    },
                )
                return self._to_dto(order)

        except StaleDataError as exc:
            self._session.rollback()
            logger.warning(
                "sales_order_version_conflict",
                extra={"order_id": str(order_id)},
            )
            raise OptimisticLockError("sales_order", str(order_id)) from exc
        except Exception:
            self._session.rollback()
            raise

    def _check_stock(self, order: SalesOrderModel) -> None:
        """Compare summed pending quantities per product with availability."""
        required: dict[UUID, Decimal] = {}
        for line in order.lines:
            pending = round_quantity(line.quantity_ordered - line.quantity_invoiced)
            if pending > ZERO:
                required[line.product_id] = required.get(line.product_id, ZERO) + pending
        if not required:
            return

        warehouse_id = self._ledger.get_default_warehouse(order.company_id)
        for product_id, quantity in required.items():
            available = self._ledger.get_available_quantity(product_id, warehouse_id)
            if available < quantity:
                name, _code = product_labels(self._session, [product_id]).get(
                    product_id, (None, None),
                )
                logger.warning(
                    "sales_order_stock_gate_failed",
                    extra={
                        "number": order.number,
                        "product_id": str(product_id),
                        "available": str(available),
                        "required": str(quantity),
                    },
                )
                raise InsufficientStockError(str(product_id), name, available, quantity)

    def _post_exits(
        self,
        order: SalesOrderModel,
        origin: OriginDocument,
        actor: ActorContext,
    ) -> int:
        """One EXIT per line with a pending quantity; accumulates invoiced."""
        posted = 0
        for line in order.lines:
            pending = round_quantity(line.quantity_ordered - line.quantity_invoiced)
            if pending <= ZERO:
                continue
            self._ledger.post_movement(
                MovementType.EXIT,
                line.product_id,
                pending,
                None,
                origin,
                actor_id=actor.user_id,
            )
            line.quantity_invoiced = round_quantity(line.quantity_invoiced + pending)
            line.updated_by_id = actor.user_id
            posted += 1
        return posted

    # =========================================================================
    # Internals
    # =========================================================================

    def _load(self, order_id: UUID, for_update: bool = False) -> SalesOrderModel:
        stmt = select(SalesOrderModel).where(
            SalesOrderModel.id == order_id,
            SalesOrderModel.deleted_at.is_(None),
        )
        if for_update:
            stmt = stmt.with_for_update(of=SalesOrderModel).execution_options(
                populate_existing=True,
            )
        order = self._session.scalars(stmt).first()
        if order is None:
            raise OrderNotFoundError(_ORDER_KIND, str(order_id))
        return order

    @staticmethod
    def _require_draft(order: SalesOrderModel, action: str) -> None:
        if order.status != SOStatus.DRAFT.value:
            raise OrderLockedError(order.number, order.status, action)

    def _touch(self, order: SalesOrderModel, actor: ActorContext) -> None:
        order.version += 1
        order.updated_by_id = actor.user_id

    def _to_dto(self, order: SalesOrderModel) -> SalesOrder:
        names = party_names(self._session, [order.customer_id])
        labels = product_labels(self._session, (ln.product_id for ln in order.lines))
        return order.to_dto(names.get(order.customer_id), labels)
