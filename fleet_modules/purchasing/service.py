"""
Purchasing Module Service (``fleet_modules.purchasing.service``).

Responsibility
--------------
Purchase order lifecycle: creation with sequenced numbers, filtered
listing, editing while in DRAFT, soft deletion, cancellation, and goods
receipt.  Receiving posts ENTRY movements to the stock ledger and may
issue one payable for the value received.

Architecture position
---------------------
**Modules layer** -- ``PurchaseOrderService`` is the sole public entry
point for purchase order operations.  It depends on the kernel
``StockLedger`` and ``PayableIssuer`` ports, never on the inventory or AP
modules directly.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on success,
  ``rollback`` on any exception), so no partial ledger postings, line
  mutations or payables ever become visible.
* ``0 <= quantity_received <= quantity_ordered`` on every line: receipt
  deltas are clamped to the pending quantity without error.
* Header and lines change only while the order is DRAFT.
* Status only moves along ``PURCHASE_ORDER_WORKFLOW`` and never regresses.
* The order row is locked (``SELECT ... FOR UPDATE``) for the duration of
  every mutation, backed by the optimistic ``version`` column.

Failure modes
-------------
* Reference or state violations raise typed ``FleetKernelError``
  subclasses before any write.
* Number collision surviving the configured retries
  -> ``OrderNumberConflictError``.
* Concurrent modification detected at flush -> ``OptimisticLockError``.

Usage::

    service = PurchaseOrderService(session, stock_ledger, payables, settings, clock)
    po = service.create(actor, supplier_id, branch_id,
                        [OrderLineInput(product_id, "10", "25.50")])
    po = service.update(actor, po.id, status=POStatus.SENT)
    po = service.receive(actor, po.id, [ReceiptLineInput(po.lines[0].id, "4")])
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
from fleet_kernel.db.types import ZERO, round_currency, round_quantity
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
from fleet_kernel.domain.ports import PayableIssuer, StockLedger
from fleet_kernel.domain.workflow import require_transition
from fleet_kernel.exceptions import (
    OptimisticLockError,
    OrderCancelledError,
    OrderLineNotFoundError,
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
    parse_status,
    party_names,
    product_labels,
    resolve_branch,
    resolve_counterparty,
    resolve_products,
    validate_paging,
)
from fleet_modules.purchasing.models import POStatus, PurchaseOrder, ReceiptLineInput
from fleet_modules.purchasing.orm import PurchaseOrderLineModel, PurchaseOrderModel
from fleet_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW
from fleet_services.access_guard import assert_branch_access, scope_branch_filter

logger = get_logger("modules.purchasing.service")

_ORDER_KIND = "purchase_order"


class PurchaseOrderService:
    """
    Orchestrates purchase order operations.

    Contract
    --------
    * Every mutating method returns the order as a frozen ``PurchaseOrder``
      DTO reflecting the committed state.
    * Read methods (``get``, ``list_orders``) never write.

    Guarantees
    ----------
    * Session is committed only when the whole operation succeeded.
    * Stock ledger and payable writes share the order's transaction.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT post accounting entries; payables are issued through the
      ``PayableIssuer`` port only.
    """

    def __init__(
        self,
        session: Session,
        stock_ledger: StockLedger,
        payables: PayableIssuer,
        settings: FulfillmentSettings | None = None,
        clock: Clock | None = None,
        sequencer: OrderNumberSequencer | None = None,
    ):
        self._session = session
        self._ledger = stock_ledger
        self._payables = payables
        self._settings = settings or FulfillmentSettings()
        self._clock = clock or SystemClock()
        self._sequencer = sequencer or OrderNumberSequencer(session, PurchaseOrderModel)

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        actor: ActorContext,
        supplier_id: UUID,
        branch_id: UUID,
        lines: Sequence[OrderLineInput],
        expected_delivery_date: date | None = None,
        notes: str | None = None,
    ) -> PurchaseOrder:
        """
        Create a DRAFT purchase order with a sequenced number.

        The number is computed without locking; a collision on
        ``(branch_id, number)`` rolls back and recomputes, up to
        ``order_number_retries`` extra attempts.
        """
        assert_branch_access(actor, branch_id, self._settings.unrestricted_roles)

        attempts = 0
        while True:
            attempts += 1
            number: str | None = None
            try:
                company_id = self._settings.default_company_id
                resolve_branch(self._session, branch_id, company_id)
                supplier = resolve_counterparty(
                    self._session, PartyType.SUPPLIER, supplier_id, branch_id,
                )
                normalized = normalize_lines(lines, _ORDER_KIND)
                products = resolve_products(
                    self._session, (ln.product_id for ln in normalized), company_id, branch_id,
                )

                number = self._sequencer.next_number(
                    branch_id,
                    self._settings.purchase_order_prefix,
                    self._settings.order_number_min_digits,
                )
                order = PurchaseOrderModel(
                    number=number,
                    supplier_id=supplier.id,
                    company_id=company_id,
                    branch_id=branch_id,
                    expected_delivery_date=expected_delivery_date,
                    status=POStatus.DRAFT.value,
                    notes=notes,
                    version=1,
                    created_at=self._clock.now(),
                    created_by_id=actor.user_id,
                )
                self._session.add(order)
                # Header alone first: a number collision surfaces here
                self._session.flush()

                for idx, line in enumerate(normalized, start=1):
                    order.lines.append(
                        PurchaseOrderLineModel(
                            line_number=idx,
                            product_id=line.product_id,
                            quantity_ordered=line.quantity,
                            quantity_received=round_quantity(ZERO),
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
                    "purchase_order_number_conflict",
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
                "purchase_order_created",
                extra={
                    "order_id": str(order.id),
                    "number": order.number,
                    "branch_id": str(branch_id),
                    "supplier_id": str(supplier_id),
                    "line_count": len(normalized),
                    "actor_id": str(actor.user_id),
                },
            )
            return order.to_dto(
                supplier_name=supplier.name,
                product_labels={pid: (p.name, p.code) for pid, p in products.items()},
            )

    def _number_taken(self, branch_id: UUID, number: str) -> bool:
        count = self._session.scalar(
            select(func.count(PurchaseOrderModel.id)).where(
                PurchaseOrderModel.branch_id == branch_id,
                PurchaseOrderModel.number == number,
            )
        )
        return bool(count)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, actor: ActorContext, order_id: UUID) -> PurchaseOrder:
        """Return the order with lines, names and total."""
        order = self._load(order_id)
        assert_branch_access(actor, order.branch_id, self._settings.unrestricted_roles)
        return self._to_dto(order)

    def list_orders(
        self,
        actor: ActorContext,
        *,
        branch_id: UUID | None = None,
        status: POStatus | str | None = None,
        supplier_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> OrderPage[PurchaseOrder]:
        """
        Filtered, paginated listing, newest first.

        ``start_date``/``end_date`` filter on the creation timestamp; the
        end day is inclusive.
        """
        page, limit = validate_paging(
            page, limit, self._settings.default_page_size, self._settings.max_page_size,
        )
        effective_branch = scope_branch_filter(
            actor, branch_id, self._settings.unrestricted_roles,
        )

        conditions: list[Any] = [
            PurchaseOrderModel.company_id == self._settings.default_company_id,
            PurchaseOrderModel.deleted_at.is_(None),
        ]
        if effective_branch is not None:
            conditions.append(PurchaseOrderModel.branch_id == effective_branch)
        if status is not None:
            conditions.append(PurchaseOrderModel.status == parse_status(POStatus, status).value)
        if supplier_id is not None:
            conditions.append(PurchaseOrderModel.supplier_id == supplier_id)
        lower, upper = creation_date_bounds(start_date, end_date)
        if lower is not None:
            conditions.append(PurchaseOrderModel.created_at >= lower)
        if upper is not None:
            conditions.append(PurchaseOrderModel.created_at < upper)

        total = self._session.scalar(
            select(func.count(PurchaseOrderModel.id)).where(*conditions)
        ) or 0
        rows = self._session.scalars(
            select(PurchaseOrderModel)
            .where(*conditions)
            .order_by(PurchaseOrderModel.created_at.desc(), PurchaseOrderModel.number.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()

        names = party_names(self._session, (r.supplier_id for r in rows))
        labels = product_labels(
            self._session, (ln.product_id for r in rows for ln in r.lines),
        )
        items = tuple(r.to_dto(names.get(r.supplier_id), labels) for r in rows)
        return OrderPage(items=items, total=total, page=page, limit=limit)

    # =========================================================================
    # Update / remove / cancel
    # =========================================================================

    def update(
        self,
        actor: ActorContext,
        order_id: UUID,
        *,
        supplier_id: UUID | None = UNSET,
        expected_delivery_date: date | None = UNSET,
        notes: str | None = UNSET,
        lines: Sequence[OrderLineInput] | None = UNSET,
        status: POStatus | str = UNSET,
    ) -> PurchaseOrder:
        """
        Edit a DRAFT order.

        Omitted arguments are left unchanged.  ``lines`` replaces every line
        wholesale.  ``status`` may only name a manual workflow action
        (``SENT`` or ``CANCELLED``) and is applied after the other fields.
        """
        try:
            order = self._load(order_id, for_update=True)
            assert_branch_access(actor, order.branch_id, self._settings.unrestricted_roles)
            self._require_draft(order, "edit")

            changed: list[str] = []
            if supplier_id is not UNSET and supplier_id is not None:
                supplier = resolve_counterparty(
                    self._session, PartyType.SUPPLIER, supplier_id, order.branch_id,
                )
                order.supplier_id = supplier.id
                changed.append("supplier_id")
            if expected_delivery_date is not UNSET:
                order.expected_delivery_date = expected_delivery_date
                changed.append("expected_delivery_date")
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
                        PurchaseOrderLineModel(
                            line_number=idx,
                            product_id=line.product_id,
                            quantity_ordered=line.quantity,
                            quantity_received=round_quantity(ZERO),
                            unit_price=line.unit_price,
                            line_total=line.line_total,
                            created_by_id=actor.user_id,
                        )
                    )
                changed.append("lines")
            if status is not UNSET:
                target = parse_status(POStatus, status).value
                if target != order.status:
                    require_transition(PURCHASE_ORDER_WORKFLOW, order.status, target, manual=True)
                    order.status = target
                    changed.append("status")

            self._touch(order, actor)
            self._session.flush()
            self._session.commit()

            logger.info(
                "purchase_order_updated",
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
            raise OptimisticLockError("purchase_order", str(order_id)) from exc
        except Exception:
            self._session.rollback()
            raise

    def cancel(self, actor: ActorContext, order_id: UUID) -> PurchaseOrder:
        """Cancel a DRAFT order."""
        return self.update(actor, order_id, status=POStatus.CANCELLED)

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
                "purchase_order_removed",
                extra={"order_id": str(order.id), "number": order.number},
            )

        except StaleDataError as exc:
            self._session.rollback()
            raise OptimisticLockError("purchase_order", str(order_id)) from exc
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Receive
    # =========================================================================

    def receive(
        self,
        actor: ActorContext,
        order_id: UUID,
        receipts: Sequence[ReceiptLineInput],
        create_payable: bool = False,
    ) -> PurchaseOrder:
        """
        Receive goods against the order's lines.

        Each positive delta is clamped to the line's pending quantity, posts
        one ENTRY movement at the line's unit price, and accumulates into
        ``quantity_received``.  The status is then recomputed from the
        totals.  When ``create_payable`` is set and the accepted value is
        positive, exactly one payable is issued for it.

        On a fully received order every delta clamps to zero and the order
        is returned unchanged.
        """
        try:
            order = self._load(order_id, for_update=True)
            assert_branch_access(actor, order.branch_id, self._settings.unrestricted_roles)

            with LogContext.bind(order_id=str(order.id), actor_id=str(actor.user_id)):
                if order.status == POStatus.CANCELLED.value:
                    raise OrderCancelledError(order.number)

                plan = self._plan_receipt(order, receipts)

                if not plan:
                    self._session.commit()
                    logger.info(
                        "purchase_order_receipt_empty",
                        extra={"number": order.number, "requested_lines": len(receipts)},
                    )
                    return self._to_dto(order)

                origin = OriginDocument(
                    origin_type=OriginType.PURCHASE_ORDER,
                    origin_id=order.id,
                    document_number=order.number,
                    company_id=order.company_id,
                    branch_id=order.branch_id,
                    notes=f"Receipt of purchase order {order.number}",
                )

                accepted_value = ZERO
                for line, delta in plan:
                    self._ledger.post_movement(
                        MovementType.ENTRY,
                        line.product_id,
                        delta,
                        line.unit_price,
                        origin,
                        actor_id=actor.user_id,
                    )
                    line.quantity_received = round_quantity(line.quantity_received + delta)
                    line.updated_by_id = actor.user_id
                    if line.unit_price is not None:
                        accepted_value += delta * line.unit_price

                    logger.info(
                        "purchase_order_line_received",
                        extra={
                            "number": order.number,
                            "line_id": str(line.id),
                            "product_id": str(line.product_id),
                            "delta": str(delta),
                            "quantity_received": str(line.quantity_received),
                            "quantity_ordered": str(line.quantity_ordered),
                        },
                    )

                previous_status = order.status
                new_status = self._receipt_status(order)
                if new_status != previous_status:
                    require_transition(PURCHASE_ORDER_WORKFLOW, previous_status, new_status)
                    order.status = new_status
                self._touch(order, actor)

                payable_id: UUID | None = None
                payable_amount = round_currency(accepted_value)
                if create_payable and payable_amount > ZERO:
                    supplier_name = party_names(self._session, [order.supplier_id]).get(
                        order.supplier_id, str(order.supplier_id),
                    )
                    payable_id = self._payables.issue_payable(
                        f"Purchase order {order.number} - {supplier_name}",
                        payable_amount,
                        self._clock.today() + timedelta(days=self._settings.payable_due_days),
                        OriginType.PURCHASE_ORDER,
                        order.id,
                        order.supplier_id,
                        order.branch_id,
                        company_id=order.company_id,
                        document_number=order.number,
                        notes=origin.notes,
                        actor_id=actor.user_id,
                    )

                self._session.flush()
                self._session.commit()

                logger.info(
                    "purchase_order_received",
                    extra={
                        "number": order.number,
                        "accepted_lines": len(plan),
                        "accepted_value": str(payable_amount),
                        "from_status": previous_status,
                        "to_status": order.status,
                        "payable_id": str(payable_id) if payable_id else None,
                        "version": order.version,
                    },
                )
                return self._to_dto(order)

        except StaleDataError as exc:
            self._session.rollback()
            logger.warning(
                "purchase_order_version_conflict",
                extra={"order_id": str(order_id)},
            )
            raise OptimisticLockError("purchase_order", str(order_id)) from exc
        except Exception:
            self._session.rollback()
            raise

    def _plan_receipt(
        self,
        order: PurchaseOrderModel,
        receipts: Sequence[ReceiptLineInput],
    ) -> list[tuple[PurchaseOrderLineModel, Decimal]]:
        """
        Validate every receipt and compute the clamped deltas before any
        write.  Repeated line ids share the same pending quantity.
        """
        lines_by_id = {line.id: line for line in order.lines}
        planned: dict[UUID, Decimal] = {}
        plan: list[tuple[PurchaseOrderLineModel, Decimal]] = []

        for receipt in receipts:
            requested = round_quantity(receipt.quantity_received)
            if requested <= ZERO:
                continue
            line = lines_by_id.get(receipt.line_id)
            if line is None:
                raise OrderLineNotFoundError(order.number, str(receipt.line_id))

            already = planned.get(line.id, ZERO)
            pending = round_quantity(line.quantity_ordered - line.quantity_received - already)
            delta = min(requested, pending)
            if delta <= ZERO:
                continue
            if delta < requested:
                logger.info(
                    "purchase_order_receipt_clamped",
                    extra={
                        "number": order.number,
                        "line_id": str(line.id),
                        "requested": str(requested),
                        "accepted": str(delta),
                    },
                )
            planned[line.id] = already + delta
            plan.append((line, delta))
        return plan

    @staticmethod
    def _receipt_status(order: PurchaseOrderModel) -> str:
        total_ordered = sum((ln.quantity_ordered for ln in order.lines), ZERO)
        total_received = sum((ln.quantity_received for ln in order.lines), ZERO)

        status = order.status
        if total_received >= total_ordered:
            status = POStatus.RECEIVED.value
        elif total_received > ZERO:
            status = POStatus.PARTIALLY_RECEIVED.value

        if order.status == POStatus.DRAFT.value:
            return POStatus.RECEIVED.value if status == POStatus.RECEIVED.value else POStatus.SENT.value
        return status

    # =========================================================================
    # Internals
    # =========================================================================

    def _load(self, order_id: UUID, for_update: bool = False) -> PurchaseOrderModel:
        stmt = select(PurchaseOrderModel).where(
            PurchaseOrderModel.id == order_id,
            PurchaseOrderModel.deleted_at.is_(None),
        )
        if for_update:
            stmt = stmt.with_for_update(of=PurchaseOrderModel).execution_options(
                populate_existing=True,
            )
        order = self._session.scalars(stmt).first()
        if order is None:
            raise OrderNotFoundError(_ORDER_KIND, str(order_id))
        return order

    @staticmethod
    def _require_draft(order: PurchaseOrderModel, action: str) -> None:
        if order.status != POStatus.DRAFT.value:
            raise OrderLockedError(order.number, order.status, action)

    def _touch(self, order: PurchaseOrderModel, actor: ActorContext) -> None:
        order.version += 1
        order.updated_by_id = actor.user_id

    def _to_dto(self, order: PurchaseOrderModel) -> PurchaseOrder:
        names = party_names(self._session, [order.supplier_id])
        labels = product_labels(self._session, (ln.product_id for ln in order.lines))
        return order.to_dto(names.get(order.supplier_id), labels)
