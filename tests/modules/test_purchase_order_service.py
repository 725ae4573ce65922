"""
Tests for PurchaseOrderService.

Validates:
- Creation: sequenced number, normalized lines, reference checks
- Queries: get with names and totals, filtered and paginated listing
- DRAFT-only editing, manual send/cancel, soft deletion
- Receiving: clamping, ENTRY movements, status recomputation, payables
- Unit of work: a failure mid-receipt leaves nothing behind
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from fleet_kernel.domain.context import ActorContext
from fleet_kernel.domain.dtos import MovementType, OrderLineInput, OriginType
from fleet_kernel.exceptions import (
    BranchAccessDeniedError,
    BranchNotFoundError,
    CounterpartyNotFoundError,
    EmptyOrderError,
    InvalidQuantityError,
    InvalidTransitionError,
    OrderCancelledError,
    OrderLineNotFoundError,
    OrderLockedError,
    OrderNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from fleet_kernel.models import Party, PartyType
from fleet_modules.purchasing.models import POStatus, ReceiptLineInput
from fleet_modules.purchasing.orm import PurchaseOrderModel
from fleet_modules.purchasing.service import PurchaseOrderService

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def po_service(services) -> PurchaseOrderService:
    return services.purchase_orders


@pytest.fixture
def other_actor(other_branch) -> ActorContext:
    return ActorContext(user_id=uuid4(), branch_id=other_branch.id, role="OPERATOR")


@pytest.fixture
def draft_po(po_service, actor, supplier, branch, product_a):
    """DRAFT order: 10 x 25.50."""
    return po_service.create(
        actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "10", "25.50")],
    )


@pytest.fixture
def sent_po(po_service, actor, draft_po):
    return po_service.update(actor, draft_po.id, status=POStatus.SENT)


def _movements(services, order_id):
    return services.stock_ledger.list_movements(
        origin_type=OriginType.PURCHASE_ORDER, origin_id=order_id,
    )


class _FailingLedger:
    """Delegates to the real ledger but fails on the Nth posting."""

    def __init__(self, real, fail_on: int):
        self._real = real
        self._fail_on = fail_on
        self.calls = 0

    def post_movement(self, *args, **kwargs):
        self.calls += 1
        if self.calls == self._fail_on:
            raise RuntimeError("ledger unavailable")
        return self._real.post_movement(*args, **kwargs)

    def get_available_quantity(self, product_id, warehouse_id):
        return self._real.get_available_quantity(product_id, warehouse_id)

    def get_default_warehouse(self, company_id):
        return self._real.get_default_warehouse(company_id)


# =============================================================================
# Create
# =============================================================================


class TestCreate:

    def test_creates_draft_with_sequenced_number(self, draft_po, supplier, actor):
        assert draft_po.number == "PC-001"
        assert draft_po.status is POStatus.DRAFT
        assert draft_po.version == 1
        assert draft_po.supplier_name == "Auto Pecas Ltda"
        assert draft_po.created_by_id == actor.user_id

    def test_lines_normalized(self, draft_po, product_a):
        [line] = draft_po.lines
        assert line.line_number == 1
        assert line.product_id == product_a.id
        assert line.product_name == "Engine oil 15W40"
        assert line.product_code == "OIL-15W40"
        assert line.quantity_ordered == Decimal("10")
        assert line.quantity_received == Decimal("0")
        assert line.unit_price == Decimal("25.50")
        assert line.line_total == Decimal("255.00")
        assert draft_po.total_amount == Decimal("255.00")

    def test_numbers_increase(self, po_service, draft_po, actor, supplier, branch, product_a):
        second = po_service.create(
            actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "1")],
        )
        assert second.number == "PC-002"
        assert second.total_amount == Decimal("0.00")

    def test_optional_header_fields(self, po_service, actor, supplier, branch, product_a):
        po = po_service.create(
            actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "2", "1.999")],
            expected_delivery_date=date(2024, 2, 1), notes="Urgent",
        )
        assert po.expected_delivery_date == date(2024, 2, 1)
        assert po.notes == "Urgent"
        assert po.lines[0].unit_price == Decimal("2.00")
        assert po.lines[0].line_total == Decimal("4.00")

    def test_logged(self, po_service, actor, supplier, branch, product_a, captured_logs):
        po_service.create(actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "1")])
        created = [r for r in captured_logs() if r["message"] == "purchase_order_created"]
        assert len(created) == 1
        assert created[0]["number"] == "PC-001"
        assert created[0]["line_count"] == 1


class TestCreateValidation:
    """Reference and line checks happen before anything is written."""

    def _assert_nothing_written(self, session):
        assert session.query(PurchaseOrderModel).count() == 0

    def test_unknown_supplier(self, po_service, session, actor, branch, product_a):
        with pytest.raises(CounterpartyNotFoundError) as exc_info:
            po_service.create(actor, uuid4(), branch.id, [OrderLineInput(product_a.id, "1")])
        assert exc_info.value.party_type == "supplier"
        assert exc_info.value.http_status == 404
        self._assert_nothing_written(session)

    def test_customer_is_not_a_supplier(self, po_service, session, actor, branch, customer, product_a):
        with pytest.raises(CounterpartyNotFoundError):
            po_service.create(actor, customer.id, branch.id, [OrderLineInput(product_a.id, "1")])
        self._assert_nothing_written(session)

    def test_inactive_supplier(self, po_service, session, actor, branch, supplier, product_a):
        supplier.is_active = False
        session.commit()
        with pytest.raises(CounterpartyNotFoundError):
            po_service.create(actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "1")])

    def test_supplier_from_other_branch(
        self, po_service, session, admin, other_branch, supplier, product_a,
    ):
        with pytest.raises(CounterpartyNotFoundError):
            po_service.create(admin, supplier.id, other_branch.id, [OrderLineInput(product_a.id, "1")])

    def test_unknown_product(self, po_service, session, actor, supplier, branch, product_a):
        missing = uuid4()
        with pytest.raises(ProductNotFoundError) as exc_info:
            po_service.create(
                actor, supplier.id, branch.id,
                [OrderLineInput(product_a.id, "1"), OrderLineInput(missing, "1")],
            )
        assert exc_info.value.product_ids == [str(missing)]
        self._assert_nothing_written(session)

    def test_soft_deleted_product(
        self, po_service, session, actor, supplier, branch, product_a, deterministic_clock,
    ):
        product_a.deleted_at = deterministic_clock.now()
        session.commit()
        with pytest.raises(ProductNotFoundError):
            po_service.create(actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "1")])

    def test_unknown_branch(self, po_service, admin, supplier, product_a):
        with pytest.raises(BranchNotFoundError):
            po_service.create(admin, supplier.id, uuid4(), [OrderLineInput(product_a.id, "1")])

    def test_empty_lines(self, po_service, session, actor, supplier, branch):
        with pytest.raises(EmptyOrderError) as exc_info:
            po_service.create(actor, supplier.id, branch.id, [])
        assert exc_info.value.http_status == 400
        self._assert_nothing_written(session)

    def test_zero_quantity(self, po_service, actor, supplier, branch, product_a):
        with pytest.raises(InvalidQuantityError):
            po_service.create(actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "0", "1")])

    def test_access_checked_first(self, po_service, session, other_actor, branch):
        with pytest.raises(BranchAccessDeniedError):
            po_service.create(other_actor, uuid4(), branch.id, [])
        self._assert_nothing_written(session)


# =============================================================================
# Queries
# =============================================================================


class TestGet:

    def test_returns_order(self, po_service, actor, draft_po):
        po = po_service.get(actor, draft_po.id)
        assert po.number == draft_po.number
        assert po.supplier_name == "Auto Pecas Ltda"
        assert po.lines == draft_po.lines
        assert po.total_amount == Decimal("255.00")

    def test_unknown_order(self, po_service, actor, services):
        with pytest.raises(OrderNotFoundError) as exc_info:
            po_service.get(actor, uuid4())
        assert exc_info.value.order_kind == "purchase_order"

    def test_other_branch_denied(self, po_service, other_actor, draft_po):
        with pytest.raises(BranchAccessDeniedError):
            po_service.get(other_actor, draft_po.id)

    def test_admin_reads_any_branch(self, po_service, admin, draft_po):
        assert po_service.get(admin, draft_po.id).number == draft_po.number


class TestList:

    @pytest.fixture
    def three_orders(self, po_service, actor, supplier, branch, product_a, deterministic_clock):
        orders = []
        for qty in ("1", "2", "3"):
            orders.append(po_service.create(
                actor, supplier.id, branch.id, [OrderLineInput(product_a.id, qty, "5")],
            ))
            deterministic_clock.tick()
        return orders

    def test_newest_first(self, po_service, actor, three_orders):
        page = po_service.list_orders(actor)
        assert [o.number for o in page.items] == ["PC-003", "PC-002", "PC-001"]
        assert page.total == 3
        assert page.page == 1
        assert page.limit == 15
        assert page.total_pages == 1

    def test_pagination(self, po_service, actor, three_orders):
        first = po_service.list_orders(actor, page=1, limit=2)
        second = po_service.list_orders(actor, page=2, limit=2)
        assert [o.number for o in first.items] == ["PC-003", "PC-002"]
        assert [o.number for o in second.items] == ["PC-001"]
        assert first.total == second.total == 3
        assert first.total_pages == 2

    def test_status_filter(self, po_service, actor, three_orders):
        po_service.update(actor, three_orders[0].id, status=POStatus.SENT)
        page = po_service.list_orders(actor, status="SENT")
        assert [o.number for o in page.items] == ["PC-001"]

    def test_unknown_status_filter_rejected(self, po_service, actor, three_orders):
        with pytest.raises(ValidationError, match="Unknown status"):
            po_service.list_orders(actor, status="SHIPPED")

    def test_supplier_filter(self, po_service, actor, three_orders):
        assert po_service.list_orders(actor, supplier_id=uuid4()).total == 0

    def test_date_range_inclusive_end_day(
        self, po_service, actor, supplier, branch, product_a, deterministic_clock,
    ):
        po_service.create(actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "1")])
        deterministic_clock.advance_days(5)
        po_service.create(actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "1")])

        day_one = po_service.list_orders(
            actor, start_date=date(2024, 1, 1), end_date=date(2024, 1, 1),
        )
        assert [o.number for o in day_one.items] == ["PC-001"]
        later = po_service.list_orders(actor, start_date=date(2024, 1, 2))
        assert [o.number for o in later.items] == ["PC-002"]

    def test_excludes_soft_deleted(self, po_service, actor, three_orders):
        po_service.remove(actor, three_orders[1].id)
        page = po_service.list_orders(actor)
        assert [o.number for o in page.items] == ["PC-003", "PC-001"]

    def test_restricted_actor_scoped_to_own_branch(self, po_service, other_actor, admin, three_orders):
        assert po_service.list_orders(other_actor).total == 0
        assert po_service.list_orders(admin).total == 3

    def test_explicit_foreign_branch_denied(self, po_service, other_actor, branch, three_orders):
        with pytest.raises(BranchAccessDeniedError):
            po_service.list_orders(other_actor, branch_id=branch.id)

    @pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (1, 101)])
    def test_invalid_paging(self, po_service, actor, services, page, limit):
        with pytest.raises(ValidationError):
            po_service.list_orders(actor, page=page, limit=limit)


# =============================================================================
# Update / cancel / remove
# =============================================================================


class TestUpdate:

    def test_header_fields(self, po_service, actor, draft_po):
        po = po_service.update(
            actor, draft_po.id, notes="Call before delivery",
            expected_delivery_date=date(2024, 3, 1),
        )
        assert po.notes == "Call before delivery"
        assert po.expected_delivery_date == date(2024, 3, 1)
        assert po.version == 2

    def test_omitted_fields_unchanged(self, po_service, actor, draft_po):
        po_service.update(actor, draft_po.id, notes="first")
        po = po_service.update(actor, draft_po.id, expected_delivery_date=None)
        assert po.notes == "first"
        assert po.expected_delivery_date is None

    def test_lines_replaced_wholesale(self, po_service, actor, draft_po, product_a, product_b):
        po = po_service.update(
            actor, draft_po.id,
            lines=[OrderLineInput(product_b.id, "3", "10"), OrderLineInput(product_a.id, "1", "2")],
        )
        assert [(ln.line_number, ln.product_id) for ln in po.lines] == [
            (1, product_b.id), (2, product_a.id),
        ]
        assert po.total_amount == Decimal("32.00")

    def test_empty_lines_rejected(self, po_service, actor, draft_po):
        with pytest.raises(EmptyOrderError):
            po_service.update(actor, draft_po.id, lines=[])
        assert len(po_service.get(actor, draft_po.id).lines) == 1

    def test_change_supplier(self, po_service, session, actor, draft_po, branch):
        other = Party(
            branch_id=branch.id, party_type=PartyType.SUPPLIER.value, code="SUP-002",
            name="Pneus Sul", is_active=True, created_by_id=actor.user_id,
        )
        session.add(other)
        session.commit()
        po = po_service.update(actor, draft_po.id, supplier_id=other.id)
        assert po.supplier_name == "Pneus Sul"

    def test_customer_rejected_as_supplier(self, po_service, actor, draft_po, customer):
        with pytest.raises(CounterpartyNotFoundError):
            po_service.update(actor, draft_po.id, supplier_id=customer.id)

    def test_send(self, sent_po):
        assert sent_po.status is POStatus.SENT
        assert sent_po.version == 2

    def test_sent_order_is_locked(self, po_service, actor, sent_po):
        with pytest.raises(OrderLockedError) as exc_info:
            po_service.update(actor, sent_po.id, notes="too late")
        assert exc_info.value.action == "edit"
        assert exc_info.value.status == "SENT"

    def test_locked_regardless_of_role(self, po_service, admin, sent_po):
        with pytest.raises(OrderLockedError):
            po_service.update(admin, sent_po.id, notes="too late")

    def test_receipt_status_not_settable(self, po_service, actor, draft_po):
        with pytest.raises(InvalidTransitionError):
            po_service.update(actor, draft_po.id, status=POStatus.RECEIVED)
        assert po_service.get(actor, draft_po.id).status is POStatus.DRAFT

    def test_other_branch_denied(self, po_service, other_actor, draft_po):
        with pytest.raises(BranchAccessDeniedError):
            po_service.update(other_actor, draft_po.id, notes="x")


class TestCancelAndRemove:

    def test_cancel(self, po_service, actor, draft_po):
        po = po_service.cancel(actor, draft_po.id)
        assert po.status is POStatus.CANCELLED

    def test_cancel_sent_order_rejected(self, po_service, actor, sent_po):
        with pytest.raises(OrderLockedError):
            po_service.cancel(actor, sent_po.id)

    def test_remove_soft_deletes(self, po_service, session, actor, draft_po):
        po_service.remove(actor, draft_po.id)
        with pytest.raises(OrderNotFoundError):
            po_service.get(actor, draft_po.id)
        row = session.get(PurchaseOrderModel, draft_po.id)
        assert row is not None
        assert row.deleted_at is not None

    def test_removed_number_not_reissued(
        self, po_service, actor, draft_po, supplier, branch, product_a,
    ):
        po_service.remove(actor, draft_po.id)
        po = po_service.create(actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "1")])
        assert po.number == "PC-002"

    def test_remove_sent_order_rejected(self, po_service, actor, sent_po):
        with pytest.raises(OrderLockedError) as exc_info:
            po_service.remove(actor, sent_po.id)
        assert exc_info.value.action == "delete"

    def test_remove_twice(self, po_service, actor, draft_po):
        po_service.remove(actor, draft_po.id)
        with pytest.raises(OrderNotFoundError):
            po_service.remove(actor, draft_po.id)


# =============================================================================
# Receive
# =============================================================================


class TestReceiveScenario:
    """10 @ 25.50, sent, receive 4 then 100."""

    def test_partial_then_clamped_completion(
        self, po_service, services, actor, sent_po, product_a, default_warehouse,
    ):
        line_id = sent_po.lines[0].id

        po = po_service.receive(actor, sent_po.id, [ReceiptLineInput(line_id, "4")])
        assert po.status is POStatus.PARTIALLY_RECEIVED
        assert po.lines[0].quantity_received == Decimal("4")
        assert po.lines[0].quantity_pending == Decimal("6")

        po = po_service.receive(actor, sent_po.id, [ReceiptLineInput(line_id, "100")])
        assert po.status is POStatus.RECEIVED
        assert po.lines[0].quantity_received == Decimal("10")

        movements = _movements(services, sent_po.id)
        assert [(m.movement_type, m.quantity) for m in movements] == [
            (MovementType.ENTRY, Decimal("4")),
            (MovementType.ENTRY, Decimal("6")),
        ]
        assert all(m.unit_cost == Decimal("25.50") for m in movements)
        assert all(m.document_number == "PC-001" for m in movements)

        balance = services.stock_ledger.get_balance(product_a.id, default_warehouse)
        assert balance.quantity == Decimal("10")
        assert balance.average_cost == Decimal("25.50")

    def test_repeated_delivery_on_received_order_is_noop(
        self, po_service, services, actor, sent_po, captured_logs,
    ):
        line_id = sent_po.lines[0].id
        received = po_service.receive(actor, sent_po.id, [ReceiptLineInput(line_id, "10")])

        again = po_service.receive(
            actor, sent_po.id, [ReceiptLineInput(line_id, "10")], create_payable=True,
        )
        assert again.status is POStatus.RECEIVED
        assert again.lines[0].quantity_received == Decimal("10")
        assert again.version == received.version
        assert [m.quantity for m in _movements(services, sent_po.id)] == [Decimal("10")]
        assert services.payables.list_for_origin(OriginType.PURCHASE_ORDER, sent_po.id) == []
        assert any(r["message"] == "purchase_order_receipt_empty" for r in captured_logs())


class TestReceiveStatus:

    def test_draft_partial_receipt_becomes_sent(self, po_service, actor, draft_po):
        po = po_service.receive(actor, draft_po.id, [ReceiptLineInput(draft_po.lines[0].id, "3")])
        assert po.status is POStatus.SENT

    def test_draft_complete_receipt_becomes_received(self, po_service, actor, draft_po):
        po = po_service.receive(actor, draft_po.id, [ReceiptLineInput(draft_po.lines[0].id, "10")])
        assert po.status is POStatus.RECEIVED

    def test_status_uses_totals_across_lines(
        self, po_service, actor, supplier, branch, product_a, product_b,
    ):
        po = po_service.create(
            actor, supplier.id, branch.id,
            [OrderLineInput(product_a.id, "5", "1"), OrderLineInput(product_b.id, "5", "1")],
        )
        po = po_service.update(actor, po.id, status=POStatus.SENT)
        po = po_service.receive(actor, po.id, [ReceiptLineInput(po.lines[0].id, "5")])
        assert po.status is POStatus.PARTIALLY_RECEIVED
        po = po_service.receive(actor, po.id, [ReceiptLineInput(po.lines[1].id, "5")])
        assert po.status is POStatus.RECEIVED

    def test_cancelled_order_rejected(self, po_service, actor, draft_po):
        po_service.cancel(actor, draft_po.id)
        with pytest.raises(OrderCancelledError):
            po_service.receive(actor, draft_po.id, [ReceiptLineInput(draft_po.lines[0].id, "1")])

    def test_version_bumped(self, po_service, actor, sent_po):
        po = po_service.receive(actor, sent_po.id, [ReceiptLineInput(sent_po.lines[0].id, "1")])
        assert po.version == sent_po.version + 1


class TestReceiveDeltas:

    def test_non_positive_deltas_ignored(self, po_service, services, actor, sent_po, captured_logs):
        line_id = sent_po.lines[0].id
        po = po_service.receive(
            actor, sent_po.id, [ReceiptLineInput(line_id, "0"), ReceiptLineInput(line_id, "-2")],
        )
        assert po.status is POStatus.SENT
        assert po.version == sent_po.version
        assert _movements(services, sent_po.id) == []
        assert any(r["message"] == "purchase_order_receipt_empty" for r in captured_logs())

    def test_unknown_line_rejected_before_any_write(self, po_service, services, actor, sent_po):
        with pytest.raises(OrderLineNotFoundError):
            po_service.receive(
                actor, sent_po.id,
                [ReceiptLineInput(sent_po.lines[0].id, "2"), ReceiptLineInput(uuid4(), "1")],
            )
        assert po_service.get(actor, sent_po.id).lines[0].quantity_received == Decimal("0")
        assert _movements(services, sent_po.id) == []

    def test_repeated_line_shares_pending_quantity(self, po_service, services, actor, sent_po):
        line_id = sent_po.lines[0].id
        po = po_service.receive(
            actor, sent_po.id, [ReceiptLineInput(line_id, "7"), ReceiptLineInput(line_id, "7")],
        )
        assert po.lines[0].quantity_received == Decimal("10")
        assert [m.quantity for m in _movements(services, sent_po.id)] == [Decimal("7"), Decimal("3")]

    def test_clamp_logged(self, po_service, actor, sent_po, captured_logs):
        po_service.receive(actor, sent_po.id, [ReceiptLineInput(sent_po.lines[0].id, "12")])
        clamped = [r for r in captured_logs() if r["message"] == "purchase_order_receipt_clamped"]
        assert clamped[0]["requested"] == "12.0000"
        assert clamped[0]["accepted"] == "10.0000"

    def test_quantities_normalized(self, po_service, actor, sent_po):
        po = po_service.receive(
            actor, sent_po.id, [ReceiptLineInput(sent_po.lines[0].id, "2.00005")],
        )
        assert po.lines[0].quantity_received == Decimal("2.0001")


class TestReceivePayable:

    def test_payable_for_accepted_value(
        self, po_service, services, actor, sent_po, supplier, branch,
    ):
        po_service.receive(
            actor, sent_po.id, [ReceiptLineInput(sent_po.lines[0].id, "4")], create_payable=True,
        )
        [payable] = services.payables.list_for_origin(OriginType.PURCHASE_ORDER, sent_po.id)
        assert payable.amount == Decimal("102.00")
        assert payable.due_date == date(2024, 1, 1)
        assert payable.description == "Purchase order PC-001 - Auto Pecas Ltda"
        assert payable.supplier_id == supplier.id
        assert payable.branch_id == branch.id
        assert payable.document_number == "PC-001"

    def test_payable_uses_clamped_value(self, po_service, services, actor, sent_po):
        po_service.receive(
            actor, sent_po.id, [ReceiptLineInput(sent_po.lines[0].id, "50")], create_payable=True,
        )
        [payable] = services.payables.list_for_origin(OriginType.PURCHASE_ORDER, sent_po.id)
        assert payable.amount == Decimal("255.00")

    def test_no_payable_by_default(self, po_service, services, actor, sent_po):
        po_service.receive(actor, sent_po.id, [ReceiptLineInput(sent_po.lines[0].id, "4")])
        assert services.payables.list_for_origin(OriginType.PURCHASE_ORDER, sent_po.id) == []

    def test_no_payable_for_unpriced_lines(
        self, po_service, services, actor, supplier, branch, product_a,
    ):
        po = po_service.create(actor, supplier.id, branch.id, [OrderLineInput(product_a.id, "5")])
        po_service.receive(actor, po.id, [ReceiptLineInput(po.lines[0].id, "5")], create_payable=True)
        assert services.payables.list_for_origin(OriginType.PURCHASE_ORDER, po.id) == []

    def test_payable_due_days_configurable(
        self, session, services, settings, deterministic_clock, actor, sent_po,
    ):
        service = PurchaseOrderService(
            session, services.stock_ledger, services.payables,
            settings=settings.with_overrides(payable_due_days=10), clock=deterministic_clock,
        )
        service.receive(
            actor, sent_po.id, [ReceiptLineInput(sent_po.lines[0].id, "1")], create_payable=True,
        )
        [payable] = services.payables.list_for_origin(OriginType.PURCHASE_ORDER, sent_po.id)
        assert payable.due_date == date(2024, 1, 11)


class TestReceiveAtomicity:

    def test_ledger_failure_rolls_back_everything(
        self, session, services, settings, deterministic_clock,
        actor, supplier, branch, product_a, product_b, default_warehouse,
    ):
        po = services.purchase_orders.create(
            actor, supplier.id, branch.id,
            [OrderLineInput(product_a.id, "5", "2"), OrderLineInput(product_b.id, "5", "3")],
        )
        failing = _FailingLedger(services.stock_ledger, fail_on=2)
        service = PurchaseOrderService(
            session, failing, services.payables, settings=settings, clock=deterministic_clock,
        )

        with pytest.raises(RuntimeError, match="ledger unavailable"):
            service.receive(
                actor, po.id,
                [ReceiptLineInput(po.lines[0].id, "5"), ReceiptLineInput(po.lines[1].id, "5")],
                create_payable=True,
            )

        after = services.purchase_orders.get(actor, po.id)
        assert after.status is POStatus.DRAFT
        assert after.version == po.version
        assert [ln.quantity_received for ln in after.lines] == [Decimal("0"), Decimal("0")]
        assert _movements(services, po.id) == []
        assert services.stock_ledger.get_available_quantity(product_a.id, default_warehouse) == Decimal("0")
        assert services.payables.list_for_origin(OriginType.PURCHASE_ORDER, po.id) == []

    def test_other_branch_cannot_receive(self, po_service, other_actor, sent_po):
        with pytest.raises(BranchAccessDeniedError):
            po_service.receive(other_actor, sent_po.id, [ReceiptLineInput(sent_po.lines[0].id, "1")])
