"""
Tests for the fleet kernel exception taxonomy.

Every error carries a machine-readable code, an HTTP status hint from its
category, and structured attributes for logging.
"""

from decimal import Decimal

import pytest

from fleet_kernel.exceptions import (
    AccessDeniedError,
    BranchAccessDeniedError,
    ConflictError,
    CounterpartyNotFoundError,
    EmptyOrderError,
    FleetKernelError,
    InsufficientStockError,
    NotFoundError,
    NothingToInvoiceError,
    OptimisticLockError,
    OrderAlreadyFulfilledError,
    OrderCancelledError,
    OrderLockedError,
    OrderNotFoundError,
    OrderNumberConflictError,
    OrderStateError,
    ProductNotFoundError,
    ValidationError,
)


class TestCategories:

    @pytest.mark.parametrize(
        "exc, category, status",
        [
            (OrderNotFoundError("purchase_order", "x"), NotFoundError, 404),
            (ProductNotFoundError(["p1", "p2"], "b"), NotFoundError, 404),
            (EmptyOrderError("sales_order"), ValidationError, 400),
            (OrderLockedError("PC-001", "SENT", "edit"), ValidationError, 400),
            (InsufficientStockError("p", "Air filter", Decimal("3"), Decimal("5")), ValidationError, 400),
            (BranchAccessDeniedError("a", "OPERATOR", "b"), AccessDeniedError, 403),
            (OrderNumberConflictError("b", "PC-001", 2), ConflictError, 409),
            (OptimisticLockError("purchase_order", "x"), ConflictError, 409),
        ],
    )
    def test_category_and_status(self, exc, category, status):
        assert isinstance(exc, category)
        assert isinstance(exc, FleetKernelError)
        assert exc.http_status == status

    def test_codes_are_unique(self):
        codes = [
            cls.code
            for cls in (
                OrderNotFoundError, CounterpartyNotFoundError, ProductNotFoundError,
                EmptyOrderError, OrderLockedError, OrderCancelledError,
                OrderAlreadyFulfilledError, NothingToInvoiceError,
                InsufficientStockError, BranchAccessDeniedError,
                OrderNumberConflictError, OptimisticLockError,
            )
        ]
        assert len(codes) == len(set(codes))

    def test_state_errors_share_a_base(self):
        for exc in (
            OrderLockedError("PV-001", "DELIVERED", "delete"),
            OrderCancelledError("PV-001"),
            OrderAlreadyFulfilledError("PV-001", "DELIVERED"),
        ):
            assert isinstance(exc, OrderStateError)


class TestMessages:

    def test_insufficient_stock_names_product(self):
        exc = InsufficientStockError("pid", "Air filter", Decimal("3.0000"), Decimal("5.0000"))
        assert str(exc) == (
            "Insufficient stock for product Air filter. "
            "Available: 3.0000, required: 5.0000"
        )
        assert exc.available == "3.0000"
        assert exc.required == "5.0000"

    def test_insufficient_stock_falls_back_to_id(self):
        exc = InsufficientStockError("pid-1", None, Decimal("0"), Decimal("1"))
        assert "product pid-1." in str(exc)

    def test_order_not_found_message(self):
        exc = OrderNotFoundError("sales_order", "abc")
        assert str(exc) == "Sales order not found: abc"
        assert exc.code == "ORDER_NOT_FOUND"

    def test_counterparty_not_found_attributes(self):
        exc = CounterpartyNotFoundError("supplier", "p", "b")
        assert exc.party_type == "supplier"
        assert str(exc).startswith("Supplier not found in branch b")

    def test_locked_message_names_action(self):
        exc = OrderLockedError("PC-003", "RECEIVED", "delete")
        assert "Cannot delete order PC-003" in str(exc)

    def test_number_conflict_attributes(self):
        exc = OrderNumberConflictError("b", "PC-010", 2)
        assert exc.number == "PC-010"
        assert exc.attempts == 2
