"""
Typed Exception Hierarchy for the Fleet ERP Fulfillment Core.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from FleetKernelError.  The four category bases map
one-to-one onto the response an outer request layer should produce:

    FleetKernelError (base)
    |
    +-- NotFoundError                       (404)
    |   +-- OrderNotFoundError
    |   +-- BranchNotFoundError
    |   +-- CounterpartyNotFoundError
    |   +-- ProductNotFoundError
    |   +-- WarehouseNotFoundError
    |   +-- FinancialDocumentNotFoundError
    |
    +-- ValidationError                     (400)
    |   +-- EmptyOrderError
    |   +-- InvalidQuantityError
    |   +-- InvalidAmountError
    |   +-- OrderLineNotFoundError
    |   +-- OrderStateError
    |   |   +-- OrderLockedError
    |   |   +-- OrderCancelledError
    |   |   +-- OrderAlreadyFulfilledError
    |   |   +-- InvalidTransitionError
    |   +-- NothingToInvoiceError
    |   +-- InsufficientStockError
    |
    +-- AccessDeniedError                   (403)
    |   +-- BranchAccessDeniedError
    |
    +-- ConflictError                       (409)
        +-- OrderNumberConflictError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                      | When Raised
------------|---------------------------|------------------------------------------
Not found   | ORDER_NOT_FOUND           | Order id unknown or soft-deleted
            | BRANCH_NOT_FOUND          | Branch unknown, deleted, other company
            | COUNTERPARTY_NOT_FOUND    | Supplier/customer unknown, inactive,
            |                           | deleted, or in another branch
            | PRODUCT_NOT_FOUND         | One or more products do not resolve
            | WAREHOUSE_NOT_FOUND       | Company has no default warehouse
            | FINANCIAL_DOCUMENT_NOT_FOUND | Payable/receivable id unknown
------------|---------------------------|------------------------------------------
Validation  | EMPTY_ORDER               | Order submitted without lines
            | INVALID_QUANTITY          | Normalized quantity <= 0
            | INVALID_AMOUNT            | Negative price or non-positive document
            | ORDER_LINE_NOT_FOUND      | Receipt references a foreign line id
            | ORDER_LOCKED              | Edit/delete outside DRAFT
            | ORDER_CANCELLED           | Fulfillment against a cancelled order
            | ORDER_ALREADY_FULFILLED   | Receive a RECEIVED PO / re-invoice an SO
            | INVALID_TRANSITION        | Status change not in the workflow
            | NOTHING_TO_INVOICE        | Order total <= 0
            | INSUFFICIENT_STOCK        | Stock gate or ledger exit shortfall
------------|---------------------------|------------------------------------------
Access      | BRANCH_ACCESS_DENIED      | Actor may not operate on target branch
------------|---------------------------|------------------------------------------
Conflict    | ORDER_NUMBER_CONFLICT     | Number collision survived the retry
            | OPTIMISTIC_LOCK_CONFLICT  | Order modified by a concurrent unit of work

===============================================================================
DESIGN DECISIONS
===============================================================================

1. ``code`` is a class attribute: static per exception type, usable without
   instantiation.
2. All context is stored as attributes so that the structured log formatter
   can emit it as ``exc_<field>`` without parsing messages.
3. ``http_status`` lives on the category bases only.
"""

from decimal import Decimal


class FleetKernelError(Exception):
    """
    Base exception for all fulfillment core errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "FLEET_KERNEL_ERROR"
    http_status: int = 500


# Not-found exceptions


class NotFoundError(FleetKernelError):
    """A referenced record does not exist or is not usable."""

    code: str = "NOT_FOUND"
    http_status: int = 404


class OrderNotFoundError(NotFoundError):
    """Order with given ID was not found (or is soft-deleted)."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_kind: str, order_id: str):
        self.order_kind = order_kind
        self.order_id = str(order_id)
        super().__init__(f"{order_kind.replace('_', ' ').capitalize()} not found: {order_id}")


class BranchNotFoundError(NotFoundError):
    """Branch was not found for the company."""

    code: str = "BRANCH_NOT_FOUND"

    def __init__(self, branch_id: str):
        self.branch_id = str(branch_id)
        super().__init__(f"Branch not found: {branch_id}")


class CounterpartyNotFoundError(NotFoundError):
    """Supplier or customer was not found in the branch."""

    code: str = "COUNTERPARTY_NOT_FOUND"

    def __init__(self, party_type: str, party_id: str, branch_id: str):
        self.party_type = party_type
        self.party_id = str(party_id)
        self.branch_id = str(branch_id)
        super().__init__(
            f"{party_type.capitalize()} not found in branch {branch_id}: {party_id}"
        )


class ProductNotFoundError(NotFoundError):
    """One or more products were not found in the branch."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_ids: list[str], branch_id: str):
        self.product_ids = [str(p) for p in product_ids]
        self.branch_id = str(branch_id)
        super().__init__(
            f"Products not found in branch {branch_id}: {', '.join(self.product_ids)}"
        )


class WarehouseNotFoundError(NotFoundError):
    """Company has no default warehouse."""

    code: str = "WAREHOUSE_NOT_FOUND"

    def __init__(self, company_id: str):
        self.company_id = str(company_id)
        super().__init__(f"No default warehouse for company: {company_id}")


class FinancialDocumentNotFoundError(NotFoundError):
    """Payable or receivable was not found."""

    code: str = "FINANCIAL_DOCUMENT_NOT_FOUND"

    def __init__(self, document_type: str, document_id: str):
        self.document_type = document_type
        self.document_id = str(document_id)
        super().__init__(f"{document_type} not found: {document_id}")


# Validation exceptions


class ValidationError(FleetKernelError):
    """The request is well-formed but violates a business rule."""

    code: str = "VALIDATION_ERROR"
    http_status: int = 400


class EmptyOrderError(ValidationError):
    """Order has no lines."""

    code: str = "EMPTY_ORDER"

    def __init__(self, order_kind: str):
        self.order_kind = order_kind
        super().__init__(f"{order_kind.replace('_', ' ').capitalize()} must have at least one line")


class InvalidQuantityError(ValidationError):
    """Quantity is not strictly positive after normalization."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, product_id: str, quantity: Decimal | str):
        self.product_id = str(product_id)
        self.quantity = str(quantity)
        super().__init__(
            f"Quantity must be positive for product {product_id}: {quantity}"
        )


class InvalidAmountError(ValidationError):
    """Monetary amount is out of its allowed range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount: Decimal | str, reason: str):
        self.field = field
        self.amount = str(amount)
        self.reason = reason
        super().__init__(f"Invalid {field} {amount}: {reason}")


class OrderLineNotFoundError(ValidationError):
    """Submitted line id does not belong to the order."""

    code: str = "ORDER_LINE_NOT_FOUND"

    def __init__(self, order_number: str, line_id: str):
        self.order_number = order_number
        self.line_id = str(line_id)
        super().__init__(f"Line {line_id} not found on order {order_number}")


class OrderStateError(ValidationError):
    """Base for operations rejected because of the order's current status."""

    code: str = "ORDER_STATE_ERROR"


class OrderLockedError(OrderStateError):
    """Order left DRAFT and can no longer be edited or deleted."""

    code: str = "ORDER_LOCKED"

    def __init__(self, order_number: str, status: str, action: str):
        self.order_number = order_number
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} order {order_number}: only DRAFT orders can be changed "
            f"(current status {status})"
        )


class OrderCancelledError(OrderStateError):
    """Fulfillment attempted against a cancelled order."""

    code: str = "ORDER_CANCELLED"

    def __init__(self, order_number: str):
        self.order_number = order_number
        super().__init__(f"Order {order_number} is cancelled")


class OrderAlreadyFulfilledError(OrderStateError):
    """Order already reached its fully-fulfilled terminal status."""

    code: str = "ORDER_ALREADY_FULFILLED"

    def __init__(self, order_number: str, status: str):
        self.order_number = order_number
        self.status = status
        super().__init__(f"Order {order_number} is already {status}")


class InvalidTransitionError(OrderStateError):
    """Status change is not a transition of the order workflow."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, from_state: str, to_state: str):
        self.workflow = workflow
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Transition {from_state} -> {to_state} is not allowed for {workflow}"
        )


class NothingToInvoiceError(ValidationError):
    """Order total is zero or negative."""

    code: str = "NOTHING_TO_INVOICE"

    def __init__(self, order_number: str, total: Decimal):
        self.order_number = order_number
        self.total = str(total)
        super().__init__(f"Order {order_number} has no value to invoice (total {total})")


class InsufficientStockError(ValidationError):
    """Available stock does not cover the requested quantity."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        product_name: str | None,
        available: Decimal,
        required: Decimal,
    ):
        self.product_id = str(product_id)
        self.product_name = product_name
        self.available = str(available)
        self.required = str(required)
        label = product_name or str(product_id)
        super().__init__(
            f"Insufficient stock for product {label}. "
            f"Available: {available}, required: {required}"
        )


# Access exceptions


class AccessDeniedError(FleetKernelError):
    """Actor is not allowed to perform the operation."""

    code: str = "ACCESS_DENIED"
    http_status: int = 403


class BranchAccessDeniedError(AccessDeniedError):
    """Actor may not operate within the target branch."""

    code: str = "BRANCH_ACCESS_DENIED"

    def __init__(self, actor_branch_id: str | None, role: str, target_branch_id: str):
        self.actor_branch_id = str(actor_branch_id) if actor_branch_id else None
        self.role = role
        self.target_branch_id = str(target_branch_id)
        super().__init__(
            f"Role {role} in branch {actor_branch_id} may not access branch {target_branch_id}"
        )


# Conflict exceptions


class ConflictError(FleetKernelError):
    """Concurrent modification detected; the caller may retry."""

    code: str = "CONFLICT"
    http_status: int = 409


class OrderNumberConflictError(ConflictError):
    """Generated order number collided and the retry collided too."""

    code: str = "ORDER_NUMBER_CONFLICT"

    def __init__(self, branch_id: str, number: str, attempts: int):
        self.branch_id = str(branch_id)
        self.number = number
        self.attempts = attempts
        super().__init__(
            f"Order number {number} already issued in branch {branch_id} "
            f"after {attempts} attempt(s)"
        )


class OptimisticLockError(ConflictError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
