"""
Purchasing Module (``fleet_modules.purchasing``).

Purchase orders from DRAFT through goods receipt.  Receiving posts stock
entries through the ``StockLedger`` port and may issue a payable through
the ``PayableIssuer`` port.
"""

from fleet_modules.purchasing.models import (
    POStatus,
    PurchaseOrder,
    PurchaseOrderLine,
    ReceiptLineInput,
)
from fleet_modules.purchasing.service import PurchaseOrderService
from fleet_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

__all__ = [
    "PURCHASE_ORDER_WORKFLOW",
    "POStatus",
    "PurchaseOrder",
    "PurchaseOrderLine",
    "PurchaseOrderService",
    "ReceiptLineInput",
]
