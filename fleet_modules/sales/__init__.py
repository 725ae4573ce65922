"""
Sales Module (``fleet_modules.sales``).

Sales orders from DRAFT through invoicing.  Invoicing issues a receivable
through the ``ReceivableIssuer`` port and may deduct stock through the
``StockLedger`` port.
"""

from fleet_modules.sales.models import SalesOrder, SalesOrderLine, SOStatus
from fleet_modules.sales.service import SalesOrderService
from fleet_modules.sales.workflows import SALES_ORDER_WORKFLOW

__all__ = [
    "SALES_ORDER_WORKFLOW",
    "SOStatus",
    "SalesOrder",
    "SalesOrderLine",
    "SalesOrderService",
]
