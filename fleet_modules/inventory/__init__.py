"""
Inventory Module (``fleet_modules.inventory``).

Responsibility
--------------
Stock ledger for the fulfillment core: warehouses, per-product balances
with moving-average cost, and the append-only movement journal that
purchase receipts and sales invoices post into.

Architecture position
---------------------
**Modules layer** -- implements the kernel ``StockLedger`` port.  Does not
import the purchasing or sales modules.
"""

from fleet_modules.inventory.models import StockBalance, Warehouse
from fleet_modules.inventory.service import StockLedgerService

__all__ = [
    "StockBalance",
    "StockLedgerService",
    "Warehouse",
]
