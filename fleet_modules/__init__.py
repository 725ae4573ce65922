"""
Fleet Modules.

Order fulfillment on top of the fleet kernel.  Each module contains:
- Domain models (the nouns, as frozen DTOs)
- ORM models (persistence)
- Workflows (state machines), where the module has a lifecycle
- A service class that owns the transaction boundary

Modules:
- Purchasing: purchase orders and goods receipt
- Sales: sales orders and invoicing
- Inventory: warehouses, balances and the stock movement ledger
- AP: payables issued by receiving
- AR: receivables issued by invoicing
"""
