"""
Accounts Receivable Module (``fleet_modules.ar``).

Issues the receivables that sales-order invoicing produces.  Implements the
kernel ``ReceivableIssuer`` port; collection is out of scope.
"""

from fleet_modules.ar.models import AccountReceivable, ReceivableStatus
from fleet_modules.ar.service import ReceivablesService

__all__ = [
    "AccountReceivable",
    "ReceivableStatus",
    "ReceivablesService",
]
