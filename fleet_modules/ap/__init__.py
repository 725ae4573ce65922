"""
Accounts Payable Module (``fleet_modules.ap``).

Issues the payables that purchase-order receiving produces.  Implements the
kernel ``PayableIssuer`` port; settlement and payment runs are out of scope.
"""

from fleet_modules.ap.models import AccountPayable, PayableStatus
from fleet_modules.ap.service import PayablesService

__all__ = [
    "AccountPayable",
    "PayableStatus",
    "PayablesService",
]
