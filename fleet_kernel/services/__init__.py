"""Services for the fleet kernel (write side)."""

from fleet_kernel.services.base import BaseService
from fleet_kernel.services.sequence_service import OrderNumberSequencer

__all__ = [
    "BaseService",
    "OrderNumberSequencer",
]
