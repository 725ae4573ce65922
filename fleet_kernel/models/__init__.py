"""Reference-data models for the fleet kernel."""

from fleet_kernel.models.branch import Branch
from fleet_kernel.models.party import Party, PartyType
from fleet_kernel.models.product import Product

__all__ = [
    "Branch",
    "Party",
    "PartyType",
    "Product",
]
