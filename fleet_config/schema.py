"""
FulfillmentSettings schema.

The typed runtime settings for the order fulfillment core.  YAML files are
parsed into this frozen dataclass by the loader; services receive an
instance through constructor injection and never read files or the
environment themselves.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any
from uuid import UUID

# Single-tenant deployments run under one configured company.
DEFAULT_COMPANY_ID = UUID("00000000-0000-0000-0000-000000000001")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class FulfillmentSettings:
    """Runtime settings for order numbering, due dates, access and paging."""

    database_url: str = "sqlite:///fleet_erp.db"
    default_company_id: UUID = DEFAULT_COMPANY_ID

    # Order numbering
    purchase_order_prefix: str = "PC"
    sales_order_prefix: str = "PV"
    order_number_min_digits: int = 3
    order_number_retries: int = 1

    # Financial documents: due date = today + N days
    payable_due_days: int = 0
    receivable_due_days: int = 30

    # Roles that may operate across every branch
    unrestricted_roles: tuple[str, ...] = ("ADMIN",)

    # Listing
    default_page_size: int = 15
    max_page_size: int = 100

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.purchase_order_prefix or not self.sales_order_prefix:
            raise ValueError("Order number prefixes must be non-empty")
        if self.purchase_order_prefix == self.sales_order_prefix:
            raise ValueError("Purchase and sales order prefixes must differ")
        if self.order_number_min_digits < 1:
            raise ValueError("order_number_min_digits must be >= 1")
        if self.order_number_retries < 0:
            raise ValueError("order_number_retries must be >= 0")
        if self.payable_due_days < 0 or self.receivable_due_days < 0:
            raise ValueError("Due-day offsets must be >= 0")
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError("default_page_size must be between 1 and max_page_size")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log_level: {self.log_level}")

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in dataclasses.fields(cls))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FulfillmentSettings:
        """
        Build settings from a plain mapping (parsed YAML).

        Raises:
            ValueError: Unknown keys or out-of-range values.
        """
        unknown = set(data) - cls.field_names()
        if unknown:
            raise ValueError(f"Unknown settings keys: {', '.join(sorted(unknown))}")

        values = dict(data)
        if "default_company_id" in values:
            values["default_company_id"] = UUID(str(values["default_company_id"]))
        if "unrestricted_roles" in values:
            roles = values["unrestricted_roles"]
            if isinstance(roles, str):
                roles = [roles]
            values["unrestricted_roles"] = tuple(str(r) for r in roles)
        for key in (
            "order_number_min_digits",
            "order_number_retries",
            "payable_due_days",
            "receivable_due_days",
            "default_page_size",
            "max_page_size",
        ):
            if key in values:
                values[key] = int(values[key])
        return cls(**values)

    def with_overrides(self, **changes: Any) -> FulfillmentSettings:
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)
