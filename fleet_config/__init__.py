"""
fleet_config -- single public entrypoint for fulfillment settings.

Responsibility:
    Provides the runtime way to obtain settings through
    ``get_active_settings()``.  Services take a ``FulfillmentSettings``
    instance in their constructor; only the composition root calls this
    accessor.

Architecture position:
    Configuration -- sits beside ``fleet_kernel``.  The kernel never imports
    from ``fleet_config``; modules and services do.

Failure modes:
    - ``FileNotFoundError`` -- ``FLEET_ERP_CONFIG`` names a missing file.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import threading

from fleet_config.loader import load_settings
from fleet_config.schema import DEFAULT_COMPANY_ID, FulfillmentSettings
from fleet_kernel.logging_config import get_logger

logger = get_logger("config")

_active: FulfillmentSettings | None = None
_lock = threading.Lock()


def get_active_settings() -> FulfillmentSettings:
    """Return the process-wide settings, loading them on first use."""
    global _active
    with _lock:
        if _active is None:
            _active = load_settings()
            logger.info(
                "settings_loaded",
                extra={
                    "default_company_id": str(_active.default_company_id),
                    "purchase_order_prefix": _active.purchase_order_prefix,
                    "sales_order_prefix": _active.sales_order_prefix,
                    "log_level": _active.log_level,
                },
            )
        return _active


def reset_active_settings() -> None:
    """Drop the cached settings. FOR TESTING ONLY."""
    global _active
    with _lock:
        _active = None


__all__ = [
    "DEFAULT_COMPANY_ID",
    "FulfillmentSettings",
    "get_active_settings",
    "load_settings",
    "reset_active_settings",
]
