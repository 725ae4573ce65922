"""
Order service composition (``fleet_services.wiring``).

Responsibility
--------------
Single entrypoint that builds the purchasing and sales services with their
concrete collaborators: the inventory stock ledger and the AP/AR issuers,
all sharing one session, one clock and one settings object.

``bootstrap()`` applies the process-level settings (log level and database
URL) once at startup, before any session is opened.

Architecture position
---------------------
**Services layer** -- composition root.  Imports ``fleet_modules``; the
modules themselves only see the kernel ports.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from fleet_config import get_active_settings
from fleet_config.schema import FulfillmentSettings
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.db.engine import init_engine_from_url
from fleet_kernel.logging_config import configure_logging, get_logger
from fleet_modules.ap.service import PayablesService
from fleet_modules.ar.service import ReceivablesService
from fleet_modules.inventory.service import StockLedgerService
from fleet_modules.purchasing.service import PurchaseOrderService
from fleet_modules.sales.service import SalesOrderService

logger = get_logger("services.wiring")


@dataclass(frozen=True)
class OrderServices:
    """The order services and the collaborators they were built with."""

    stock_ledger: StockLedgerService
    payables: PayablesService
    receivables: ReceivablesService
    purchase_orders: PurchaseOrderService
    sales_orders: SalesOrderService


def build_order_services(
    session: Session,
    settings: FulfillmentSettings | None = None,
    clock: Clock | None = None,
) -> OrderServices:
    """Build every order service on ``session``.

    Args:
        session: SQLAlchemy session shared by all services.
        settings: Optional settings; default ``get_active_settings()``.
        clock: Optional clock; default SystemClock.
    """
    settings = settings or get_active_settings()
    clock = clock or SystemClock()

    stock_ledger = StockLedgerService(session, clock=clock)
    payables = PayablesService(session, clock=clock)
    receivables = ReceivablesService(session, clock=clock)

    services = OrderServices(
        stock_ledger=stock_ledger,
        payables=payables,
        receivables=receivables,
        purchase_orders=PurchaseOrderService(
            session, stock_ledger, payables, settings=settings, clock=clock,
        ),
        sales_orders=SalesOrderService(
            session, stock_ledger, receivables, settings=settings, clock=clock,
        ),
    )
    logger.debug(
        "order_services_built",
        extra={"company_id": str(settings.default_company_id)},
    )
    return services


def bootstrap(settings: FulfillmentSettings | None = None) -> FulfillmentSettings:
    """
    Configure logging and the engine from settings.

    Logging is configured first so that ``engine_initialized`` is emitted at
    the configured level.  Call once per process; sessions are then obtained
    from ``fleet_kernel.db.engine.get_session()``.

    Args:
        settings: Optional settings; default ``get_active_settings()``.

    Returns:
        The settings that were applied.
    """
    settings = settings or get_active_settings()
    configure_logging(level=settings.log_level.upper())
    init_engine_from_url(settings.database_url)
    logger.info(
        "fleet_erp_bootstrapped",
        extra={"log_level": settings.log_level},
    )
    return settings
