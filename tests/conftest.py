"""
Pytest fixtures for the fleet ERP fulfillment test suite.

Provides:
- A fresh database per test (in-memory SQLite unless TEST_DATABASE_URL is set)
- Reference data: branches, supplier, customer, products, default warehouse
- Actor contexts, deterministic clock, settings and wired order services
- Captured structured logs

Environment Variables:
- TEST_DATABASE_URL: Connection URL for the test database.  Defaults to an
  in-memory SQLite database shared through a StaticPool.
"""

import json
import logging
import os
from collections.abc import Generator
from io import StringIO
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from fleet_config.schema import DEFAULT_COMPANY_ID, FulfillmentSettings
from fleet_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from fleet_kernel.domain.clock import DeterministicClock
from fleet_kernel.domain.context import ActorContext
from fleet_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from fleet_kernel.models import Branch, Party, PartyType, Product
from fleet_modules.inventory.service import StockLedgerService
from fleet_services.wiring import build_order_services

# Actor that owns every fixture row
TEST_ACTOR_ID = UUID("00000000-0000-4000-a000-000000000001")

DEFAULT_TEST_DATABASE_URL = "sqlite://"


def get_database_url() -> str:
    """Get the test database URL from the environment, or in-memory SQLite."""
    return os.environ.get("TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture fleet_erp logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, services):
            services.purchase_orders.create(...)
            logs = captured_logs()
            assert any(r["message"] == "purchase_order_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fleet_erp")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    """Engine with every table created; dropped again after the test."""
    eng = init_engine_from_url(get_database_url())
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Clock fixed at 2024-01-01 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def settings() -> FulfillmentSettings:
    return FulfillmentSettings(database_url=get_database_url())


# =============================================================================
# Reference data
# =============================================================================


def _add(session: Session, obj):
    session.add(obj)
    session.commit()
    return obj


@pytest.fixture
def branch(session) -> Branch:
    return _add(session, Branch(
        company_id=DEFAULT_COMPANY_ID,
        code="MTZ",
        name="Matriz",
        created_by_id=TEST_ACTOR_ID,
    ))


@pytest.fixture
def other_branch(session) -> Branch:
    return _add(session, Branch(
        company_id=DEFAULT_COMPANY_ID,
        code="FIL",
        name="Filial Norte",
        created_by_id=TEST_ACTOR_ID,
    ))


@pytest.fixture
def supplier(session, branch) -> Party:
    return _add(session, Party(
        branch_id=branch.id,
        party_type=PartyType.SUPPLIER.value,
        code="SUP-001",
        name="Auto Pecas Ltda",
        is_active=True,
        created_by_id=TEST_ACTOR_ID,
    ))


@pytest.fixture
def customer(session, branch) -> Party:
    return _add(session, Party(
        branch_id=branch.id,
        party_type=PartyType.CUSTOMER.value,
        code="CUS-001",
        name="Transportes Rapido SA",
        is_active=True,
        created_by_id=TEST_ACTOR_ID,
    ))


def _product(code: str, name: str, branch_id: UUID) -> Product:
    return Product(
        company_id=DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        code=code,
        name=name,
        is_active=True,
        created_by_id=TEST_ACTOR_ID,
    )


@pytest.fixture
def product_a(session, branch) -> Product:
    return _add(session, _product("OIL-15W40", "Engine oil 15W40", branch.id))


@pytest.fixture
def product_b(session, branch) -> Product:
    return _add(session, _product("FLT-AIR", "Air filter", branch.id))


@pytest.fixture
def stock_ledger(session, deterministic_clock) -> StockLedgerService:
    return StockLedgerService(session, clock=deterministic_clock)


@pytest.fixture
def default_warehouse(session, stock_ledger) -> UUID:
    """Default warehouse of the configured company; returns its id."""
    warehouse = stock_ledger.create_warehouse(
        DEFAULT_COMPANY_ID,
        "WH-MAIN",
        "Main warehouse",
        actor_id=TEST_ACTOR_ID,
        is_default=True,
    )
    session.commit()
    return warehouse.id


# =============================================================================
# Actors and services
# =============================================================================


@pytest.fixture
def actor(branch) -> ActorContext:
    """Restricted operator working in ``branch``."""
    return ActorContext(user_id=uuid4(), branch_id=branch.id, role="OPERATOR")


@pytest.fixture
def admin() -> ActorContext:
    """Unrestricted actor without a branch."""
    return ActorContext(user_id=uuid4(), branch_id=None, role="ADMIN")


@pytest.fixture
def services(session, settings, deterministic_clock, default_warehouse):
    """Order services wired to the real ledger and AP/AR issuers."""
    return build_order_services(session, settings=settings, clock=deterministic_clock)
