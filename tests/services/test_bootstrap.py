"""Tests for process bootstrap: settings reach logging and the engine."""

import logging

import pytest

from fleet_config import reset_active_settings
from fleet_config.loader import load_settings
from fleet_config.schema import FulfillmentSettings
from fleet_kernel.db.engine import get_engine, get_session, reset_engine
from fleet_kernel.logging_config import configure_logging, reset_logging
from fleet_services.wiring import bootstrap


@pytest.fixture(autouse=True)
def _fresh_process_state():
    reset_logging()
    reset_engine()
    reset_active_settings()
    yield
    reset_active_settings()
    reset_engine()
    reset_logging()
    configure_logging(level=logging.DEBUG)


class TestBootstrap:

    def test_applies_log_level_and_database_url(self):
        applied = bootstrap(FulfillmentSettings(database_url="sqlite://", log_level="WARNING"))

        assert applied.log_level == "WARNING"
        assert logging.getLogger("fleet_erp").level == logging.WARNING
        assert get_engine().dialect.name == "sqlite"
        session = get_session()
        session.close()

    def test_environment_overrides_take_effect(self):
        settings = load_settings(
            environ={"DATABASE_URL": "sqlite://", "FLEET_ERP_LOG_LEVEL": "error"},
        )
        bootstrap(settings)

        assert logging.getLogger("fleet_erp").getEffectiveLevel() == logging.ERROR
        assert str(get_engine().url) == "sqlite://"

    def test_defaults_to_active_settings(self, monkeypatch):
        monkeypatch.delenv("FLEET_ERP_CONFIG", raising=False)
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        monkeypatch.setenv("FLEET_ERP_LOG_LEVEL", "WARNING")

        applied = bootstrap()

        assert applied.database_url == "sqlite://"
        assert logging.getLogger("fleet_erp").level == logging.WARNING
