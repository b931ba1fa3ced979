from __future__ import annotations

import logging
from pathlib import Path

import pytest
import structlog
from pydantic import ValidationError

from household_inventory.config import Settings
from household_inventory.logging import get_logger, setup_logging


def test_settings_read_prefixed_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("HOUSEHOLD_INVENTORY_FALLBACK_PATH", str(tmp_path / "fallback.json"))
    monkeypatch.setenv("HOUSEHOLD_INVENTORY_PRIMARY_STORE_ENABLED", "false")
    monkeypatch.setenv("HOUSEHOLD_INVENTORY_LOG_FORMAT", "json")

    settings = Settings()

    assert settings.fallback_path == tmp_path / "fallback.json"
    assert settings.primary_store_enabled is False
    assert settings.log_format == "json"
    assert settings.state_key == "state"


def test_settings_reject_bad_values() -> None:
    with pytest.raises(ValidationError):
        Settings(database_url="sqlite+aiosqlite:/relative.db")
    with pytest.raises(ValidationError):
        Settings(state_key="   ")
    with pytest.raises(ValidationError):
        Settings(fallback_max_bytes=0)


@pytest.mark.parametrize("log_format", ["json", "text"])
def test_setup_logging_configures_root_handler(log_format: str) -> None:
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    try:
        setup_logging(Settings(log_format=log_format, log_level="DEBUG", environment="test"))

        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        get_logger("tests").info("logging_configured", format=log_format)
    finally:
        root_logger.handlers[:] = saved_handlers
        root_logger.setLevel(saved_level)
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()
