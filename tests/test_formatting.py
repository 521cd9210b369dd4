"""Tests for display formatting and logging setup."""

import logging

import pytest

from spain_rd_dashboard.config.settings import LoggingConfig
from spain_rd_dashboard.utils import format_change, format_number, setup_logging
from spain_rd_dashboard.utils.formatting import MISSING


@pytest.mark.parametrize(
    "value, language, decimals, expected",
    [
        (12345.678, "es", 1, "12.345,7"),
        (12345.678, "en", 1, "12,345.7"),
        (1234, "es", 0, "1234"),
        (1234, "en", 0, "1,234"),
        (1.43, "es", 2, "1,43"),
        (-1500.5, "es", 1, "-1500,5"),
        (-0.04, "es", 1, "0,0"),
        (2345678, "es", 0, "2.345.678"),
    ],
)
def test_format_number(value, language, decimals, expected):
    assert format_number(value, language, decimals) == expected


def test_format_number_absent():
    assert format_number(None) == MISSING


def test_format_change():
    assert format_change(12.345) == "+12.3%"
    assert format_change(-3) == "-3.0%"
    assert format_change(0.0) == "+0.0%"
    assert format_change(None) == MISSING


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def test_setup_logging_writes_to_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "pipeline.log"
    logger = setup_logging(LoggingConfig(level="WARNING", file=str(log_file), console=False))

    logger.info("hidden")
    logger.warning("dataset unavailable")

    assert logger.name == "spain_rd_dashboard"
    assert logging.getLogger().level == logging.WARNING
    content = log_file.read_text(encoding="utf-8")
    assert "dataset unavailable" in content
    assert "hidden" not in content


def test_setup_logging_verbose_forces_debug(restore_root_logger):
    setup_logging(LoggingConfig(level="ERROR", console=False), verbose=True)
    assert logging.getLogger().level == logging.DEBUG
