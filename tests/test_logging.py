"""
Tests for the logging system.
"""

import logging

import pytest

from pepmapio.utils.logger import configure_from_env, get_logger, setup_logging

logger = get_logger("pepmapio.tests.logging")


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handler, level and propagation changes made by setup_logging."""
    package_logger = logging.getLogger("pepmapio")
    level = package_logger.level
    handlers = list(package_logger.handlers)
    propagate = package_logger.propagate
    yield
    for handler in list(package_logger.handlers):
        if handler not in handlers:
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(level)
    package_logger.propagate = propagate


def test_module_loggers_share_package_hierarchy():
    """Module loggers inherit the configuration of the package logger"""
    module_logger = get_logger("pepmapio.core.matching")
    assert module_logger.name == "pepmapio.core.matching"
    assert module_logger.parent.name in ("pepmapio.core", "pepmapio")


def test_exception_logging(caplog):
    """Test exception logging"""
    with caplog.at_level(logging.ERROR, logger="pepmapio"):
        try:
            raise ValueError("no match")
        except ValueError as e:
            logger.exception(f"An exception occurred: {e}")

    assert "An exception occurred: no match" in caplog.text
    assert caplog.records[-1].exc_info is not None


def test_file_logging(tmp_path):
    """Test logging to a file"""
    log_file = tmp_path / "pepmapio.log"

    setup_logging(
        level="DEBUG",
        log_file=str(log_file),
        max_file_size=1024 * 1024,
        backup_count=3,
    )
    logger.debug("This message should be written to the log file")
    for handler in logging.getLogger("pepmapio").handlers:
        handler.flush()

    content = log_file.read_text()
    assert "This message should be written to the log file" in content
    assert " D | pepmapio.tests.logging | " in content


def test_setup_logging_replaces_handlers(tmp_path):
    setup_logging(level="INFO")
    setup_logging(level="WARNING", log_file=str(tmp_path / "second.log"))

    package_logger = logging.getLogger("pepmapio")
    assert package_logger.level == logging.WARNING
    assert len(package_logger.handlers) == 2
    assert package_logger.propagate is False


def test_environment_variables(monkeypatch, tmp_path):
    """Test logging configuration via environment variables"""
    monkeypatch.setenv("PEPMAPIO_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("PEPMAPIO_LOG_FILE", str(tmp_path / "env_test.log"))

    config = configure_from_env()

    assert config == {"level": "DEBUG", "log_file": str(tmp_path / "env_test.log")}
    setup_logging(**config)
    assert logging.getLogger("pepmapio").level == logging.DEBUG


def test_environment_defaults(monkeypatch):
    monkeypatch.delenv("PEPMAPIO_LOG_LEVEL", raising=False)
    monkeypatch.delenv("PEPMAPIO_LOG_FILE", raising=False)
    assert configure_from_env() == {"level": "INFO"}
