# File: tests/test_logger.py
import logging

import pytest
from site_search.logger import DEFAULT_FORMAT, LOGGER_NAME, configure, logger


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    configure(level="INFO")


def test_module_logger_is_shared():
    assert logger is logging.getLogger(LOGGER_NAME)
    assert logger.propagate is False


def test_configure_replaces_handlers():
    configure(level="DEBUG")
    lg = configure(level="WARNING")
    assert len(lg.handlers) == 1
    assert lg.level == logging.WARNING
    assert lg.handlers[0].formatter._fmt == DEFAULT_FORMAT


def test_configure_writes_log_file(tmp_path):
    path = tmp_path / "site_search.log"
    lg = configure(level="INFO", log_file=path, log_format="%(levelname)s %(message)s")
    assert len(lg.handlers) == 2

    logger.info("индексация начата")
    logger.debug("не попадёт в файл")
    for handler in lg.handlers:
        handler.flush()

    assert path.read_text(encoding="utf-8").splitlines() == ["INFO индексация начата"]
