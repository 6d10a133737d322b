"""Tests for logging setup."""
import logging

import pytest

from listing_localizer.logging_config import ROOT_LOGGER, setup_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    saved = list(logger.handlers), logger.level
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])


class TestSetupLogging:
    def test_console_handler(self, clean_logger):
        logger = setup_logging("WARNING")
        assert logger is clean_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.WARNING

    def test_numeric_level(self, clean_logger):
        logger = setup_logging(logging.ERROR)
        assert logger.handlers[0].level == logging.ERROR

    def test_idempotent(self, clean_logger):
        setup_logging()
        setup_logging()
        assert len(clean_logger.handlers) == 1

    def test_file_handler(self, clean_logger, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        logger = setup_logging("INFO", log_file)
        assert len(logger.handlers) == 2
        logging.getLogger("listing_localizer.batch").debug("debug detail")
        for handler in logger.handlers:
            handler.flush()
        text = log_file.read_text(encoding="utf-8")
        assert "debug detail" in text
        assert "listing_localizer.batch" in text

    def test_child_loggers_propagate(self, clean_logger, caplog):
        setup_logging("INFO")
        with caplog.at_level(logging.INFO):
            logging.getLogger("listing_localizer.pipeline").info("hello")
        assert "hello" in caplog.text
