import logging

import pytest

from tradejournal.core.logging_config import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_journal_file_receives_log_lines(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "journal.log"
    setup_logging(level="DEBUG", log_file=str(log_file))

    logging.getLogger("tradejournal.services.payout_service").warning("Payout rejected | account=7")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_file.read_text()
    assert "| WARNING | tradejournal.services.payout_service:" in text
    assert "Payout rejected | account=7" in text


def test_library_loggers_are_quieted(restore_root_logger):
    setup_logging(level="DEBUG")
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
