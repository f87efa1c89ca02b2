"""
Tests for logging setup
"""

import io
import logging

import pytest

from wellnest_client.config import LoggingConfig
from wellnest_client.logging_utils import (
    ROOT_LOGGER_NAME,
    TRANSPORT_LOGGERS,
    ColoredFormatter,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_loggers():
    yield
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.propagate = True
    root.setLevel(logging.NOTSET)
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_console_output_goes_to_given_stream():
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="info", format="%(levelname)s %(name)s %(message)s"),
                  stream=stream)

    get_logger("auth").info("Signed in as %s", "alice")
    get_logger("auth").debug("hidden")

    assert stream.getvalue() == "INFO wellnest_client.auth Signed in as alice\n"


def test_unknown_level_falls_back_to_warning():
    logger = setup_logging(LoggingConfig(level="chatty"), stream=io.StringIO())
    assert logger.level == logging.WARNING


def test_file_handler_writes_plain_text(tmp_path):
    log_file = tmp_path / "logs" / "wellnest.log"
    setup_logging(LoggingConfig(level="WARNING", format="%(levelname)s %(message)s",
                                file_path=str(log_file)), stream=io.StringIO())

    get_logger("storage").warning("Ignoring unreadable session file")
    for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
        handler.flush()

    assert log_file.read_text() == "WARNING Ignoring unreadable session file\n"


@pytest.mark.parametrize("level,expected", [
    ("INFO", logging.WARNING),
    ("DEBUG", logging.DEBUG),
])
def test_transport_loggers_follow_debug_only(level, expected):
    setup_logging(LoggingConfig(level=level), stream=io.StringIO())
    for name in TRANSPORT_LOGGERS:
        assert logging.getLogger(name).level == expected


def test_colored_formatter_leaves_record_untouched():
    record = logging.makeLogRecord({"levelname": "ERROR", "levelno": logging.ERROR,
                                    "msg": "boom"})
    output = ColoredFormatter("%(levelname)s %(message)s").format(record)

    assert output == "\033[31mERROR\033[0m boom"
    assert record.levelname == "ERROR"
