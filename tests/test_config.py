import logging

from portpeek.config import setup_logging


def test_setup_logging_replaces_its_handler():
    root_logger = logging.getLogger()
    first = setup_logging()
    second = setup_logging(verbose=True)
    try:
        assert first not in root_logger.handlers
        assert root_logger.handlers.count(second) == 1
        assert root_logger.level == logging.DEBUG
    finally:
        root_logger.removeHandler(second)
        root_logger.setLevel(logging.WARNING)
