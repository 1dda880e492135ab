import logging

import pytest

from skyactuator.logger import level_for_verbosity, setup_logger


@pytest.mark.parametrize(
    "verbosity, level",
    [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
)
def test_level_for_verbosity(verbosity, level):
    assert level_for_verbosity(verbosity) == level


def test_setup_logger_single_handler():
    logger = setup_logger("skyactuator-test", logging.INFO)
    setup_logger("skyactuator-test", logging.DEBUG)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG


def test_http_client_loggers_quiet_unless_debugging():
    setup_logger("skyactuator-test-quiet", logging.INFO)
    assert logging.getLogger("urllib3").level == logging.WARNING

    setup_logger("skyactuator-test-quiet", logging.DEBUG)
    assert logging.getLogger("urllib3").level == logging.DEBUG

    setup_logger("skyactuator-test-quiet", logging.WARNING)
