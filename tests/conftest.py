"""Shared fixtures."""
import logging

import pytest

from qyksys import utils


@pytest.fixture(autouse=True)
def clean_logger():
    """Restore the package logger after a test configures it."""
    logger = logging.getLogger(utils.LOGGER_NAME)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)
