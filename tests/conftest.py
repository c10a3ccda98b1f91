"""
Shared pytest fixtures.
"""

import logging

import pytest

from cozy_gcontacts.utils.logging import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so caplog sees records from every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture(autouse=True)
def no_log_file(monkeypatch):
    """Keep CLI invocations from writing dated log files."""
    monkeypatch.setenv("COZY_GCONTACTS_LOG_FILE", "none")
