"""Shared fixtures for unit tests."""

import logging

import pytest

PACKAGE_LOGGERS = ("http_codec", "httplog")


@pytest.fixture(autouse=True)
def reset_package_loggers():
    """Undo CLI logging setup so caplog keeps seeing package records."""
    yield
    for name in PACKAGE_LOGGERS:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
