from __future__ import annotations

import logging

import pytest

from packaging_support.log_setup import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_packaging_logging():
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
