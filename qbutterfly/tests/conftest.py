import logging

import pytest

from qbutterfly.log import ROOT_LOGGER


@pytest.fixture(autouse=True)
def _reset_package_logger():
    # cli.main() attaches handlers bound to the test's captured stdout
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
