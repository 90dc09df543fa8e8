import logging

import pytest

from facegrid.utils.logging import get_logger, set_verbosity


@pytest.fixture
def quiet_afterwards():
    yield
    set_verbosity(False)


def test_verbose_reaches_existing_loggers(quiet_afterwards):
    logger = get_logger("TEST_EXISTING")
    assert logger.level == logging.INFO

    set_verbosity(True)

    assert logger.level == logging.DEBUG


def test_verbose_reaches_loggers_created_later(quiet_afterwards):
    set_verbosity(True)

    assert get_logger("TEST_CREATED_LATER").level == logging.DEBUG


def test_back_to_info(quiet_afterwards):
    set_verbosity(True)
    set_verbosity(False)

    assert get_logger("TEST_BACK_TO_INFO").level == logging.INFO
    assert get_logger("TEST_EXISTING").level == logging.INFO
