"""
Tests for configure_logging().
"""

import logging

import pytest

from eco_manager.config.logging_setup import LOG_FORMAT, configure_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def test_installs_one_formatted_handler(root_logger):
    root_logger.handlers = []
    configure_logging("debug")
    configure_logging("debug")
    assert len(root_logger.handlers) == 1
    assert root_logger.handlers[0].formatter._fmt == LOG_FORMAT
    assert root_logger.level == logging.DEBUG


def test_existing_handlers_are_kept(root_logger):
    existing = logging.NullHandler()
    root_logger.handlers = [existing]
    configure_logging("warning")
    assert root_logger.handlers == [existing]
    assert root_logger.level == logging.WARNING


def test_quiets_urllib3(root_logger):
    configure_logging("debug")
    assert logging.getLogger("urllib3").level == logging.WARNING
