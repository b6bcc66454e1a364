import logging

import pytest

from lectureqa.utils import logging as app_logging
from lectureqa.utils.logging import ROOT_LOGGER, get_logger, preview, setup_logging


@pytest.fixture
def restore_level():
    logger = logging.getLogger(ROOT_LOGGER)
    previous = logger.level
    yield logger
    setup_logging(previous)


def test_explicit_level_applies_after_import_time_setup(restore_level) -> None:
    get_logger("lectureqa.some.module")  # import-time configuration at the default level

    setup_logging("WARNING")

    assert restore_level.level == logging.WARNING
    assert app_logging._handler.level == logging.WARNING
    assert restore_level.handlers.count(app_logging._handler) == 1


def test_call_without_level_keeps_configured_level(restore_level) -> None:
    setup_logging("ERROR")
    get_logger("lectureqa.other")

    assert restore_level.level == logging.ERROR


def test_unknown_level_name_falls_back_to_info(restore_level) -> None:
    setup_logging("LOUD")
    assert restore_level.level == logging.INFO


def test_preview_truncates_long_text() -> None:
    assert preview("  short  ") == "short"
    assert preview("x" * 100) == "x" * 80 + "..."
