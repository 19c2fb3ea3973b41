import logging

import pytest

from globwatch.logger import get_logger, level_from_name, setup_logger


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logging.getLogger("globwatch").handlers = []


def test_component_loggers_share_application_handlers(tmp_path):
    app_logger = setup_logger("globwatch", str(tmp_path), level=logging.DEBUG, console=False)
    dispatcher_logger = get_logger("dispatcher")

    assert dispatcher_logger.name == "globwatch.dispatcher"
    assert dispatcher_logger.parent is app_logger
    assert dispatcher_logger.getEffectiveLevel() == logging.DEBUG

    dispatcher_logger.info("Running: echo notes.txt")
    for handler in app_logger.handlers:
        handler.flush()
    content = (tmp_path / "globwatch.log").read_text()
    assert "globwatch.dispatcher - INFO - Running: echo notes.txt" in content


def test_get_logger_without_component():
    assert get_logger() is logging.getLogger("globwatch")


@pytest.mark.parametrize("name, expected", [
    ("debug", logging.DEBUG),
    ("WARNING", logging.WARNING),
    (None, logging.INFO),
    ("bogus", logging.INFO),
])
def test_level_from_name(name, expected):
    assert level_from_name(name) == expected
