# tests/test_logging_setup.py

from __future__ import annotations

import logging
from collections.abc import Iterator
from types import SimpleNamespace

import pytest

from pitlane.logging_setup import setup_logging


@pytest.fixture()
def root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in saved_handlers:
        root.addHandler(h)
    root.setLevel(saved_level)
    logging.captureWarnings(False)


def test_console_level_from_settings_and_full_file_log(tmp_path, root_logger) -> None:
    settings = SimpleNamespace(data_dir=tmp_path / "data", log_level="warning")

    log_file = setup_logging(settings)

    assert log_file == tmp_path / "data" / "pitlane.log"
    console, to_file = root_logger.handlers
    assert console.level == logging.WARNING
    assert to_file.level == logging.DEBUG

    logging.getLogger("pitlane.tasks.lifecycle").debug("lap counted")
    to_file.flush()
    assert "DEBUG pitlane.tasks.lifecycle: lap counted" in log_file.read_text(encoding="utf-8")


def test_console_filter_hides_foreign_loggers_below_error(tmp_path, root_logger) -> None:
    setup_logging(SimpleNamespace(data_dir=tmp_path, log_level="bogus"))
    console = root_logger.handlers[0]
    assert console.level == logging.INFO

    def record(name: str, level: int) -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 1, "msg", None, None)

    assert console.filter(record("pitlane.schedule.schedule_cache", logging.INFO))
    assert not console.filter(record("sqlite_helper", logging.WARNING))
    assert console.filter(record("sqlite_helper", logging.ERROR))
    assert logging.getLogger("httpx").level == logging.WARNING
