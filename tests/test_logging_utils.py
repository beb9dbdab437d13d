import logging
from pathlib import Path

import pytest

from logging_utils import get_error_info, log_exception, setup_run_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_run_logging_writes_file(tmp_path, restore_root_logger):
    run_logger, log_path = setup_run_logging(str(tmp_path / "logs"), "project p1")
    logging.getLogger("coverage_score").debug("debug detail")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert run_logger.name == "plinth_run"
    content = Path(log_path).read_text(encoding="utf-8")
    assert "Run: project p1" in content
    assert "debug detail" in content


def test_log_exception_includes_context(caplog):
    logger = logging.getLogger("plinth_test")
    try:
        raise ValueError("bad bundle")
    except ValueError as exc:
        with caplog.at_level(logging.ERROR):
            log_exception(logger, exc, "Scoring failed", project_id="p1")
    assert "Scoring failed - Exception occurred: ValueError: bad bundle" in caplog.text
    assert "Traceback" in caplog.text
    assert "'project_id': 'p1'" in caplog.text


def test_get_error_info():
    try:
        raise KeyError("items")
    except KeyError as exc:
        info = get_error_info(exc, {"path": "bundle.json"})
    assert info["error_type"] == "KeyError"
    assert info["context"] == {"path": "bundle.json"}
    assert "KeyError" in info["traceback"]
