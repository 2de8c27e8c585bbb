import logging

import pytest

from tattoo_preview.logging_utils import ColoredFormatter, LOG_FORMAT, log_execution_time, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_setup_logging_writes_file(restore_root_logger, tmp_path):
    setup_logging("debug", tmp_path / "logs")

    logging.getLogger("tattoo_preview.test").debug("hello from test")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert restore_root_logger.level == logging.DEBUG
    (log_file,) = (tmp_path / "logs").glob("tattoo_preview_*.log")
    content = log_file.read_text(encoding="utf-8")
    assert "hello from test" in content
    assert "\033[" not in content


def test_setup_logging_replaces_handlers(restore_root_logger):
    setup_logging(logging.INFO)
    setup_logging(logging.INFO)
    assert len(restore_root_logger.handlers) == 1


def test_colored_formatter_does_not_mutate_record():
    record = logging.makeLogRecord({"name": "x", "levelno": logging.ERROR, "levelname": "ERROR", "msg": "boom"})
    formatted = ColoredFormatter(LOG_FORMAT).format(record)
    assert "\033[31m" in formatted
    assert record.levelname == "ERROR"


def test_log_execution_time_reraises(caplog):
    @log_execution_time()
    def explode():
        raise ValueError("boom")

    with caplog.at_level(logging.ERROR), pytest.raises(ValueError):
        explode()
    assert "explode failed" in caplog.text


def test_log_execution_time_returns_result():
    @log_execution_time()
    def add(a, b):
        return a + b

    assert add(2, 3) == 5
    assert add.__name__ == "add"
