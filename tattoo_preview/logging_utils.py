"""Настройка логирования приложения.

Модули получают логгер через `logging.getLogger(__name__)`; здесь только
конфигурация корневого логгера и декоратор замера времени.
"""
from __future__ import annotations

import functools
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s"


class ColoredFormatter(logging.Formatter):
    """Форматтер с цветным уровнем для консоли."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, self.RESET)
        # копия, чтобы файловый обработчик не получил escape-коды
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(level: str | int = logging.INFO, log_dir: Optional[Path] = None) -> None:
    """Конфигурирует корневой логгер: консоль + (опционально) файл в `log_dir`.

    Повторный вызов заменяет ранее установленные обработчики.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        file_handler = logging.FileHandler(log_dir / f"tattoo_preview_{timestamp}.log", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)

    # PIL очень разговорчив на DEBUG
    logging.getLogger("PIL").setLevel(max(level, logging.INFO))


def log_execution_time(logger: Optional[logging.Logger] = None) -> Callable:
    """Декоратор: пишет в DEBUG длительность вызова, в ERROR падение.

    Example:
        @log_execution_time()
        def render(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        log = logger or logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                elapsed = time.perf_counter() - start_time
                log.error("%s failed after %.4fs: %s", func.__qualname__, elapsed, exc)
                raise
            elapsed = time.perf_counter() - start_time
            log.debug("%s completed in %.4fs", func.__qualname__, elapsed)
            return result

        return wrapper
    return decorator
