# docsift/logger.py
"""docsift.logger: единый логгер ``DocSift`` для ядра и CLI.

Все модули пишут через один экземпляр::

    from docsift.logger import logger
    logger.info("Processing sitemap: %s", url)

Консольный вывод идёт в stderr: stdout занят JSON-результатами команд.
Файл логов (необязательный) ротируется по размеру.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, List, Optional, Union

LOGGER_NAME: Final[str] = "DocSift"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

LevelT = Union[int, str]
PathT = Union[str, Path]


def _build_handlers(fmt: str, log_file: Optional[PathT]) -> List[logging.Handler]:
    formatter = logging.Formatter(fmt)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(
                filename=str(log_file),
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: LevelT = "INFO",
    log_file: Optional[PathT] = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Настраивает логгер ``DocSift`` и возвращает его.

    При ``replace_handlers=True`` старые обработчики закрываются и снимаются,
    иначе новые добавляются к ним. Сообщения не уходят в корневой логгер.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level.upper() if isinstance(level, str) else level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    for handler in _build_handlers(log_format, log_file):
        lg.addHandler(handler)

    lg.propagate = False
    return lg


def init_logging(
    level: LevelT = "INFO",
    log_file: Optional[PathT] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Вызов из CLI: всегда начинает с чистого набора обработчиков."""
    return configure(level=level, log_file=log_file, log_format=log_format)


logger: logging.Logger = init_logging()

__all__ = ["DEFAULT_FORMAT", "LOGGER_NAME", "configure", "init_logging", "logger"]
