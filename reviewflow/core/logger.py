"""Logging setup for the reviewflow service.

Every module logs through ``logging.getLogger(__name__)``; those loggers all
sit under the ``reviewflow`` package logger, which ``setup_logger`` wires to
the console and, optionally, a size-rotated file.
"""

import logging
import logging.handlers
import os
from typing import Iterable, List, Optional

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
ISO_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Libraries that log every request or statement at INFO
CHATTY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    return resolved


def _build_handlers(
    name: str,
    log_dir: str,
    file_logging: bool,
    console_logging: bool,
    max_bytes: int,
    backup_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, f"{name}.log"),
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
        )
    if console_logging:
        handlers.append(logging.StreamHandler())
    return handlers


def setup_logger(
    name: str = "reviewflow",
    log_dir: str = "./logs",
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    file_logging: bool = False,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
    quiet: Iterable[str] = CHATTY_LOGGERS,
) -> logging.Logger:
    """Configure the service logger once and return it.

    Args:
        name: Logger name, the package root by default
        log_dir: Directory for ``<name>.log`` when file logging is on
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
        log_format: Record format, ``DEFAULT_FORMAT`` when omitted
        date_format: Timestamp format, ISO 8601 when omitted
        file_logging: Add a rotating file handler
        console_logging: Add a stderr handler
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
        quiet: Third-party loggers raised to WARNING unless ``level`` is DEBUG

    Calling it again for the same name only updates the level.
    """
    resolved = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(resolved)

    for noisy in quiet:
        logging.getLogger(noisy).setLevel(
            resolved if resolved <= logging.DEBUG else logging.WARNING
        )

    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        log_format or DEFAULT_FORMAT, datefmt=date_format or ISO_DATE_FORMAT
    )
    for handler in _build_handlers(
        name, log_dir, file_logging, console_logging, max_bytes, backup_count
    ):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
