#!/usr/bin/env python3
"""
Logging setup for the clip creation pipeline

Everything logs below the `clip_creator` logger. Console output goes to
stderr because `create --batch-runner` reserves stdout for the video path.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import List, Optional

LOGGER_NAME = 'clip_creator'
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# HTTP client libraries log every request at INFO
NOISY_LOGGERS = ('httpx', 'httpcore', 'openai', 'aiohttp')


def _build_handlers(log_file: Optional[str], max_size_mb: int, backup_count: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding='utf-8'
        ))
    return handlers


def setup_logging(level: str = 'INFO',
                  log_file: Optional[str] = None,
                  format_str: str = DEFAULT_FORMAT,
                  max_size_mb: int = 10,
                  backup_count: int = 5) -> logging.Logger:
    """Configure the package logger, replacing any handlers from a previous call"""
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(level.upper())
    package_logger.handlers.clear()

    formatter = logging.Formatter(format_str)
    for handler in _build_handlers(log_file, max_size_mb, backup_count):
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    if package_logger.level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return package_logger


class LoggerMixin:
    """Gives each class a `clip_creator.<ClassName>` logger"""

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, '_logger'):
            self._logger = logging.getLogger(f'{LOGGER_NAME}.{self.__class__.__name__}')
        return self._logger
