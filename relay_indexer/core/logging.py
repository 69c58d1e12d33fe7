# relay_indexer/core/logging.py
"""
Centralized logging for the relay indexer.

Provides:
- IndexerLogger: one-shot global logging configuration
- LoggingMixin: class-scoped loggers with context-aware helpers
- log_with_context: attach job/event context to a single record
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL

ROOT_LOGGER_NAME = 'relay_indexer'

CONTEXT_ATTRS = (
    'job_name', 'from_block', 'to_block', 'event_name', 'tx_hash', 'block_number',
    'log_index', 'indexed', 'failed', 'skipped', 'duration_ms', 'error',
)

_RESERVED_ATTRS = set(vars(logging.makeLogRecord({})).keys()) | {'message', 'asctime'}


class IndexerFormatter(logging.Formatter):
    def __init__(self, include_context: bool = False):
        self.include_context = include_context
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]
        base_msg = f"{timestamp} - {record.name} - {record.levelname} - {record.getMessage()}"

        if record.exc_info:
            base_msg = f"{base_msg}\n{self.formatException(record.exc_info)}"

        if not self.include_context:
            return base_msg

        context_parts = [
            f"{attr}={getattr(record, attr)}" for attr in CONTEXT_ATTRS if hasattr(record, attr)
        ]

        if context_parts:
            return f"{base_msg} | {' '.join(context_parts)}"

        return base_msg


class JsonFormatter(logging.Formatter):
    """One JSON object per line, every non-standard record attribute included"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'logger': record.name,
            'level': record.levelname,
            'message': record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith('_'):
                payload[key] = value
        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class IndexerLogger:
    """Global logging configuration and management"""

    _configured = False
    _log_dir: Optional[Path] = None
    _log_level = logging.INFO

    @classmethod
    def configure(cls,
                  log_dir: Optional[Path] = None,
                  log_level: str = "INFO",
                  console_enabled: bool = True,
                  file_enabled: bool = False,
                  structured_format: bool = True,
                  json_format: bool = False) -> None:

        if cls._configured:
            return

        level = getattr(logging, log_level.upper(), None)
        if not isinstance(level, int):
            level = logging.INFO

        cls._log_dir = log_dir
        cls._log_level = level

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        if json_format:
            formatter = JsonFormatter()
        else:
            formatter = IndexerFormatter(include_context=structured_format)

        if console_enabled:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

        if file_enabled and log_dir:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_formatter = JsonFormatter() if json_format else IndexerFormatter(include_context=True)

            file_handler = logging.FileHandler(log_dir / 'indexer.log')
            file_handler.setLevel(level)
            file_handler.setFormatter(file_formatter)
            root_logger.addHandler(file_handler)

            error_handler = logging.FileHandler(log_dir / 'indexer_errors.log')
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(file_formatter)
            root_logger.addHandler(error_handler)

        cls._configured = True

    @classmethod
    def reset(cls) -> None:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()
        cls._configured = False

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not name.startswith(ROOT_LOGGER_NAME):
            name = f'{ROOT_LOGGER_NAME}.{name}'
        return logging.getLogger(name)


def get_class_logger(cls_instance) -> logging.Logger:
    module = cls_instance.__class__.__module__
    class_name = cls_instance.__class__.__name__

    prefix = f'{ROOT_LOGGER_NAME}.'
    if module.startswith(prefix):
        module = module[len(prefix):]

    return IndexerLogger.get_logger(f"{module}.{class_name}")


def log_with_context(logger: logging.Logger, level: int, message: str,
                     exc_info=None, **context) -> None:
    if logger.isEnabledFor(level):
        if exc_info is True:
            exc_info = sys.exc_info()
        record = logger.makeRecord(
            logger.name, level, "", 0, message, (), exc_info
        )
        for key, value in context.items():
            setattr(record, key, value)
        logger.handle(record)


class LoggingMixin:
    """
    Mixin giving a class its own logger plus context-aware helpers.

    Context keyword arguments end up as record attributes, which the
    structured formatters render as ``key=value`` pairs.
    """

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, '_logger'):
            self._logger = get_class_logger(self)
        return self._logger

    def log_debug(self, message: str, **context) -> None:
        log_with_context(self.logger, logging.DEBUG, message, **context)

    def log_info(self, message: str, **context) -> None:
        log_with_context(self.logger, logging.INFO, message, **context)

    def log_warning(self, message: str, **context) -> None:
        log_with_context(self.logger, logging.WARNING, message, **context)

    def log_error(self, message: str, **context) -> None:
        log_with_context(self.logger, logging.ERROR, message, **context)

    def log_exception(self, message: str, **context) -> None:
        log_with_context(self.logger, logging.ERROR, message, exc_info=True, **context)
