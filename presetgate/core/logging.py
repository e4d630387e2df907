#!/usr/bin/env python3
"""Structured logging for presetgate.

Every message is rendered as ``message | key=value ...`` and the raw context
mapping travels on the record as ``record.context``, so handlers can pick
either. Context can be pushed for a block with ``add_context``; nested blocks
stack and inner keys win.

Example:
    >>> logger = Logger(level=LogLevel.DEBUG)
    >>> logger.debug("Pre-filter computed", environment="client")
    >>> with logger.add_context(path="src/app.tsx"):
    ...     logger.info("Presets selected", count=2)
"""

import logging
import logging.handlers
from contextlib import contextmanager
from contextvars import ContextVar
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_context: ContextVar[Tuple[Dict[str, Any], ...]] = ContextVar("presetgate_log_context", default=())


class LogLevel(IntEnum):
    """Log levels matching Python's logging module."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


def coerce_level(level: Union[LogLevel, int, str]) -> LogLevel:
    """Turn a level name ("debug", "INFO") or number into a LogLevel."""
    if isinstance(level, str):
        return LogLevel[level.upper()]
    return LogLevel(level)


def render_context(context: Dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in context.items())


def make_formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


class Logger:
    """Key-value logger over a standard library logger.

    The underlying ``logging.Logger`` is exposed as ``logger`` and does not
    propagate to the root logger.
    """

    def __init__(
        self,
        name: str = "presetgate",
        level: Union[LogLevel, str] = LogLevel.INFO,
        handlers: Optional[List[logging.Handler]] = None,
    ):
        """Initialize logger.

        Args:
            name: Name of the standard library logger to drive
            level: Minimum level to emit
            handlers: Handlers replacing the default stderr handler
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.propagate = False
        self.set_level(level)

        self.logger.handlers.clear()
        for handler in handlers if handlers is not None else [self._console_handler()]:
            self.logger.addHandler(handler)

    @staticmethod
    def _console_handler() -> logging.StreamHandler:
        handler = logging.StreamHandler()
        handler.setFormatter(make_formatter())
        return handler

    def create_file_handler(
        self,
        filename: Union[str, Path],
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> logging.handlers.RotatingFileHandler:
        """Build a rotating file handler using the console format.

        The handler is returned, not attached; pass it to ``add_handler``.
        """
        handler = logging.handlers.RotatingFileHandler(
            filename, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        handler.setFormatter(make_formatter())
        return handler

    def add_handler(self, handler: logging.Handler) -> None:
        self.logger.addHandler(handler)

    def remove_handler(self, handler: logging.Handler) -> None:
        self.logger.removeHandler(handler)

    def set_level(self, level: Union[LogLevel, str]) -> None:
        self.logger.setLevel(coerce_level(level))

    def get_level(self) -> LogLevel:
        return LogLevel(self.logger.level)

    def is_enabled_for(self, level: Union[LogLevel, str]) -> bool:
        return self.logger.isEnabledFor(coerce_level(level))

    @contextmanager
    def add_context(self, **kwargs):
        """Attach ``kwargs`` to every message logged inside the block.

        Example:
            >>> with logger.add_context(environment="ssr"):
            ...     logger.info("Building")
        """
        token = _context.set(_context.get() + (kwargs,))
        try:
            yield
        finally:
            _context.reset(token)

    def log(self, level: Union[LogLevel, str], msg: str, exc_info: Any = None, **context) -> None:
        """Emit ``msg`` at ``level`` with pushed context plus ``context``."""
        level = coerce_level(level)
        if not self.logger.isEnabledFor(level):
            return

        merged: Dict[str, Any] = {}
        for frame in _context.get():
            merged.update(frame)
        merged.update(context)

        text = f"{msg} | {render_context(merged)}" if merged else msg
        self.logger.log(level, text, exc_info=exc_info, extra={"context": merged})

    def debug(self, msg: str, **context) -> None:
        self.log(LogLevel.DEBUG, msg, **context)

    def info(self, msg: str, **context) -> None:
        self.log(LogLevel.INFO, msg, **context)

    def warning(self, msg: str, **context) -> None:
        self.log(LogLevel.WARNING, msg, **context)

    def error(self, msg: str, **context) -> None:
        self.log(LogLevel.ERROR, msg, **context)

    def exception(self, msg: str, exc: BaseException, **context) -> None:
        """Log ``exc`` at error level with its type, message and traceback."""
        context.setdefault("exception_type", type(exc).__name__)
        context.setdefault("exception_message", str(exc))
        self.log(LogLevel.ERROR, msg, exc_info=exc, **context)


_global_logger: Optional[Logger] = None


def get_logger(name: str = "presetgate") -> Logger:
    """Return the shared logger, creating it when missing or renamed."""
    global _global_logger
    if _global_logger is None or _global_logger.name != name:
        _global_logger = Logger(name=name)
    return _global_logger


def set_global_logger(logger: Optional[Logger]) -> None:
    """Replace the shared logger returned by ``get_logger``."""
    global _global_logger
    _global_logger = logger
