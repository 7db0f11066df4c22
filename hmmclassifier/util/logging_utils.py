"""Logging utilities shared by the classifier and its pipeline entry points."""

from __future__ import annotations

import logging
import os
from typing import Optional, Type, TypeVar, Union

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
_LEVEL_ENV_VARS = ("HMMCLASSIFIER_LOG_LEVEL", "LOG_LEVEL")

_E = TypeVar("_E", bound=Exception)

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


class _ContextAdapter(logging.LoggerAdapter):
    """Prefix every message with a bracketed context tag, e.g. ``[DISCRETE]``."""

    def process(self, msg, kwargs):
        return f"[{self.extra['context']}] {msg}", kwargs


def _resolve_level(level: Optional[int] = None) -> int:
    """Resolve the log level from an explicit value or the environment."""
    if level is not None:
        return level

    for name in _LEVEL_ENV_VARS:
        env_level = os.getenv(name)
        if env_level:
            return getattr(logging, env_level.upper(), logging.INFO)
    return logging.INFO


def configure_logging(level: Optional[int] = None) -> None:
    """Ensure the root logger is configured with a consistent formatter.

    Safe to call repeatedly. When an embedding application already installed
    handlers only the level is updated.
    """

    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(_resolve_level(level))
        return

    logging.basicConfig(
        level=_resolve_level(level),
        format=_DEFAULT_FORMAT,
        datefmt=_DEFAULT_DATEFMT,
    )


def get_logger(
    name: str,
    level: Optional[int] = None,
    *,
    context: Optional[str] = None,
) -> LoggerLike:
    """Return a module-level logger with shared formatting.

    Parameters
    ----------
    name:
        The logger namespace, typically ``__name__`` from the caller.
    level:
        Optional log level override. Falls back to ``HMMCLASSIFIER_LOG_LEVEL``,
        then ``LOG_LEVEL`` and finally ``logging.INFO``.
    context:
        Optional tag prepended to every message, used to tell the discrete
        and continuous pipelines apart in a shared log.
    """

    configure_logging(level)
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    if context:
        return _ContextAdapter(logger, {"context": context})
    return logger


def log_and_raise(
    logger: LoggerLike,
    error_type: Type[_E],
    message: str,
    *args: object,
) -> _E:
    """Log ``message`` at error level and return ``error_type`` for raising.

    Usage: ``raise log_and_raise(_LOGGER, ConfigurationError, "bad %s", x)``.
    """

    logger.error(message, *args)
    return error_type(message % args if args else message)


__all__ = ["LoggerLike", "configure_logging", "get_logger", "log_and_raise"]
