"""Utility helpers shared across the classifier and pipeline modules."""

from .logging_utils import LoggerLike, configure_logging, get_logger, log_and_raise

__all__ = [
    "LoggerLike",
    "configure_logging",
    "get_logger",
    "log_and_raise",
]
