"""Exception hierarchy raised by the HMM classifier."""

from __future__ import annotations


class HMMClassifierError(Exception):
    """Base class for all classifier errors."""


class ConfigurationError(HMMClassifierError, ValueError):
    """Raised when a configuration value is unknown or out of range."""


class InputValidationError(HMMClassifierError, ValueError):
    """Raised when training or prediction input has the wrong shape or type."""


class SymbolRangeError(InputValidationError):
    """Raised when a discrete observation falls outside ``[0, num_symbols)``."""


class NotTrainedError(HMMClassifierError, RuntimeError):
    """Raised when an operation requires a trained classifier."""


class TrainingError(HMMClassifierError, RuntimeError):
    """Raised when a class or exemplar sub-model fails to fit."""


class ModelFileError(HMMClassifierError, ValueError):
    """Raised when a persisted model file cannot be parsed."""


__all__ = [
    "ConfigurationError",
    "HMMClassifierError",
    "InputValidationError",
    "ModelFileError",
    "NotTrainedError",
    "SymbolRangeError",
    "TrainingError",
]
