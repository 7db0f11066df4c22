"""Time-series classification with discrete and continuous hidden Markov models."""

from .classifier import HMMClassifier
from .data import ClassificationData, FeatureRanges, TimeSeriesClassificationData
from .errors import (
    ConfigurationError,
    HMMClassifierError,
    InputValidationError,
    ModelFileError,
    NotTrainedError,
    SymbolRangeError,
    TrainingError,
)
from .io.model_file import load_model, save_model
from .prediction import Prediction
from .settings import NULL_CLASS_LABEL, ClassifierConfig, HMMType, ModelType

__all__ = [
    "ClassificationData",
    "ClassifierConfig",
    "ConfigurationError",
    "FeatureRanges",
    "HMMClassifier",
    "HMMClassifierError",
    "HMMType",
    "InputValidationError",
    "ModelFileError",
    "ModelType",
    "NULL_CLASS_LABEL",
    "NotTrainedError",
    "Prediction",
    "SymbolRangeError",
    "TimeSeriesClassificationData",
    "TrainingError",
    "load_model",
    "save_model",
]
