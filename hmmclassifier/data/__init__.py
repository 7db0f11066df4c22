"""Dataset containers and feature range helpers."""

from .dataset import (
    ClassificationData,
    ClassTrackerEntry,
    TimeSeriesClassificationData,
    TimeSeriesSample,
)
from .ranges import FeatureRanges

__all__ = [
    "ClassTrackerEntry",
    "ClassificationData",
    "FeatureRanges",
    "TimeSeriesClassificationData",
    "TimeSeriesSample",
]
