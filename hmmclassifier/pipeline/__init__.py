"""CSV-driven training and prediction entry points."""

from .datasets import load_timeseries_csv
from .predict import predict_from_csv
from .train import TrainingArtifacts, train_classifier_from_csv

__all__ = [
    "TrainingArtifacts",
    "load_timeseries_csv",
    "predict_from_csv",
    "train_classifier_from_csv",
]
