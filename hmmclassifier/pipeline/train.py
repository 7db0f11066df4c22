"""Train a classifier from a time-series CSV and persist it as a model file."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

from hmmclassifier.classifier import HMMClassifier
from hmmclassifier.data import TimeSeriesClassificationData
from hmmclassifier.io.file_locator import get_model_path
from hmmclassifier.io.model_file import save_model
from hmmclassifier.settings import HMMType, load_classifier_config
from hmmclassifier.util import get_logger

from .datasets import load_timeseries_csv

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class TrainingArtifacts:
    """Summary of a training run."""

    model_path: Path
    hmm_type: HMMType
    num_samples: int
    class_labels: Tuple[int, ...]
    training_accuracy: float


def _training_accuracy(classifier: HMMClassifier, dataset: TimeSeriesClassificationData) -> float:
    correct = sum(
        1 for sample in dataset if classifier.predict(sample.data).predicted_class_label == sample.class_label
    )
    return correct / dataset.num_samples


def train_classifier_from_csv(
    csv_path: Path,
    model_path: Path,
    config_path: Optional[Path] = None,
) -> TrainingArtifacts:
    """Train on ``csv_path`` with settings from ``config_path`` and save to ``model_path``."""

    config = load_classifier_config(config_path)
    dataset = load_timeseries_csv(csv_path)

    classifier = HMMClassifier(config)
    classifier.train(dataset)
    saved_path = save_model(classifier, Path(model_path))

    accuracy = _training_accuracy(classifier, dataset)
    _LOGGER.info(
        "Trained %s classifier on %d samples (training accuracy %.3f)",
        config.hmm_type.value,
        dataset.num_samples,
        accuracy,
    )

    return TrainingArtifacts(
        model_path=saved_path,
        hmm_type=config.hmm_type,
        num_samples=dataset.num_samples,
        class_labels=classifier.class_labels,
        training_accuracy=accuracy,
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("csv_path", type=Path, help="long-format training CSV")
    parser.add_argument(
        "model_path",
        type=Path,
        nargs="?",
        default=None,
        help="where to write the model file (default: models/<csv name>.hmm.txt)",
    )
    parser.add_argument("--config", type=Path, default=None, help="classifier YAML settings")
    args = parser.parse_args(argv)
    model_path = args.model_path or get_model_path(args.csv_path.stem)
    train_classifier_from_csv(args.csv_path, model_path, args.config)


if __name__ == "__main__":
    main()
