"""Discrete HMM pipeline: one symbol model per class plus null-rejection thresholds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from hmmclassifier.data import TimeSeriesClassificationData
from hmmclassifier.errors import (
    HMMClassifierError,
    InputValidationError,
    SymbolRangeError,
    TrainingError,
)
from hmmclassifier.models import DiscreteHMM, DiscreteTrainingConfig
from hmmclassifier.numerics import best_index, log_likelihoods_to_likelihoods
from hmmclassifier.prediction import Prediction
from hmmclassifier.settings import NULL_CLASS_LABEL, ClassifierConfig
from hmmclassifier.util import get_logger, log_and_raise

_LOGGER = get_logger(__name__, context="DISCRETE")


@dataclass(frozen=True, eq=False)
class DiscreteEnsemble:
    """Trained state of the discrete classifier, one model per class index."""

    models: Tuple[DiscreteHMM, ...]
    null_rejection_thresholds: np.ndarray


def to_observation_sequence(timeseries: np.ndarray, num_symbols: int) -> np.ndarray:
    """Truncate a one-column series to integer symbols in ``[0, num_symbols)``."""

    values = np.asarray(timeseries, dtype=float)
    if values.ndim == 2:
        if values.shape[1] != 1:
            raise log_and_raise(
                _LOGGER,
                InputValidationError,
                "The number of columns in the time series must be 1, it is %d",
                values.shape[1],
            )
        values = values[:, 0]
    elif values.ndim != 1:
        raise log_and_raise(
            _LOGGER, InputValidationError, "Expected a one-column time series, got shape %s", values.shape
        )

    invalid = ~np.isfinite(values) | (values < 0) | (values >= num_symbols)
    if invalid.any():
        raise log_and_raise(
            _LOGGER,
            SymbolRangeError,
            "Found an observation outside of the symbol range [0, %d]! Value: %s",
            num_symbols - 1,
            values[invalid][0],
        )
    return values.astype(int)


def to_observation_sequences(
    dataset: TimeSeriesClassificationData,
    num_symbols: int,
) -> List[np.ndarray]:
    """Convert every sample of ``dataset``; fails before returning anything on a bad symbol."""

    return [to_observation_sequence(sample.data, num_symbols) for sample in dataset]


def check_training_data(dataset: TimeSeriesClassificationData) -> None:
    if dataset.num_samples == 0:
        raise log_and_raise(
            _LOGGER,
            InputValidationError,
            "There are no training samples to train the HMM classifier!",
        )
    if dataset.num_dimensions != 1:
        raise log_and_raise(
            _LOGGER,
            InputValidationError,
            "The number of dimensions in the training data must be 1, it is %d. "
            "Quantize multi-dimensional data into symbols before training a discrete HMM.",
            dataset.num_dimensions,
        )


def _model_config(config: ClassifierConfig) -> DiscreteTrainingConfig:
    return DiscreteTrainingConfig(
        num_states=config.num_states,
        num_symbols=config.num_symbols,
        model_type=config.model_type,
        delta=config.delta,
        max_epochs=config.max_training_epochs,
        min_change=config.min_log_likelihood_change,
        num_random_training_iterations=config.num_random_training_iterations,
        random_state=config.random_state,
    )


def null_rejection_threshold(model: DiscreteHMM, sequences: Sequence[np.ndarray]) -> float:
    """Negated mean absolute log-likelihood of a class's own training sequences."""

    scores = np.array([model.score(sequence) for sequence in sequences], dtype=float)
    if not np.all(np.isfinite(scores)):
        raise log_and_raise(
            _LOGGER, TrainingError, "A training sequence scored a non-finite log-likelihood"
        )
    return -float(np.mean(np.abs(scores)))


def train_discrete(
    dataset: TimeSeriesClassificationData,
    config: ClassifierConfig,
    class_labels: Sequence[int],
) -> DiscreteEnsemble:
    """Fit one :class:`DiscreteHMM` per class label and derive rejection thresholds.

    Either every class fits and a complete ensemble is returned, or an
    exception propagates and nothing is returned.
    """

    check_training_data(dataset)

    model_config = _model_config(config)
    class_sequences = [
        to_observation_sequences(dataset.get_class_data(label), config.num_symbols)
        for label in class_labels
    ]

    models: List[DiscreteHMM] = []
    for label, sequences in zip(class_labels, class_sequences):
        model = DiscreteHMM(model_config)
        try:
            log_likelihood = model.fit(sequences)
        except HMMClassifierError as error:
            raise log_and_raise(
                _LOGGER, TrainingError, "Failed to train HMM for class %s: %s", label, error
            ) from error
        _LOGGER.debug(
            "Trained class %s on %d sequences (log-likelihood %.4f)",
            label,
            len(sequences),
            log_likelihood,
        )
        models.append(model)

    thresholds = np.array(
        [
            null_rejection_threshold(model, sequences)
            for model, sequences in zip(models, class_sequences)
        ],
        dtype=float,
    )

    _LOGGER.info(
        "Trained %d class models from %d samples", len(models), dataset.num_samples
    )
    return DiscreteEnsemble(models=tuple(models), null_rejection_thresholds=thresholds)


def _decide(
    ensemble: DiscreteEnsemble,
    class_labels: Sequence[int],
    distances: np.ndarray,
    use_null_rejection: bool,
) -> Prediction:
    likelihoods = log_likelihoods_to_likelihoods(distances)
    index = best_index(distances)
    max_likelihood = float(likelihoods[index])

    if likelihoods.sum() == 0:
        label = NULL_CLASS_LABEL
    elif use_null_rejection and not max_likelihood > ensemble.null_rejection_thresholds[index]:
        label = NULL_CLASS_LABEL
    else:
        label = class_labels[index]

    return Prediction(
        predicted_class_label=int(label),
        best_class_index=index,
        max_likelihood=max_likelihood,
        class_likelihoods=likelihoods,
        class_distances=distances,
        class_labels=tuple(class_labels),
    )


def predict_discrete_vector(
    ensemble: DiscreteEnsemble,
    class_labels: Sequence[int],
    config: ClassifierConfig,
    vector: np.ndarray,
    num_input_dimensions: int = 1,
) -> Prediction:
    """Classify a single observation symbol."""

    values = np.asarray(vector, dtype=float).reshape(-1)
    if values.size != num_input_dimensions:
        raise log_and_raise(
            _LOGGER,
            InputValidationError,
            "The size of the input vector (%d) does not match the num features in the model (%d)",
            values.size,
            num_input_dimensions,
        )
    symbol = to_observation_sequence(values[:1], config.num_symbols)
    distances = np.array([model.score(symbol) for model in ensemble.models], dtype=float)
    return _decide(ensemble, class_labels, distances, config.use_null_rejection)


def predict_discrete_timeseries(
    ensemble: DiscreteEnsemble,
    class_labels: Sequence[int],
    config: ClassifierConfig,
    timeseries: np.ndarray,
) -> Prediction:
    """Classify a full one-column observation sequence."""

    values = np.asarray(timeseries, dtype=float)
    if values.ndim != 2 or values.shape[0] == 0:
        raise log_and_raise(
            _LOGGER, InputValidationError, "Expected a non-empty (timesteps, 1) array, got shape %s", values.shape
        )
    sequence = to_observation_sequence(values, config.num_symbols)
    distances = np.array([model.score(sequence) for model in ensemble.models], dtype=float)
    return _decide(ensemble, class_labels, distances, config.use_null_rejection)


__all__ = [
    "DiscreteEnsemble",
    "check_training_data",
    "null_rejection_threshold",
    "predict_discrete_timeseries",
    "predict_discrete_vector",
    "to_observation_sequence",
    "to_observation_sequences",
    "train_discrete",
]
